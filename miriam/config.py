"""MiriamConfig: workspace-local configuration.

Default layout (all relative to the workspace root):

    miriam.toml                   # optional config
    memory/
        tasks.jsonl               # task log (append-only)
        threads.jsonl             # thread log (append-only)
        diary.jsonl               # diary log (append-only)
        emotional-state.json
        private/<date>-daily.md   # daily notes, one directory per access level
    research/
        usage.jsonl               # research provider usage (append-only)
        results/<date>/NNN_<slug>.{md,json}
    dashboard/
        note.json
    llamaindex-search/            # external search backend

miriam.toml example:

    [access]
    main_session = "agent:main:main"

    [access.users]
    "192802611" = "private"

    [tasks]
    timeout_seconds = 60
    max_output_bytes = 1048576

    [research]
    daily_deep_research_limit = 15
    perplexity_fallback = true

    [search]
    directory = "llamaindex-search"
    python = "python"
    timeout_seconds = 30
    max_output_bytes = 10485760

    [search.person_aliases]
    steve = ["steve", "steven", "steven brown"]

    [logging]
    level = "INFO"
    format = "console"
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .access import DEFAULT_MAIN_SESSION, AccessConfig, AccessLevel, parse_access_level
from .errors import ValidationError

CONFIG_FILENAME = "miriam.toml"
WORKSPACE_ENV = "MIRIAM_WORKSPACE"
DEFAULT_WORKSPACE = Path.home() / ".openclaw" / "workspace"

_DEFAULT_PERSON_ALIASES = {
    "steve": ["steve", "steven", "steven brown"],
    "alaina": ["alaina", "alaina hardie"],
}


@dataclass
class TasksConfig:
    timeout_seconds: float = 60.0
    max_output_bytes: int = 1024 * 1024


@dataclass
class ResearchConfig:
    daily_deep_research_limit: int = 15
    perplexity_fallback: bool = True


@dataclass
class SearchConfig:
    directory: str = "llamaindex-search"   # relative to the workspace root
    python: str = "python"                 # used when the backend has no venv
    timeout_seconds: float = 30.0
    max_output_bytes: int = 10 * 1024 * 1024
    person_aliases: dict[str, list[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in _DEFAULT_PERSON_ALIASES.items()}
    )


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "console"


@dataclass
class MiriamConfig:
    """Resolved configuration for one workspace."""

    root: Path
    access: AccessConfig = field(default_factory=AccessConfig)
    tasks: TasksConfig = field(default_factory=TasksConfig)
    research: ResearchConfig = field(default_factory=ResearchConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def memory_dir(self) -> Path:
        return self.root / "memory"

    @property
    def research_dir(self) -> Path:
        return self.root / "research"

    @property
    def usage_log_path(self) -> Path:
        return self.research_dir / "usage.jsonl"

    @property
    def results_dir(self) -> Path:
        return self.research_dir / "results"

    @property
    def dashboard_note_path(self) -> Path:
        return self.root / "dashboard" / "note.json"

    @property
    def emotional_state_path(self) -> Path:
        return self.memory_dir / "emotional-state.json"

    @property
    def search_dir(self) -> Path:
        return self.root / self.search.directory


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _number(
    section: str,
    data: dict[str, Any],
    key: str,
    default: float,
    kind: type,
    *,
    allow_zero: bool = False,
) -> Any:
    """A positive int, or int/float when ``kind`` is float. Bools and strings are rejected."""
    value = data.get(key, default)
    allowed = (int, float) if kind is float else (int,)
    if isinstance(value, bool) or not isinstance(value, allowed):
        raise ValidationError(f"[{section}] {key}: expected a number, got {value!r}")
    if value < 0 or (value == 0 and not allow_zero):
        raise ValidationError(f"[{section}] {key}: must be positive, got {value!r}")
    return kind(value)


def _bool(section: str, data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValidationError(f"[{section}] {key}: expected true or false, got {value!r}")
    return value


def _str(section: str, data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"[{section}] {key}: expected a non-empty string, got {value!r}")
    return value.strip()


def _person_aliases(data: dict[str, Any]) -> dict[str, list[str]]:
    raw = data.get("person_aliases")
    if raw is None:
        return {k: list(v) for k, v in _DEFAULT_PERSON_ALIASES.items()}
    if not isinstance(raw, dict):
        raise ValidationError(f"[search] person_aliases: expected a table, got {raw!r}")

    aliases: dict[str, list[str]] = {}
    for person, names in raw.items():
        if not isinstance(names, list) or not all(isinstance(n, str) and n.strip() for n in names):
            raise ValidationError(
                f"[search.person_aliases] {person}: expected a list of names, got {names!r}"
            )
        aliases[str(person).lower()] = [n.strip().lower() for n in names]
    return aliases


def default_workspace() -> Path:
    env = os.environ.get(WORKSPACE_ENV)
    return Path(env).expanduser() if env else DEFAULT_WORKSPACE


def _load_access(section: dict[str, Any]) -> AccessConfig:
    users: dict[str, AccessLevel] = {}
    for user_id, level in _coerce_dict(section.get("users")).items():
        try:
            users[str(user_id)] = parse_access_level(str(level))
        except ValidationError as e:
            raise ValidationError(f"[access.users] {user_id}: {e}") from None
    main_session = str(section.get("main_session", DEFAULT_MAIN_SESSION)).strip() or DEFAULT_MAIN_SESSION
    return AccessConfig(main_session=main_session, users=users)


def load_config(root: Path | str | None = None) -> MiriamConfig:
    """
    Load miriam.toml from the workspace root (defaults when the file is absent).

    Raises ValidationError naming the section and key of any value with the
    wrong type, and tomllib.TOMLDecodeError for unparsable TOML.
    """
    root_path = Path(root).expanduser() if root else default_workspace()
    config_path = root_path / CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.exists():
        with config_path.open("rb") as f:
            raw = tomllib.load(f)

    tasks_section = _coerce_dict(raw.get("tasks"))
    research_section = _coerce_dict(raw.get("research"))
    search_section = _coerce_dict(raw.get("search"))
    logging_section = _coerce_dict(raw.get("logging"))

    return MiriamConfig(
        root=root_path,
        access=_load_access(_coerce_dict(raw.get("access"))),
        tasks=TasksConfig(
            timeout_seconds=_number("tasks", tasks_section, "timeout_seconds", 60.0, float),
            max_output_bytes=_number("tasks", tasks_section, "max_output_bytes", 1024 * 1024, int),
        ),
        research=ResearchConfig(
            daily_deep_research_limit=_number(
                "research", research_section, "daily_deep_research_limit", 15, int, allow_zero=True
            ),
            perplexity_fallback=_bool("research", research_section, "perplexity_fallback", True),
        ),
        search=SearchConfig(
            directory=_str("search", search_section, "directory", "llamaindex-search"),
            python=_str("search", search_section, "python", "python"),
            timeout_seconds=_number("search", search_section, "timeout_seconds", 30.0, float),
            max_output_bytes=_number("search", search_section, "max_output_bytes", 10 * 1024 * 1024, int),
            person_aliases=_person_aliases(search_section),
        ),
        logging=LoggingConfig(
            level=_str("logging", logging_section, "level", "INFO"),
            format=_str("logging", logging_section, "format", "console"),
        ),
    )
