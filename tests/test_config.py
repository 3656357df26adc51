"""Tests for miriam.toml loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from miriam.access import AccessLevel
from miriam.config import CONFIG_FILENAME, WORKSPACE_ENV, load_config
from miriam.errors import ValidationError


def test_defaults_when_file_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.root == tmp_path
    assert config.access.main_session == "agent:main:main"
    assert config.access.users == {}
    assert config.tasks.timeout_seconds == 60.0
    assert config.tasks.max_output_bytes == 1024 * 1024
    assert config.research.daily_deep_research_limit == 15
    assert config.research.perplexity_fallback is True
    assert config.search.timeout_seconds == 30.0
    assert "steve" in config.search.person_aliases
    assert config.logging.level == "INFO"


def test_paths_are_derived_from_root(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.usage_log_path == tmp_path / "research" / "usage.jsonl"
    assert config.results_dir == tmp_path / "research" / "results"
    assert config.dashboard_note_path == tmp_path / "dashboard" / "note.json"
    assert config.emotional_state_path == tmp_path / "memory" / "emotional-state.json"
    assert config.search_dir == tmp_path / "llamaindex-search"


def test_load_full_file(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text(
        """
[access]
main_session = "agent:miriam:main"

[access.users]
"192802611" = "private"
"777" = "Family"

[tasks]
timeout_seconds = 5
max_output_bytes = 2048

[research]
daily_deep_research_limit = 3
perplexity_fallback = false

[search]
directory = "search-backend"
python = "python3"

[search.person_aliases]
Sam = ["sam", "samantha"]

[logging]
level = "DEBUG"
format = "json"
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.access.main_session == "agent:miriam:main"
    assert config.access.users == {"192802611": AccessLevel.PRIVATE, "777": AccessLevel.FAMILY}
    assert config.tasks.timeout_seconds == 5.0
    assert config.tasks.max_output_bytes == 2048
    assert config.research.daily_deep_research_limit == 3
    assert config.research.perplexity_fallback is False
    assert config.search_dir == tmp_path / "search-backend"
    assert config.search.python == "python3"
    assert config.search.person_aliases == {"sam": ["sam", "samantha"]}
    assert config.logging.level == "DEBUG"
    assert config.logging.format == "json"


def test_invalid_user_level_is_rejected(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text('[access.users]\n"1" = "admin"\n', encoding="utf-8")

    with pytest.raises(ValidationError, match=r"\[access.users\] 1"):
        load_config(tmp_path)


def test_workspace_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(WORKSPACE_ENV, str(tmp_path))
    assert load_config().root == tmp_path


def test_alias_values_must_be_lists_of_names(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text('[search.person_aliases]\nsam = "sam"\n', encoding="utf-8")

    with pytest.raises(ValidationError, match=r"\[search.person_aliases\] sam"):
        load_config(tmp_path)


@pytest.mark.parametrize(
    "body, where",
    [
        ('[tasks]\ntimeout_seconds = "soon"\n', r"\[tasks\] timeout_seconds"),
        ("[tasks]\nmax_output_bytes = 1.5\n", r"\[tasks\] max_output_bytes"),
        ("[tasks]\ntimeout_seconds = 0\n", r"\[tasks\] timeout_seconds"),
        ('[research]\nperplexity_fallback = "no"\n', r"\[research\] perplexity_fallback"),
        ("[research]\ndaily_deep_research_limit = true\n", r"\[research\] daily_deep_research_limit"),
        ("[search]\ndirectory = 3\n", r"\[search\] directory"),
    ],
)
def test_wrongly_typed_values_are_rejected(tmp_path: Path, body: str, where: str) -> None:
    (tmp_path / CONFIG_FILENAME).write_text(body, encoding="utf-8")

    with pytest.raises(ValidationError, match=where):
        load_config(tmp_path)


def test_zero_research_limit_is_allowed(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text("[research]\ndaily_deep_research_limit = 0\n", encoding="utf-8")
    assert load_config(tmp_path).research.daily_deep_research_limit == 0
