"""
Memory search - wraps the external RAG search scripts with filtering.

The backend lives in <workspace>/llamaindex-search and is treated as an
untyped oracle. Its output is parsed leniently; two shapes are understood:

    {"text": "...", "source": "...", "score": 0.8}      (JSON lines)

    Source: memory/private/2026-02-04-daily.md          (text blocks)
    Text: snippet...

Anything else is dropped. A failing backend yields no results.
"""

from __future__ import annotations

import json
import re
import subprocess
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Sequence

import structlog

from ..config import MiriamConfig, SearchConfig, default_workspace
from ..dates import validate_date
from ..errors import ValidationError
from ..outcome import capture

logger = structlog.get_logger(__name__)

SEARCH_ACCESS_LEVELS = ("private", "family", "trusted", "public")
DEFAULT_RELEVANCE = 0.5
DEFAULT_MAX_RESULTS = 5

_SKIP_PREFIXES = ("Loading", "Searching")
_DATE_IN_PATH = re.compile(r"(\d{4}-\d{2}-\d{2})")


@dataclass
class SearchResult:
    snippet: str
    source: str
    relevance: float = DEFAULT_RELEVANCE

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# (argv, cwd) -> stdout
SearchRunner = Callable[[Sequence[str], Path], str]


def validate_search_access_level(level: str | None) -> str | None:
    if not level:
        return None
    normalized = level.lower()
    if normalized not in SEARCH_ACCESS_LEVELS:
        raise ValidationError(
            f"Invalid access level: {level}. Must be one of: {', '.join(SEARCH_ACCESS_LEVELS)}"
        )
    return normalized


def normalize_person(person: str | None, aliases: dict[str, list[str]]) -> str | None:
    """Map a name onto its canonical alias key; unknown names are just lowercased."""
    if not person:
        return None
    lower = person.lower()
    for canonical, names in aliases.items():
        if any(name in lower for name in names):
            return canonical
    return lower


def build_search_command(
    query: str,
    access_level: str | None,
    limit: int,
    *,
    search_dir: Path,
    python: str = "python",
) -> list[str]:
    venv_python = search_dir / "venv" / "bin" / "python"
    interpreter = str(venv_python) if venv_python.exists() else python
    if access_level:
        return [interpreter, "search_multilevel.py", "--access", access_level, "--limit", str(limit), query]
    return [interpreter, "search.py", "--rag", "--limit", str(limit), query]


def make_subprocess_runner(settings: SearchConfig) -> SearchRunner:
    def run(argv: Sequence[str], cwd: Path) -> str:
        try:
            proc = subprocess.run(
                list(argv),
                cwd=cwd,
                capture_output=True,
                timeout=settings.timeout_seconds,
            )
        except subprocess.TimeoutExpired:
            logger.error("search backend timed out", timeout=settings.timeout_seconds)
            return ""
        except OSError as e:
            logger.error("search backend could not start", error=str(e), cwd=str(cwd))
            return ""

        if len(proc.stdout) > settings.max_output_bytes:
            logger.error("search backend output too large", size=len(proc.stdout))
            return ""

        stderr = proc.stderr.decode("utf-8", errors="replace")
        if proc.returncode != 0:
            logger.error("search backend failed", returncode=proc.returncode, stderr=stderr[:500])
            return ""
        if "error" in stderr:
            logger.warning("search backend stderr", stderr=stderr[:500])
        return proc.stdout.decode("utf-8", errors="replace")

    return run


def parse_search_output(output: str) -> list[SearchResult]:
    results: list[SearchResult] = []
    for line in output.strip().splitlines():
        if not line.strip() or line.startswith(_SKIP_PREFIXES):
            continue

        try:
            parsed = json.loads(line)
        except json.JSONDecodeError:
            parsed = None

        if parsed is not None:
            if isinstance(parsed, dict) and parsed.get("text") and parsed.get("source"):
                score = parsed.get("score")
                results.append(
                    SearchResult(
                        snippet=str(parsed["text"]),
                        source=str(parsed["source"]),
                        relevance=float(score) if isinstance(score, (int, float)) and score else DEFAULT_RELEVANCE,
                    )
                )
            continue

        if line.startswith("Source:"):
            source = line[len("Source:"):].strip()
            if source:
                results.append(SearchResult(snippet="", source=source))
        elif line.startswith("Text:") and results:
            text = line[len("Text:"):].strip()
            if text:
                results[-1].snippet = text
    return results


def filter_by_person(results: list[SearchResult], person: str) -> list[SearchResult]:
    return [r for r in results if person in f"{r.snippet} {r.source}".lower()]


def filter_by_date_range(
    results: list[SearchResult],
    after: str | None,
    before: str | None,
) -> list[SearchResult]:
    """Compare against the first YYYY-MM-DD in the source path; undated results are kept."""
    if not after and not before:
        return results
    kept = []
    for r in results:
        match = _DATE_IN_PATH.search(r.source)
        if not match:
            kept.append(r)
            continue
        day = match.group(1)
        if after and day < after:
            continue
        if before and day > before:
            continue
        kept.append(r)
    return kept


def search_memory(
    query: str,
    *,
    person: str | None = None,
    after: str | None = None,
    before: str | None = None,
    access_level: str | None = None,
    max_results: int = DEFAULT_MAX_RESULTS,
    config: MiriamConfig,
    runner: SearchRunner | None = None,
) -> list[SearchResult]:
    """Run the backend and apply the filters. Raises ValidationError on bad input."""
    if not query or not query.strip():
        raise ValidationError("Query cannot be empty")
    level = validate_search_access_level(access_level)
    after = validate_date(after)
    before = validate_date(before)
    canonical_person = normalize_person(person, config.search.person_aliases)
    if max_results < 0:
        raise ValidationError("maxResults must be non-negative")
    if max_results == 0:
        return []

    runner = runner or make_subprocess_runner(config.search)
    argv = build_search_command(
        query,
        level,
        max_results * 2,  # over-fetch, filters drop some
        search_dir=config.search_dir,
        python=config.search.python,
    )
    results = parse_search_output(runner(argv, config.search_dir))

    if canonical_person:
        results = filter_by_person(results, canonical_person)
    results = filter_by_date_range(results, after, before)
    return results[:max_results]


def memory_search(
    query: str,
    *,
    person: str | None = None,
    after: str | None = None,
    before: str | None = None,
    access_level: str | None = None,
    max_results: int = DEFAULT_MAX_RESULTS,
    workspace_root: Path | None = None,
    config: MiriamConfig | None = None,
    runner: SearchRunner | None = None,
) -> dict[str, Any]:
    """Agent-facing entry point; never raises."""
    if config is None:
        config = MiriamConfig(root=workspace_root or default_workspace())

    outcome = capture(
        search_memory,
        query,
        person=person,
        after=after,
        before=before,
        access_level=access_level,
        max_results=max_results,
        config=config,
        runner=runner,
    )

    def render(results: list[SearchResult]) -> dict[str, Any]:
        if max_results == 0:
            message = "maxResults set to 0"
        elif not results:
            message = "No results found for your query. Try broader search terms or different filters."
        else:
            message = f"Found {len(results)} result(s)"
        return {"results": [r.to_dict() for r in results], "message": message}

    return outcome.to_result(render)
