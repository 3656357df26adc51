"""
Research routing between Deep Research and Perplexity.

Deep Research has a daily quota. Every provider call is recorded in an
append-only usage log (research/usage.jsonl); the quota for a day is the
number of deep-research entries logged that day.

Resetting the quota appends a reset marker instead of deleting lines: only
deep-research entries after the day's last reset marker count. The usage
log therefore stays append-only like every other log in the workspace.

Results are saved twice, as markdown (for humans) and JSON (for tools),
under results/<date>/<NNN>_<slug>.
"""

from __future__ import annotations

import json
import re
import uuid
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import structlog

from ..config import ResearchConfig
from ..dates import iso_now, today_str
from ..errors import ValidationError
from ..fs import atomic_write
from ..logstore import AppendLogStore

logger = structlog.get_logger(__name__)

DEEP_RESEARCH = "deep-research"
PERPLEXITY = "perplexity"
PROVIDERS = (DEEP_RESEARCH, PERPLEXITY)

RESET_KIND = "reset"

_COUNTER_RE = re.compile(r"^(\d{3})_")
_SLUG_MAX = 50


@dataclass
class QuotaInfo:
    limit: int
    used: int
    remaining: int
    can_use_deep_research: bool


@dataclass
class RouteDecision:
    provider: str
    reason: str


@dataclass
class ResearchResult:
    provider: str
    query: str
    answer: str
    citations: list[str] = field(default_factory=list)
    timestamp: str = field(default_factory=iso_now)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _store(log_path: Path) -> AppendLogStore:
    return AppendLogStore(log_path, required=("id", "date"))


def count_usage(log_path: Path, day: str, provider: str = DEEP_RESEARCH) -> int:
    """Entries for ``provider`` on ``day`` since that day's last reset marker."""
    used = 0
    for record in _store(log_path).read_all().records:
        if record.get("date") != day:
            continue
        if record.get("kind") == RESET_KIND:
            used = 0
        elif record.get("provider") == provider:
            used += 1
    return used


def check_quota(config: ResearchConfig, log_path: Path, *, today: str | None = None) -> QuotaInfo:
    limit = config.daily_deep_research_limit
    used = count_usage(log_path, today or today_str())
    remaining = max(0, limit - used)
    return QuotaInfo(limit=limit, used=used, remaining=remaining, can_use_deep_research=remaining > 0)


def route_research(
    config: ResearchConfig,
    log_path: Path,
    *,
    force_deep: bool = False,
    force_perplexity: bool = False,
    today: str | None = None,
) -> RouteDecision:
    """
    Pick a provider for the next query.

    Raises ValidationError when the quota is spent and the Perplexity
    fallback is switched off.
    """
    if force_deep:
        return RouteDecision(DEEP_RESEARCH, "forced")
    if force_perplexity:
        return RouteDecision(PERPLEXITY, "forced")

    quota = check_quota(config, log_path, today=today)
    if quota.can_use_deep_research:
        return RouteDecision(DEEP_RESEARCH, "under quota")
    if not config.perplexity_fallback:
        raise ValidationError(
            f"Deep Research quota exceeded ({quota.used}/{quota.limit}) and Perplexity fallback is disabled"
        )
    return RouteDecision(PERPLEXITY, "quota exceeded")


def log_usage(log_path: Path, provider: str, query: str) -> dict[str, Any]:
    """Append one usage entry."""
    if provider not in PROVIDERS:
        raise ValidationError(f"Invalid provider: {provider}. Must be one of: {', '.join(PROVIDERS)}")
    now = iso_now()
    entry = {
        "id": str(uuid.uuid4()),
        "date": now[:10],
        "timestamp": now,
        "provider": provider,
        "query": query,
    }
    return _store(log_path).append(entry)


def reset_daily_quota(log_path: Path, *, today: str | None = None) -> dict[str, Any] | None:
    """Start today's count from zero. No-op when there is no usage log yet."""
    if not log_path.exists():
        return None
    now = iso_now()
    marker = {
        "id": str(uuid.uuid4()),
        "date": today or now[:10],
        "timestamp": now,
        "kind": RESET_KIND,
    }
    logger.info("research quota reset", date=marker["date"])
    return _store(log_path).append(marker)


def slugify(query: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", query.lower()).strip("-")
    return slug[:_SLUG_MAX]


def next_counter(directory: Path) -> int:
    """One more than the highest NNN_ prefix in ``directory`` (1 when empty)."""
    if not directory.is_dir():
        return 1
    counters: list[int] = []
    for p in directory.iterdir():
        match = _COUNTER_RE.match(p.name)
        if match and int(match.group(1)) > 0:
            counters.append(int(match.group(1)))
    return max(counters) + 1 if counters else 1


def format_markdown(result: ResearchResult) -> str:
    lines = [
        "# Research Result",
        "",
        f"**Query:** {result.query}",
        "",
        f"**Provider:** {result.provider}",
        "",
        f"**Timestamp:** {result.timestamp}",
        "",
        "---",
        "",
        "## Answer",
        "",
        result.answer,
        "",
    ]
    if result.citations:
        lines.extend(["## Citations", ""])
        for i, citation in enumerate(result.citations, start=1):
            lines.append(f"{i}. {citation}")
        lines.append("")
    return "\n".join(lines) + "\n"


def save_result(result_dir: Path, result: ResearchResult) -> Path:
    """Write the result as markdown + JSON. Returns the markdown path."""
    date_dir = result_dir / result.timestamp[:10]
    date_dir.mkdir(parents=True, exist_ok=True)

    base = f"{next_counter(date_dir):03d}_{slugify(result.query)}"
    md_path = date_dir / f"{base}.md"
    json_path = date_dir / f"{base}.json"

    atomic_write(md_path, format_markdown(result))
    atomic_write(json_path, json.dumps(result.to_dict(), indent=2, ensure_ascii=False) + "\n")
    return md_path
