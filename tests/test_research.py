"""Tests for research quota, routing and result storage."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from miriam.config import ResearchConfig
from miriam.dates import today_str
from miriam.errors import ValidationError
from miriam.tools.research import (
    DEEP_RESEARCH,
    PERPLEXITY,
    ResearchResult,
    check_quota,
    count_usage,
    log_usage,
    next_counter,
    reset_daily_quota,
    route_research,
    save_result,
    slugify,
)


@pytest.fixture
def usage_log(tmp_path: Path) -> Path:
    return tmp_path / "research" / "usage.jsonl"


def test_quota_counts_todays_deep_research_only(usage_log: Path) -> None:
    log_usage(usage_log, DEEP_RESEARCH, "q1")
    log_usage(usage_log, DEEP_RESEARCH, "q2")
    log_usage(usage_log, PERPLEXITY, "q3")
    with usage_log.open("a", encoding="utf-8") as f:
        f.write(json.dumps({"id": "old", "date": "2020-01-01", "provider": DEEP_RESEARCH}) + "\n")

    quota = check_quota(ResearchConfig(daily_deep_research_limit=5), usage_log)

    assert (quota.used, quota.remaining, quota.can_use_deep_research) == (2, 3, True)


def test_route_under_and_over_quota(usage_log: Path) -> None:
    config = ResearchConfig(daily_deep_research_limit=1)
    assert route_research(config, usage_log).reason == "under quota"

    log_usage(usage_log, DEEP_RESEARCH, "q")
    decision = route_research(config, usage_log)
    assert (decision.provider, decision.reason) == (PERPLEXITY, "quota exceeded")


def test_route_forced(usage_log: Path) -> None:
    config = ResearchConfig(daily_deep_research_limit=0)
    assert route_research(config, usage_log, force_deep=True).provider == DEEP_RESEARCH
    assert route_research(config, usage_log, force_perplexity=True).reason == "forced"


def test_route_without_fallback_raises(usage_log: Path) -> None:
    config = ResearchConfig(daily_deep_research_limit=0, perplexity_fallback=False)
    with pytest.raises(ValidationError, match="quota exceeded"):
        route_research(config, usage_log)


def test_reset_appends_marker(usage_log: Path) -> None:
    assert reset_daily_quota(usage_log) is None

    log_usage(usage_log, DEEP_RESEARCH, "q1")
    log_usage(usage_log, DEEP_RESEARCH, "q2")
    marker = reset_daily_quota(usage_log)
    log_usage(usage_log, DEEP_RESEARCH, "q3")

    assert marker["kind"] == "reset"
    assert count_usage(usage_log, today_str()) == 1
    assert len(usage_log.read_text(encoding="utf-8").splitlines()) == 4


def test_log_usage_rejects_unknown_provider(usage_log: Path) -> None:
    with pytest.raises(ValidationError, match="Invalid provider"):
        log_usage(usage_log, "google", "q")


def test_slugify() -> None:
    assert slugify("What's the best heat pump?!") == "what-s-the-best-heat-pump"
    assert len(slugify("word " * 40)) <= 50


def test_save_result_numbers_files(tmp_path: Path) -> None:
    result = ResearchResult(
        provider=PERPLEXITY,
        query="Heat pumps in cold climates",
        answer="They work down to -25C.",
        citations=["https://example.org/a"],
        timestamp="2026-02-04T10:00:00.000Z",
    )

    first = save_result(tmp_path, result)
    second = save_result(tmp_path, result)

    assert first == tmp_path / "2026-02-04" / "001_heat-pumps-in-cold-climates.md"
    assert second.name == "002_heat-pumps-in-cold-climates.md"
    md = first.read_text(encoding="utf-8")
    assert "**Query:** Heat pumps in cold climates" in md
    assert "1. https://example.org/a" in md
    data = json.loads(first.with_suffix(".json").read_text(encoding="utf-8"))
    assert data["answer"] == "They work down to -25C."
    assert next_counter(tmp_path / "2026-02-04") == 3
    assert next_counter(tmp_path / "missing") == 1
