"""Research quota and routing commands."""

from __future__ import annotations

import json
from dataclasses import asdict

from rich.console import Console

from ..config import MiriamConfig
from ..errors import MiriamError
from ..tools.research import check_quota, log_usage, reset_daily_quota, route_research


def run_research_quota(config: MiriamConfig, *, output_json: bool = False) -> int:
    console = Console()
    quota = check_quota(config.research, config.usage_log_path)

    if output_json:
        print(json.dumps(asdict(quota), indent=2))
        return 0

    style = "green" if quota.can_use_deep_research else "yellow"
    console.print(f"Deep Research: {quota.used}/{quota.limit} used, {quota.remaining} remaining", style=style)
    return 0


def run_research_route(
    config: MiriamConfig,
    *,
    force_deep: bool = False,
    force_perplexity: bool = False,
) -> int:
    console = Console()
    err = Console(stderr=True)
    try:
        decision = route_research(
            config.research,
            config.usage_log_path,
            force_deep=force_deep,
            force_perplexity=force_perplexity,
        )
    except MiriamError as e:
        err.print(str(e), style="bold red")
        return 1
    console.print(f"{decision.provider} ({decision.reason})")
    return 0


def run_research_log(config: MiriamConfig, provider: str, query: str) -> int:
    console = Console()
    err = Console(stderr=True)
    try:
        log_usage(config.usage_log_path, provider, query)
    except MiriamError as e:
        err.print(str(e), style="bold red")
        return 1
    console.print(f"Logged {provider} usage", style="green")
    return 0


def run_research_reset(config: MiriamConfig) -> int:
    console = Console()
    marker = reset_daily_quota(config.usage_log_path)
    if marker is None:
        console.print("No usage log yet, nothing to reset.", style="dim")
    else:
        console.print(f"Deep Research quota reset for {marker['date']}", style="green")
    return 0
