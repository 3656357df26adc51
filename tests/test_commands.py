"""Tests for the run_* command bodies."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

from miriam.commands.access_cmd import run_bootstrap_filter
from miriam.commands.memory_cmd import run_memory_search
from miriam.commands.research_cmd import run_research_reset
from miriam.commands.tasks_cmd import run_tasks_execute, run_tasks_list
from miriam.config import MiriamConfig
from miriam.tools.tasks import CommandResult, TaskLog


def _backend(argv: Sequence[str], cwd: Path) -> str:
    return json.dumps({"text": "Planted garlic", "source": "memory/private/2026-02-01-daily.md", "score": 0.8})


def test_tasks_list_table(config: MiriamConfig, capsys) -> None:
    TaskLog(config.root).add("Water plants")

    exit_code = run_tasks_list(config)

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Water plants" in out
    assert "Tasks: 1 total" in out


def test_tasks_list_invalid_filter(config: MiriamConfig, capsys) -> None:
    assert run_tasks_list(config, status_filter="done") == 1
    assert "Invalid filter" in capsys.readouterr().err


def test_tasks_execute_with_fake_runner(config: MiriamConfig, capsys) -> None:
    TaskLog(config.root).add("Backup", command="backup.sh")

    exit_code = run_tasks_execute(config, runner=lambda command: CommandResult(success=True))

    assert exit_code == 0
    assert "Executed: 1" in capsys.readouterr().out


def test_bootstrap_filter_table(config: MiriamConfig, capsys) -> None:
    exit_code = run_bootstrap_filter(config, "agent:main:main", ["MEMORY.md"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "private" in out
    assert "added" in out


def test_memory_search_output(config: MiriamConfig, capsys) -> None:
    exit_code = run_memory_search(config, "garlic", runner=_backend)

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Planted garlic" in out
    assert "Found 1 result(s)" in out


def test_research_reset_without_log(config: MiriamConfig, capsys) -> None:
    assert run_research_reset(config) == 0
    assert "nothing to reset" in capsys.readouterr().out
    assert not config.usage_log_path.exists()
