"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from miriam.config import MiriamConfig
from miriam.log import configure_logging


@pytest.fixture(autouse=True)
def stderr_logging() -> None:
    """Send log output to the current test's stderr so stdout stays parseable."""
    configure_logging("DEBUG")


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Empty workspace root."""
    root = tmp_path / "workspace"
    (root / "memory").mkdir(parents=True)
    return root


@pytest.fixture
def config(workspace: Path) -> MiriamConfig:
    """Default configuration pointed at the temp workspace."""
    return MiriamConfig(root=workspace)
