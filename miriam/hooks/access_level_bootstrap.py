"""Bootstrap hook: filter the files loaded into a new session by access level.

Runs on ``agent:bootstrap`` events. The host pipes the event JSON on stdin
and reads the (possibly adjusted) event back from stdout:

    python -m miriam.hooks.access_level_bootstrap < event.json

Only ``context.bootstrapFiles`` is changed. Any failure leaves the list as
the host sent it.
"""

from __future__ import annotations

import json
import sys
from typing import Any

import structlog

from ..bootstrap import BootstrapFile, bootstrap_files_for_session
from ..config import MiriamConfig, load_config
from ..log import configure_logging

logger = structlog.get_logger(__name__)


def handle_event(event: dict[str, Any], config: MiriamConfig | None = None) -> dict[str, Any]:
    """Return ``event`` with its bootstrap files filtered. Other events pass through."""
    if event.get("type") != "agent" or event.get("action") != "bootstrap":
        return event

    context = event.get("context")
    if not isinstance(context, dict):
        return event
    workspace_dir = context.get("workspaceDir")
    files = context.get("bootstrapFiles")
    if not workspace_dir or not isinstance(files, list):
        logger.info("missing workspace or bootstrap files, skipping")
        return event

    session_key = event.get("sessionKey") or context.get("sessionKey") or ""
    access = config.access if config else None

    filtered = bootstrap_files_for_session(files, session_key, access, workspace_dir=workspace_dir)
    context["bootstrapFiles"] = [
        f.to_dict() if isinstance(f, BootstrapFile) else f for f in filtered
    ]
    logger.info("bootstrap files filtered", before=len(files), after=len(filtered))
    return event


def _load_config_fail_open(workspace_dir: Any) -> MiriamConfig | None:
    if not workspace_dir:
        return None
    try:
        return load_config(str(workspace_dir))
    except Exception as e:
        # A broken miriam.toml must not block startup; fall back to defaults
        logger.error("could not load config", error=str(e))
        return None


def main() -> None:
    try:
        event = json.load(sys.stdin)
    except json.JSONDecodeError:
        sys.exit(0)
    if not isinstance(event, dict):
        sys.exit(0)

    configure_logging()
    context = event.get("context") if isinstance(event.get("context"), dict) else {}
    config = _load_config_fail_open(context.get("workspaceDir"))
    if config is not None:
        configure_logging(config.logging.level, config.logging.format)

    print(json.dumps(handle_event(event, config)))  # noqa: T201


if __name__ == "__main__":
    main()
