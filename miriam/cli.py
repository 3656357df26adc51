"""CLI entrypoint for miriam."""

import sys
import tomllib
from pathlib import Path

import click

from . import __version__
from .config import load_config
from .errors import MiriamError
from .log import LOG_FORMATS, configure_logging
from .tools.capture import CAPTURE_TYPES
from .tools.memory_update import MemoryOperation
from .tools.research import PROVIDERS
from .tools.tasks import LIST_FILTERS, PRIORITIES, TASK_STATUSES
from .tools.threads import IMPORTANCE_LEVELS, THREAD_STATUSES

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@click.group()
@click.version_option(__version__, prog_name="miriam")
@click.option(
    "--workspace",
    "-w",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Workspace root (defaults to $MIRIAM_WORKSPACE or ~/.openclaw/workspace)",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Override [logging] level from miriam.toml",
)
@click.option(
    "--log-format",
    type=click.Choice(LOG_FORMATS),
    default=None,
    help="Override [logging] format from miriam.toml",
)
@click.pass_context
def cli(ctx: click.Context, workspace: Path | None, log_level: str | None, log_format: str | None) -> None:
    """miriam - memory, tasks and research tools for a personal assistant.

    Everything lives as flat files under the workspace root.
    """
    ctx.ensure_object(dict)
    try:
        config = load_config(workspace)
    except (MiriamError, tomllib.TOMLDecodeError) as e:
        raise click.ClickException(f"Invalid miriam.toml: {e}") from e

    configure_logging(log_level or config.logging.level, log_format or config.logging.format)
    ctx.obj["config"] = config


# -----------------------------------------------------------------------------
# Access


@cli.group()
def access() -> None:
    """Session access levels."""
    pass


@access.command("resolve")
@click.argument("session_key")
@click.pass_context
def access_resolve(ctx: click.Context, session_key: str) -> None:
    """Print the access level for SESSION_KEY.

    Example:

        miriam access resolve agent:main:telegram:dm:192802611
    """
    from .commands.access_cmd import run_access_resolve

    sys.exit(run_access_resolve(ctx.obj["config"], session_key))


@cli.group()
def bootstrap() -> None:
    """Bootstrap file filtering."""
    pass


@bootstrap.command("filter")
@click.argument("session_key")
@click.argument("files", nargs=-1)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def bootstrap_filter(ctx: click.Context, session_key: str, files: tuple[str, ...], output_json: bool) -> None:
    """Show which FILES a session with SESSION_KEY would load."""
    from .commands.access_cmd import run_bootstrap_filter

    sys.exit(run_bootstrap_filter(ctx.obj["config"], session_key, files, output_json=output_json))


# -----------------------------------------------------------------------------
# Tasks and capture


@cli.group()
def tasks() -> None:
    """Task log (memory/tasks.jsonl)."""
    pass


@tasks.command("list")
@click.option(
    "--filter",
    "status_filter",
    type=click.Choice(LIST_FILTERS),
    default="all",
    help="Only show tasks with this status",
)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def tasks_list(ctx: click.Context, status_filter: str, output_json: bool) -> None:
    """List the current version of every task."""
    from .commands.tasks_cmd import run_tasks_list

    sys.exit(run_tasks_list(ctx.obj["config"], status_filter=status_filter, output_json=output_json))


@tasks.command("add")
@click.argument("content")
@click.option("--priority", type=click.Choice(PRIORITIES), default=None, help="Task priority (default: medium)")
@click.option("--command", "command", type=str, default=None, help="Shell command the executor runs")
@click.option("--due", "due_date", type=str, default=None, help="YYYY-MM-DD, today, tomorrow or 'next week'")
@click.pass_context
def tasks_add(
    ctx: click.Context,
    content: str,
    priority: str | None,
    command: str | None,
    due_date: str | None,
) -> None:
    """Add a pending task."""
    from .commands.tasks_cmd import run_tasks_add

    sys.exit(run_tasks_add(ctx.obj["config"], content, priority=priority, command=command, due_date=due_date))


@tasks.command("status")
@click.argument("task_id")
@click.argument("status", type=click.Choice(TASK_STATUSES))
@click.pass_context
def tasks_status(ctx: click.Context, task_id: str, status: str) -> None:
    """Set the status of TASK_ID."""
    from .commands.tasks_cmd import run_tasks_status

    sys.exit(run_tasks_status(ctx.obj["config"], task_id, status))


@tasks.command("execute")
@click.pass_context
def tasks_execute(ctx: click.Context) -> None:
    """Run every due pending task's command.

    Tasks whose command succeeds are marked completed; failures stay pending.
    """
    from .commands.tasks_cmd import run_tasks_execute

    sys.exit(run_tasks_execute(ctx.obj["config"]))


@cli.command()
@click.argument("capture_type", type=click.Choice(CAPTURE_TYPES))
@click.argument("content")
@click.option("--priority", type=click.Choice(PRIORITIES), default=None)
@click.option("--context", "context", type=str, default=None, help="Extra context (the question, for threads)")
@click.option("--command", "command", type=str, default=None, help="Shell command (tasks only)")
@click.option("--due", "due_date", type=str, default=None, help="Due/revisit date")
@click.pass_context
def capture(
    ctx: click.Context,
    capture_type: str,
    content: str,
    priority: str | None,
    context: str | None,
    command: str | None,
    due_date: str | None,
) -> None:
    """Quickly capture a task, uncertainty, thread or note.

    Examples:

        miriam capture task "Renew passport" --due "next week"

        miriam capture note "Heat pump serviced"
    """
    from .commands.tasks_cmd import run_capture

    sys.exit(
        run_capture(
            ctx.obj["config"],
            content,
            capture_type,
            priority=priority,
            context=context,
            command=command,
            due_date=due_date,
        )
    )


# -----------------------------------------------------------------------------
# Threads


@cli.group()
def threads() -> None:
    """Conversation threads to revisit."""
    pass


@threads.command("mark")
@click.argument("topic")
@click.argument("question")
@click.option("--when", type=str, default=None, help="Revisit date: YYYY-MM-DD, today, tomorrow or 'next week'")
@click.option("--importance", type=click.Choice(IMPORTANCE_LEVELS), default=None)
@click.pass_context
def threads_mark(ctx: click.Context, topic: str, question: str, when: str | None, importance: str | None) -> None:
    """Mark TOPIC with an open QUESTION."""
    from .commands.threads_cmd import run_threads_mark

    sys.exit(run_threads_mark(ctx.obj["config"], topic, question, when=when, importance=importance))


@threads.command("list")
@click.option(
    "--status",
    type=click.Choice((*THREAD_STATUSES, "all")),
    default="open",
    help="Only show threads with this status",
)
@click.option("--due-by", type=str, default=None, help="Only threads to revisit on/before YYYY-MM-DD")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def threads_list(ctx: click.Context, status: str, due_by: str | None, output_json: bool) -> None:
    """List threads."""
    from .commands.threads_cmd import run_threads_list

    sys.exit(run_threads_list(ctx.obj["config"], status=status, due_by=due_by, output_json=output_json))


@threads.command("resolve")
@click.argument("thread_id")
@click.pass_context
def threads_resolve(ctx: click.Context, thread_id: str) -> None:
    """Mark THREAD_ID resolved."""
    from .commands.threads_cmd import run_threads_resolve

    sys.exit(run_threads_resolve(ctx.obj["config"], thread_id))


# -----------------------------------------------------------------------------
# Diary


@cli.group()
def diary() -> None:
    """Personal reflections (memory/diary.jsonl)."""
    pass


@diary.command("write")
@click.argument("reflections")
@click.option("--mood", type=str, default=None)
@click.option("--energy", type=str, default=None)
@click.option("--gratitude", multiple=True, help="Repeatable")
@click.option("--learning", "learnings", multiple=True, help="Repeatable")
@click.option("--tag", "tags", multiple=True, help="Repeatable")
@click.pass_context
def diary_write(
    ctx: click.Context,
    reflections: str,
    mood: str | None,
    energy: str | None,
    gratitude: tuple[str, ...],
    learnings: tuple[str, ...],
    tags: tuple[str, ...],
) -> None:
    """Write a diary entry (at least 50 characters)."""
    from .commands.diary_cmd import run_diary_write

    sys.exit(
        run_diary_write(
            ctx.obj["config"],
            reflections,
            mood=mood,
            energy=energy,
            gratitude=gratitude,
            learnings=learnings,
            tags=tags,
        )
    )


@diary.command("read")
@click.option("--limit", type=int, default=10, help="Max entries to show")
@click.option("--after", type=str, default=None, help="YYYY-MM-DD (inclusive)")
@click.option("--before", type=str, default=None, help="YYYY-MM-DD (inclusive)")
@click.option("--mood", type=str, default=None)
@click.option("--tag", type=str, default=None)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def diary_read(
    ctx: click.Context,
    limit: int,
    after: str | None,
    before: str | None,
    mood: str | None,
    tag: str | None,
    output_json: bool,
) -> None:
    """Read diary entries, newest first."""
    from .commands.diary_cmd import run_diary_read

    sys.exit(
        run_diary_read(
            ctx.obj["config"],
            limit=limit,
            after=after,
            before=before,
            mood=mood,
            tag=tag,
            output_json=output_json,
        )
    )


@diary.command("stats")
@click.option("--days", type=int, default=30, help="Look-back window")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def diary_stats(ctx: click.Context, days: int, output_json: bool) -> None:
    """Summarize recent diary entries."""
    from .commands.diary_cmd import run_diary_stats

    sys.exit(run_diary_stats(ctx.obj["config"], days=days, output_json=output_json))


# -----------------------------------------------------------------------------
# Research


@cli.group()
def research() -> None:
    """Deep Research quota and provider routing."""
    pass


@research.command("quota")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def research_quota(ctx: click.Context, output_json: bool) -> None:
    """Show today's Deep Research usage."""
    from .commands.research_cmd import run_research_quota

    sys.exit(run_research_quota(ctx.obj["config"], output_json=output_json))


@research.command("route")
@click.option("--force-deep", is_flag=True, help="Always use Deep Research")
@click.option("--force-perplexity", is_flag=True, help="Always use Perplexity")
@click.pass_context
def research_route(ctx: click.Context, force_deep: bool, force_perplexity: bool) -> None:
    """Pick the provider for the next research query."""
    from .commands.research_cmd import run_research_route

    if force_deep and force_perplexity:
        raise click.UsageError("--force-deep and --force-perplexity are mutually exclusive")
    sys.exit(run_research_route(ctx.obj["config"], force_deep=force_deep, force_perplexity=force_perplexity))


@research.command("log")
@click.argument("provider", type=click.Choice(PROVIDERS))
@click.argument("query")
@click.pass_context
def research_log(ctx: click.Context, provider: str, query: str) -> None:
    """Record one PROVIDER call for QUERY."""
    from .commands.research_cmd import run_research_log

    sys.exit(run_research_log(ctx.obj["config"], provider, query))


@research.command("reset")
@click.pass_context
def research_reset(ctx: click.Context) -> None:
    """Reset today's Deep Research quota."""
    from .commands.research_cmd import run_research_reset

    sys.exit(run_research_reset(ctx.obj["config"]))


# -----------------------------------------------------------------------------
# Memory


@cli.group()
def memory() -> None:
    """MEMORY.md and memory/ files."""
    pass


@memory.command("update")
@click.argument("rel_path")
@click.argument("operation", type=click.Choice([op.value for op in MemoryOperation]))
@click.argument("content")
@click.pass_context
def memory_update(ctx: click.Context, rel_path: str, operation: str, content: str) -> None:
    """Apply OPERATION with CONTENT to the workspace-relative REL_PATH.

    Example:

        miriam memory update memory/private/people.md append "- Likes tea"
    """
    from .commands.memory_cmd import run_memory_update

    sys.exit(run_memory_update(ctx.obj["config"], rel_path, operation, content))


@memory.command("search")
@click.argument("query")
@click.option("--person", type=str, default=None)
@click.option("--after", type=str, default=None, help="YYYY-MM-DD")
@click.option("--before", type=str, default=None, help="YYYY-MM-DD")
@click.option("--access-level", type=click.Choice(("private", "family", "trusted", "public")), default=None)
@click.option("--max-results", type=int, default=5)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def memory_search(
    ctx: click.Context,
    query: str,
    person: str | None,
    after: str | None,
    before: str | None,
    access_level: str | None,
    max_results: int,
    output_json: bool,
) -> None:
    """Search memory through the external search backend."""
    from .commands.memory_cmd import run_memory_search

    sys.exit(
        run_memory_search(
            ctx.obj["config"],
            query,
            person=person,
            after=after,
            before=before,
            access_level=access_level,
            max_results=max_results,
            output_json=output_json,
        )
    )


# -----------------------------------------------------------------------------
# Dashboard and emotional state


@cli.group()
def dashboard() -> None:
    """Household dashboard note."""
    pass


@dashboard.command("set")
@click.argument("message")
@click.option("--emoji", type=str, default="")
@click.pass_context
def dashboard_set(ctx: click.Context, message: str, emoji: str) -> None:
    """Replace the dashboard note."""
    from .commands.state_cmd import run_dashboard_set

    sys.exit(run_dashboard_set(ctx.obj["config"], message, emoji))


@dashboard.command("show")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def dashboard_show(ctx: click.Context, output_json: bool) -> None:
    """Show the current dashboard note."""
    from .commands.state_cmd import run_dashboard_show

    sys.exit(run_dashboard_show(ctx.obj["config"], output_json=output_json))


@cli.group()
def emotion() -> None:
    """Emotional state carried across wakes."""
    pass


@emotion.command("show")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def emotion_show(ctx: click.Context, output_json: bool) -> None:
    """Show the current emotional state (initializing it if missing)."""
    from .commands.state_cmd import run_emotion_show

    sys.exit(run_emotion_show(ctx.obj["config"], output_json=output_json))


@emotion.command("update")
@click.option("--primary", type=str, default=None)
@click.option("--secondary", type=str, default=None)
@click.option("--background", type=str, default=None)
@click.option("--threads", "threads_", type=str, default=None, help="Threads to pick up next wake")
@click.option("--question", type=str, default=None, help="Question for the next wake")
@click.pass_context
def emotion_update(
    ctx: click.Context,
    primary: str | None,
    secondary: str | None,
    background: str | None,
    threads_: str | None,
    question: str | None,
) -> None:
    """Update the emotional state; --threads/--question record a wake."""
    from .commands.state_cmd import run_emotion_update

    sys.exit(
        run_emotion_update(
            ctx.obj["config"],
            primary=primary,
            secondary=secondary,
            background=background,
            threads=threads_,
            question=question,
        )
    )


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
