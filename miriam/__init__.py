"""miriam - flat-file memory tools and hooks for a personal assistant plugin."""

__version__ = "1.0.0"

# Tool names exposed to the host runtime
TOOLS = (
    "emotional-state",
    "memory-update",
    "research",
    "dashboard-note",
    "memory-search",
    "quick-capture",
    "thread-marker",
    "task-executor",
    "diary",
)

HOOKS = (
    "access-level-bootstrap",
    "knowledge-extraction",
)
