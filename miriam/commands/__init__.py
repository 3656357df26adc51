"""Command bodies for the miriam CLI. Each run_* function returns an exit code."""
