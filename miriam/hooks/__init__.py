"""Host lifecycle hooks. Hooks fail open: an internal error never blocks the host."""
