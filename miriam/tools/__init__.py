"""Agent-facing tools. Each module exposes one entry point returning a result dict."""
