"""
Shared utilities for the ranking snapper.

This package is intentionally small and focused. It provides:

- `shared.config` for environment-based configuration
- `shared.logging` for structlog-based structured logging
- `shared.slack` for Slack webhook notifications

Keep snapper-specific scraping logic out of this package.
"""
