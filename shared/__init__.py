"""
Shared utilities for the listing filter sync project.

- `shared.config` for environment-based configuration
- `shared.logging` for structlog-based structured logging
"""
