"""
Structured logging setup for the listing filter sync project.

All runtime logging goes through structlog and is emitted as JSON lines:

- `timestamp` (ISO 8601, UTC) and `level`
- `message`: the snake_case event name, e.g. `filter_action_applied`,
  `filter_loading_stuck`, `filter_reconciliation_restart`
- per-event keyword context (`filter_name`, `attempt`, `pass_number`, ...)
- run context bound once per reconciliation run via `bind_run_context`
  (`run_id`, `page_url`), so every line of a run can be correlated with the
  browser tab it drove

Warnings mark best-effort degradation (a filter left unreconciled, a page
reload, an exhausted pass budget); errors are left to the caller.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Mapping, Optional

import structlog


def _build_shared_processors() -> list[structlog.types.Processor]:
    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)

    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        timestamper,
        structlog.processors.EventRenamer("message"),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def _stream_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    log_stdout: bool = True,
) -> None:
    """
    Configure structlog and the standard logging module.

    Call once at process startup. When both log_stdout is False and log_file
    is unset, stdout is used anyway so the process never has zero handlers.
    """

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    if log_stdout:
        root.addHandler(_stream_handler(level))

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(file_handler)

    if not root.handlers:
        root.addHandler(_stream_handler(level))

    structlog.configure(
        processors=_build_shared_processors(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Obtain a structured logger.

    Usage:
        from shared.logging import get_logger

        logger = get_logger(__name__)
        logger.info("filter_reconciled", filter_name="Precio")
    """

    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(name) if name else structlog.get_logger()


def bind_run_context(
    *,
    run_id: Optional[str] = None,
    page_url: Optional[str] = None,
    **extra: Any,
) -> Mapping[str, Any]:
    """
    Bind context fields for every log line of a reconciliation run.

    Call once after attaching to the page, before the reconciler starts:

        bind_run_context(run_id=str(uuid4()), page_url=page.url)

    Extra keyword fields (e.g. `cdp_endpoint`) are bound alongside. None
    values are dropped to keep logs concise. Returns what was bound.
    """

    context: dict[str, Any] = {
        "run_id": run_id,
        "page_url": page_url,
        **extra,
    }
    filtered_context = {k: v for k, v in context.items() if v is not None}

    structlog.contextvars.bind_contextvars(**filtered_context)
    return filtered_context
