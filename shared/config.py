"""
Environment-based configuration for the listing filter sync project.

This module exposes a small, typed configuration surface shared by the
CLI and the filter reconciliation engine. All values are sourced from
environment variables with sensible, non-secret defaults.

No secrets are hard-coded here; local development can provide them via
python-dotenv.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, Optional

Environment = Literal["local", "dev", "staging", "prod"]

DEFAULT_LOADING_SELECTOR = "#listing-loading"


@dataclass(frozen=True)
class AppConfig:
    """
    Top-level application configuration.

    Timeouts mirror the filter timings of the scraper deployment
    (state click wait, listing loading timeout and poll interval).
    """

    environment: Environment
    log_level: str

    # Optional file path for structured JSON logs; when set, logs are written
    # to file (and stdout if log_stdout).
    log_file: Optional[str]
    log_stdout: bool

    # Declared filter configuration document (JSON).
    filters_config_path: str
    # DevTools endpoint of the already running browser.
    cdp_endpoint_url: str

    filter_state_click_wait_ms: int
    filter_listing_loading_timeout_ms: int
    filter_listing_loading_poll_interval_ms: int
    filter_panel_timeout_ms: int
    filter_panel_poll_interval_ms: int
    filter_loading_selector: str

    filter_max_full_passes: int
    filter_max_attempts: int

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Construct configuration from environment variables.

        All fields have defaults suitable for local development.
        """

        environment = os.getenv("APP_ENV", "local")

        if environment not in {"local", "dev", "staging", "prod"}:
            raise ValueError(f"Unsupported APP_ENV value: {environment!r}")

        def _bool_env(name: str, default: bool) -> bool:
            raw = (os.getenv(name) or str(default)).strip().lower()
            return raw in ("true", "1", "yes")

        def _positive_int_env(name: str, default: int) -> int:
            raw = (os.getenv(name) or "").strip()
            if not raw:
                return default
            try:
                value = int(raw)
            except ValueError:
                return default
            return value if value > 0 else default

        return cls(
            environment=environment,  # type: ignore[arg-type]
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
            log_stdout=_bool_env("LOG_STDOUT", True),
            filters_config_path=os.getenv("FILTERS_CONFIG_PATH", "environment.json"),
            cdp_endpoint_url=os.getenv("CDP_ENDPOINT_URL", "http://localhost:9222"),
            filter_state_click_wait_ms=_positive_int_env("FILTER_STATE_CLICK_WAIT_MS", 2000),
            filter_listing_loading_timeout_ms=_positive_int_env(
                "FILTER_LISTING_LOADING_TIMEOUT_MS", 10000
            ),
            filter_listing_loading_poll_interval_ms=_positive_int_env(
                "FILTER_LISTING_LOADING_POLL_INTERVAL_MS", 200
            ),
            filter_panel_timeout_ms=_positive_int_env("FILTER_PANEL_TIMEOUT_MS", 30000),
            filter_panel_poll_interval_ms=_positive_int_env("FILTER_PANEL_POLL_INTERVAL_MS", 500),
            filter_loading_selector=os.getenv("FILTER_LOADING_SELECTOR") or DEFAULT_LOADING_SELECTOR,
            filter_max_full_passes=_positive_int_env("FILTER_MAX_FULL_PASSES", 4),
            filter_max_attempts=_positive_int_env("FILTER_MAX_ATTEMPTS", 4),
        )


def get_config() -> AppConfig:
    """
    Helper to obtain the current configuration.

    Long-lived callers should construct a single `AppConfig` at startup and
    pass it explicitly.
    """

    return AppConfig.from_env()
