"""
Post-click stability: wait for the listing loading overlay to clear, or
reload the page when it does not.

settle() returning False means the page was reloaded and every assumption
made during the current reconciliation pass is void.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass

from scraper.filters.constants import (
    FILTER_PANEL_SELECTOR,
    LOADING_POLL_INTERVAL_MS,
    LOADING_TIMEOUT_MS,
    RELOAD_POLL_INTERVAL_MS,
    RELOAD_TIMEOUT_MS,
    SETTLE_DELAY_MS,
)
from scraper.filters.runtime import RuntimeClient, evaluate_value, wait_for_expression
from shared.config import DEFAULT_LOADING_SELECTOR, AppConfig
from shared.logging import get_logger

logger = get_logger(__name__)

# Marker set on the old document; the reloaded document does not carry it.
_RELOAD_MARKER = "__filterReloadPending"


@dataclass(frozen=True)
class StabilitySettings:
    settle_delay_ms: int = SETTLE_DELAY_MS
    loading_timeout_ms: int = LOADING_TIMEOUT_MS
    loading_poll_interval_ms: int = LOADING_POLL_INTERVAL_MS
    reload_timeout_ms: int = RELOAD_TIMEOUT_MS
    reload_poll_interval_ms: int = RELOAD_POLL_INTERVAL_MS
    loading_selector: str = DEFAULT_LOADING_SELECTOR
    panel_selector: str = FILTER_PANEL_SELECTOR

    @classmethod
    def from_config(cls, config: AppConfig) -> "StabilitySettings":
        return cls(
            settle_delay_ms=config.filter_state_click_wait_ms,
            loading_timeout_ms=config.filter_listing_loading_timeout_ms,
            loading_poll_interval_ms=config.filter_listing_loading_poll_interval_ms,
            reload_timeout_ms=config.filter_panel_timeout_ms,
            reload_poll_interval_ms=config.filter_panel_poll_interval_ms,
            loading_selector=config.filter_loading_selector,
        )


def _loading_visible_script(selector: str) -> str:
    return f"""(() => {{
  const element = document.querySelector({json.dumps(selector)});
  if (!element) {{
    return false;
  }}
  const style = window.getComputedStyle(element);
  const hasHiddenVisibility = style.display === 'none' || style.visibility === 'hidden' || style.opacity === '0';
  const hasNoGeometry = element.offsetParent === null && element.getClientRects().length === 0;
  return !(hasHiddenVisibility || hasNoGeometry);
}})()"""


class StabilityDetector:
    """Decides whether the page settled after a filter click."""

    def __init__(self, client: RuntimeClient, settings: StabilitySettings | None = None) -> None:
        self._client = client
        self._settings = settings or StabilitySettings()

    async def scroll_to_top(self) -> None:
        # The loading overlay is positioned in view only near the top of the page.
        await evaluate_value(self._client, "window.scrollTo(0, 0)")

    async def is_loading_visible(self) -> bool:
        value = await evaluate_value(self._client, _loading_visible_script(self._settings.loading_selector))
        return value is True

    async def wait_for_loading_to_clear(self) -> bool:
        """True when the overlay is hidden (or never shown) within the timeout."""
        deadline = time.monotonic() + self._settings.loading_timeout_ms / 1000
        while True:
            if not await self.is_loading_visible():
                return True
            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(self._settings.loading_poll_interval_ms / 1000)

    async def reload_page(self) -> None:
        """Force a reload and wait for the filter panel to come back."""
        await evaluate_value(
            self._client,
            f"(() => {{ window.{_RELOAD_MARKER} = true; setTimeout(() => window.location.reload(), 0); return true; }})()",
        )
        await wait_for_expression(
            self._client,
            f"document.readyState === 'complete' && !window.{_RELOAD_MARKER}"
            f" && Boolean(document.querySelector({json.dumps(self._settings.panel_selector)}))",
            self._settings.reload_timeout_ms,
            self._settings.reload_poll_interval_ms,
        )

    async def settle(self) -> bool:
        """
        Wait for the page to settle after a click.

        Returns True when stable. When the loading overlay is still visible
        after the timeout, reloads the page and returns False.
        """
        await asyncio.sleep(self._settings.settle_delay_ms / 1000)
        await self.scroll_to_top()
        if await self.wait_for_loading_to_clear():
            return True

        logger.warning(
            "filter_loading_stuck",
            loading_timeout_ms=self._settings.loading_timeout_ms,
            loading_selector=self._settings.loading_selector,
        )
        await self.reload_page()
        logger.info("filter_page_reloaded")
        return False
