"""
Remote script evaluation: the single capability the filter engine uses.

Every read and every mutation of the filter panel is a Runtime.evaluate call
on the current page. CdpRuntimeClient sends it through a Playwright CDP
session; tests substitute any object with the same evaluate() coroutine.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from playwright.async_api import CDPSession, Page
from playwright.async_api import Error as PlaywrightError

from shared.logging import get_logger

logger = get_logger(__name__)


class RemoteEvaluationError(RuntimeError):
    """The page reported an exception while evaluating an expression."""

    def __init__(self, message: str, expression: str = "") -> None:
        super().__init__(message)
        self.expression = expression


class PageSyncTimeoutError(TimeoutError):
    """A bounded wait on page state expired."""


@dataclass(frozen=True)
class EvaluationResult:
    value: Any = None
    exception: Optional[str] = None


class RuntimeClient(Protocol):
    async def evaluate(
        self,
        expression: str,
        *,
        await_promise: bool = False,
        return_by_value: bool = True,
    ) -> EvaluationResult: ...


def _exception_text(details: dict[str, Any]) -> str:
    """Combine CDP exceptionDetails text and description into one message."""
    text = details.get("text") or "Evaluation failed"
    exception = details.get("exception") or {}
    description = exception.get("description") if isinstance(exception, dict) else None
    if description and description not in text:
        return f"{text} {description}"
    return text


class CdpRuntimeClient:
    """RuntimeClient backed by a Chrome DevTools Protocol session."""

    def __init__(self, session: CDPSession) -> None:
        self._session = session

    @classmethod
    async def attach(cls, page: Page) -> "CdpRuntimeClient":
        session = await page.context.new_cdp_session(page)
        await session.send("Runtime.enable")
        return cls(session)

    async def evaluate(
        self,
        expression: str,
        *,
        await_promise: bool = False,
        return_by_value: bool = True,
    ) -> EvaluationResult:
        response = await self._session.send(
            "Runtime.evaluate",
            {
                "expression": expression,
                "awaitPromise": await_promise,
                "returnByValue": return_by_value,
            },
        )
        details = response.get("exceptionDetails")
        if details:
            return EvaluationResult(exception=_exception_text(details))
        result = response.get("result") or {}
        return EvaluationResult(value=result.get("value"))


async def evaluate_value(client: RuntimeClient, expression: str) -> Any:
    """
    Evaluate an expression by value, awaiting promises.

    Raises RemoteEvaluationError when the page reports an exception; returns
    None when the expression produced no value.
    """
    result = await client.evaluate(expression, await_promise=True, return_by_value=True)
    if result.exception:
        raise RemoteEvaluationError(result.exception, expression=expression)
    return result.value


async def wait_for_expression(
    client: RuntimeClient,
    expression: str,
    timeout_ms: int,
    poll_interval_ms: int,
) -> None:
    """
    Poll until the expression evaluates to true.

    Evaluation failures while polling (context destroyed by a reload in
    flight) count as "not yet". Raises PageSyncTimeoutError on timeout.
    """
    deadline = time.monotonic() + timeout_ms / 1000
    while time.monotonic() < deadline:
        try:
            if await evaluate_value(client, expression) is True:
                return
        except (RemoteEvaluationError, PlaywrightError) as e:
            logger.debug("wait_for_expression_poll_failed", error=str(e), error_type=type(e).__name__)
        await asyncio.sleep(poll_interval_ms / 1000)
    raise PageSyncTimeoutError(f"Timeout waiting for expression: {expression}")
