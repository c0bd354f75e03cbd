"""
Unit tests for remote evaluation over CDP.

Covers: Runtime.evaluate request/response mapping, exception reporting,
evaluate_value raising, wait_for_expression polling and timeout.
Uses AsyncMock sessions and clients; no browser required.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from scraper.filters.runtime import (
    CdpRuntimeClient,
    EvaluationResult,
    PageSyncTimeoutError,
    RemoteEvaluationError,
    evaluate_value,
    wait_for_expression,
)


def _client(*results: EvaluationResult) -> MagicMock:
    client = MagicMock()
    client.evaluate = AsyncMock(side_effect=list(results))
    return client


# --- CdpRuntimeClient ---


@pytest.mark.asyncio
async def test_cdp_client_sends_runtime_evaluate():
    session = MagicMock()
    session.send = AsyncMock(return_value={"result": {"type": "number", "value": 42}})
    client = CdpRuntimeClient(session)

    result = await client.evaluate("6 * 7", await_promise=True)

    assert result == EvaluationResult(value=42)
    session.send.assert_awaited_once_with(
        "Runtime.evaluate",
        {"expression": "6 * 7", "awaitPromise": True, "returnByValue": True},
    )


@pytest.mark.asyncio
async def test_cdp_client_maps_undefined_to_none():
    session = MagicMock()
    session.send = AsyncMock(return_value={"result": {"type": "undefined"}})
    result = await CdpRuntimeClient(session).evaluate("undefined")
    assert result.value is None
    assert result.exception is None


@pytest.mark.asyncio
async def test_cdp_client_reports_exception_details():
    session = MagicMock()
    session.send = AsyncMock(
        return_value={
            "result": {"type": "object", "subtype": "error"},
            "exceptionDetails": {
                "text": "Uncaught",
                "exception": {"description": "TypeError: x is not a function"},
            },
        }
    )
    result = await CdpRuntimeClient(session).evaluate("x()")
    assert result.value is None
    assert result.exception == "Uncaught TypeError: x is not a function"


@pytest.mark.asyncio
async def test_attach_opens_session_and_enables_runtime():
    session = MagicMock()
    session.send = AsyncMock(return_value={})
    page = MagicMock()
    page.context.new_cdp_session = AsyncMock(return_value=session)

    client = await CdpRuntimeClient.attach(page)

    assert isinstance(client, CdpRuntimeClient)
    page.context.new_cdp_session.assert_awaited_once_with(page)
    session.send.assert_awaited_once_with("Runtime.enable")


# --- evaluate_value ---


@pytest.mark.asyncio
async def test_evaluate_value_returns_value_and_awaits_promises():
    client = _client(EvaluationResult(value={"found": True}))
    assert await evaluate_value(client, "expr") == {"found": True}
    client.evaluate.assert_awaited_once_with("expr", await_promise=True, return_by_value=True)


@pytest.mark.asyncio
async def test_evaluate_value_raises_on_exception():
    client = _client(EvaluationResult(exception="ReferenceError: foo is not defined"))
    with pytest.raises(RemoteEvaluationError) as exc_info:
        await evaluate_value(client, "foo")
    assert "ReferenceError" in str(exc_info.value)
    assert exc_info.value.expression == "foo"


# --- wait_for_expression ---


@pytest.mark.asyncio
async def test_wait_for_expression_returns_once_true():
    client = _client(
        EvaluationResult(value=False),
        EvaluationResult(value=None),
        EvaluationResult(value=True),
    )
    await wait_for_expression(client, "ready", timeout_ms=5000, poll_interval_ms=1)
    assert client.evaluate.await_count == 3


@pytest.mark.asyncio
async def test_wait_for_expression_tolerates_errors_while_polling():
    """A context destroyed mid-reload counts as not ready yet."""
    client = _client(
        EvaluationResult(exception="Execution context was destroyed."),
        EvaluationResult(value=True),
    )
    await wait_for_expression(client, "ready", timeout_ms=5000, poll_interval_ms=1)
    assert client.evaluate.await_count == 2


@pytest.mark.asyncio
async def test_wait_for_expression_only_accepts_boolean_true():
    """Truthy non-boolean values do not end the wait."""
    client = MagicMock()
    client.evaluate = AsyncMock(return_value=EvaluationResult(value="true"))
    with pytest.raises(PageSyncTimeoutError):
        await wait_for_expression(client, "ready", timeout_ms=30, poll_interval_ms=5)


@pytest.mark.asyncio
async def test_wait_for_expression_times_out():
    client = MagicMock()
    client.evaluate = AsyncMock(return_value=EvaluationResult(value=False))
    with pytest.raises(PageSyncTimeoutError) as exc_info:
        await wait_for_expression(client, "ready", timeout_ms=30, poll_interval_ms=5)
    assert "ready" in str(exc_info.value)
    assert isinstance(exc_info.value, TimeoutError)
