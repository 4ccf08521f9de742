"""Unit tests for deadline delivery."""

from __future__ import annotations

import asyncio

import pytest

from hitl_flows.flows.scheduler import TimeoutScheduler


@pytest.mark.asyncio
async def test_timeout_is_delivered_once_with_the_flow_id() -> None:
    fired: list[str] = []
    scheduler = TimeoutScheduler(fired.append)

    scheduler.schedule("ctx", 0)
    assert scheduler.pending() == ["ctx"]
    await asyncio.sleep(0.01)

    assert fired == ["ctx"]
    assert scheduler.pending() == []


@pytest.mark.asyncio
async def test_cancelled_timeout_never_fires() -> None:
    fired: list[str] = []
    scheduler = TimeoutScheduler(fired.append)

    scheduler.schedule("ctx", 0)
    assert scheduler.cancel("ctx") is True
    assert scheduler.cancel("ctx") is False
    await asyncio.sleep(0.01)

    assert fired == []


@pytest.mark.asyncio
async def test_rescheduling_replaces_the_previous_deadline() -> None:
    fired: list[str] = []
    scheduler = TimeoutScheduler(fired.append)

    scheduler.schedule("ctx", 60)
    scheduler.schedule("ctx", 0)
    await asyncio.sleep(0.01)

    assert fired == ["ctx"]
    scheduler.shutdown()


@pytest.mark.asyncio
async def test_failing_handler_does_not_break_the_loop(caplog: pytest.LogCaptureFixture) -> None:
    def _boom(_flow_id: str) -> None:
        raise RuntimeError("boom")

    scheduler = TimeoutScheduler(_boom)
    scheduler.schedule("ctx", 0)
    await asyncio.sleep(0.01)

    assert "Timeout handler failed" in caplog.text


@pytest.mark.asyncio
async def test_negative_delay_is_rejected() -> None:
    scheduler = TimeoutScheduler(lambda _flow_id: None)
    with pytest.raises(ValueError):
        scheduler.schedule("ctx", -1)
