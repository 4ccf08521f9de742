"""Deadline delivery for flows.

A thin layer over the running asyncio loop: each flow gets at most one pending
timer, and firing it calls the handler with the flow id.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

TimeoutHandler = Callable[[str], object]


class TimeoutScheduler:
    def __init__(self, handler: TimeoutHandler) -> None:
        self._handler = handler
        self._timers: dict[str, asyncio.TimerHandle] = {}

    def schedule(self, flow_id: str, delay_seconds: float) -> None:
        """Deliver a timeout for `flow_id` after `delay_seconds`.

        Must be called from a coroutine or callback running on the event loop.
        Rescheduling a flow replaces its previous deadline.
        """

        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        loop = asyncio.get_running_loop()
        self.cancel(flow_id)
        self._timers[flow_id] = loop.call_later(delay_seconds, self._fire, flow_id)
        logger.debug(
            "Timeout scheduled", extra={"flow_id": flow_id, "delay_seconds": delay_seconds}
        )

    def _fire(self, flow_id: str) -> None:
        self._timers.pop(flow_id, None)
        try:
            self._handler(flow_id)
        except Exception:
            logger.exception("Timeout handler failed", extra={"flow_id": flow_id})

    def cancel(self, flow_id: str) -> bool:
        timer = self._timers.pop(flow_id, None)
        if timer is None:
            return False
        timer.cancel()
        return True

    def pending(self) -> list[str]:
        return list(self._timers)

    def shutdown(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
