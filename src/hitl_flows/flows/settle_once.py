"""A single-assignment cell for step answers.

The cell knows nothing about flows or HTTP. It records exactly one outcome (a
value or an abort reason) and notifies whoever is waiting. Waiting is bridged to
asyncio in :meth:`SettleOnce.wait`, but callers on other threads may settle the
cell; wake-ups are marshalled onto the waiter's loop with
``call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    """The settled state of a cell.

    Exactly one of `value` (answered) or `reason` (aborted) is meaningful.
    """

    value: T | None = None
    reason: str | None = None

    @property
    def aborted(self) -> bool:
        return self.reason is not None


class AlreadySettled(RuntimeError):
    pass


DoneCallback = Callable[[Outcome[T]], None]


class SettleOnce(Generic[T]):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._outcome: Outcome[T] | None = None
        self._callbacks: list[DoneCallback[T]] = []

    def done(self) -> bool:
        return self._outcome is not None

    def outcome(self) -> Outcome[T] | None:
        return self._outcome

    def set_value(self, value: T) -> None:
        self._assign(Outcome(value=value))

    def set_aborted(self, reason: str) -> None:
        self._assign(Outcome(reason=reason))

    def _assign(self, outcome: Outcome[T]) -> None:
        with self._lock:
            if self._outcome is not None:
                raise AlreadySettled("Cell already settled")
            self._outcome = outcome
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(outcome)

    def add_done_callback(self, callback: DoneCallback[T]) -> None:
        with self._lock:
            outcome = self._outcome
            if outcome is None:
                self._callbacks.append(callback)
                return
        callback(outcome)

    def remove_done_callback(self, callback: DoneCallback[T]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    async def wait(self) -> Outcome[T]:
        """Suspend the current task until the cell is settled."""

        loop = asyncio.get_running_loop()
        future: asyncio.Future[Outcome[T]] = loop.create_future()

        def _resolve(outcome: Outcome[T]) -> None:
            if not future.done():
                future.set_result(outcome)

        def _on_done(outcome: Outcome[T]) -> None:
            try:
                loop.call_soon_threadsafe(_resolve, outcome)
            except RuntimeError:
                # The waiter's loop is closed; nobody is left to wake.
                pass

        self.add_done_callback(_on_done)
        try:
            return await future
        finally:
            self.remove_done_callback(_on_done)
