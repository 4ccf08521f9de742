"""Explicit state machines for steps and flows.

Both machines share one status vocabulary. Every member of :class:`Status` is a
key in each transition table, so a status that was never given a row fails loudly
instead of silently allowing nothing.
"""

from __future__ import annotations

from enum import Enum


class Status(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    DONE = "done"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: frozenset[Status] = frozenset({Status.DONE, Status.ABORTED})


# A step may be answered before anyone has rendered it, so NOT_STARTED can jump
# straight to a terminal status.
STEP_TRANSITIONS: dict[Status, set[Status]] = {
    Status.NOT_STARTED: {Status.IN_PROGRESS, Status.DONE, Status.ABORTED},
    Status.IN_PROGRESS: {Status.DONE, Status.ABORTED},
    Status.DONE: set(),
    Status.ABORTED: set(),
}

# A flow becomes IN_PROGRESS when its first step is appended. `end()` may be
# called on a flow that never requested input.
FLOW_TRANSITIONS: dict[Status, set[Status]] = {
    Status.NOT_STARTED: {Status.IN_PROGRESS, Status.DONE, Status.ABORTED},
    Status.IN_PROGRESS: {Status.DONE, Status.ABORTED},
    Status.DONE: set(),
    Status.ABORTED: set(),
}


class IllegalTransitionError(ValueError):
    pass


def transition(
    *, table: dict[Status, set[Status]], current: Status, to: Status
) -> Status:
    try:
        allowed = table[current]
    except KeyError:
        raise IllegalTransitionError(f"Unknown status: {current!r}") from None
    if to not in allowed:
        raise IllegalTransitionError(f"Illegal transition: {current.value} -> {to.value}")
    return to


def can_transition(*, table: dict[Status, set[Status]], current: Status, to: Status) -> bool:
    return to in table.get(current, set())
