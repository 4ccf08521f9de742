"""In-memory data model for flows and their steps."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from .settle_once import SettleOnce
from .state_machine import Status


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class StepKind(str, Enum):
    """Request kinds a step can carry.

    INPUT suspends workflow code until a value is submitted. OUTPUT carries text
    for the human and is created already answered.
    """

    INPUT = "input"
    OUTPUT = "output"


@dataclass(eq=False, slots=True)
class Step:
    id: str
    label: str
    kind: StepKind
    status: Status = Status.NOT_STARTED
    cell: SettleOnce[str] = field(default_factory=SettleOnce, repr=False)
    created_at: datetime = field(default_factory=_utc_now)
    settled_at: datetime | None = None

    # Guards the status compare-and-set shared by settle and cancel.
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def value(self) -> str | None:
        outcome = self.cell.outcome()
        if outcome is None or outcome.aborted:
            return None
        return outcome.value

    @property
    def abort_reason(self) -> str | None:
        outcome = self.cell.outcome()
        if outcome is None:
            return None
        return outcome.reason


@dataclass(eq=False, slots=True)
class Flow:
    """One workflow instance.

    `steps` is append-only and keeps the order in which workflow code requested
    them.
    """

    id: str
    title: str
    status: Status = Status.NOT_STARTED
    steps: list[Step] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utc_now)
    finished_at: datetime | None = None

    # Set once the flow's deadline has been delivered; steps requested after
    # that are aborted with this reason as soon as they are created.
    deadline_reason: str | None = None

    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def find_step(self, step_id: str) -> Step | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def next_pending_step(self) -> Step | None:
        for step in self.steps:
            if not step.status.is_terminal:
                return step
        return None

    @property
    def all_steps_done(self) -> bool:
        return all(step.status is Status.DONE for step in self.steps)
