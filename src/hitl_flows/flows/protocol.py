"""Suspension protocol: creating, answering and aborting steps.

Every step is bound to one :class:`~hitl_flows.flows.settle_once.SettleOnce`
cell. `settle` and `cancel` race through the same compare-and-set on
``step.status`` (under ``step.lock``), so whichever reaches the check first wins
and the other becomes a no-op. Neither ever raises for a step that is already
terminal; duplicate submissions and late deadlines are absorbed.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from hitl_flows.errors import StepAborted
from hitl_flows.ids import gen_id

from .models import Flow, Step, StepKind
from .state_machine import FLOW_TRANSITIONS, STEP_TRANSITIONS, Status, transition

logger = logging.getLogger(__name__)


def create_step(
    flow: Flow, label: str, kind: StepKind = StepKind.INPUT, *, step_id: str | None = None
) -> Step:
    """Append a fresh step to `flow`.

    The step is visible to the HTTP surface as soon as this returns, before the
    caller starts waiting on it.
    """

    step = Step(id=step_id or gen_id(), label=label, kind=kind)
    with flow.lock:
        flow.steps.append(step)
        if flow.status is Status.NOT_STARTED:
            flow.status = transition(
                table=FLOW_TRANSITIONS, current=flow.status, to=Status.IN_PROGRESS
            )
        elif flow.status.is_terminal:
            logger.warning(
                "Step appended to finished flow",
                extra={"flow_id": flow.id, "step_id": step.id, "flow_status": flow.status.value},
            )
    logger.debug(
        "Step created",
        extra={"flow_id": flow.id, "step_id": step.id, "kind": kind.value},
    )
    return step


def observe(step: Step) -> bool:
    """Mark a step IN_PROGRESS the first time a human is shown it."""

    with step.lock:
        if step.status is not Status.NOT_STARTED:
            return False
        step.status = transition(
            table=STEP_TRANSITIONS, current=step.status, to=Status.IN_PROGRESS
        )
        return True


def settle(step: Step, value: str) -> bool:
    """Answer `step` with `value`.

    Returns True if this call took effect, False if the step was already done or
    aborted (in which case the stored result is left untouched).
    """

    with step.lock:
        if step.status.is_terminal:
            logger.debug(
                "Ignoring settle of finished step",
                extra={"step_id": step.id, "step_status": step.status.value},
            )
            return False
        step.status = transition(table=STEP_TRANSITIONS, current=step.status, to=Status.DONE)
        step.settled_at = datetime.now(tz=UTC)
        step.cell.set_value(value)
    return True


def cancel(step: Step, reason: str) -> bool:
    """Abort `step`; anyone waiting on it is released with `reason`.

    Same no-op rule as :func:`settle`.
    """

    with step.lock:
        if step.status.is_terminal:
            logger.debug(
                "Ignoring cancel of finished step",
                extra={"step_id": step.id, "step_status": step.status.value},
            )
            return False
        step.status = transition(
            table=STEP_TRANSITIONS, current=step.status, to=Status.ABORTED
        )
        step.settled_at = datetime.now(tz=UTC)
        step.cell.set_aborted(reason)
    return True


async def answer(flow: Flow, step: Step) -> str:
    """Wait for `step` to settle and return its value.

    Raises:
        StepAborted: if the step was cancelled instead.
    """

    outcome = await step.cell.wait()
    if outcome.aborted:
        raise StepAborted(flow_id=flow.id, step_id=step.id, reason=outcome.reason or "")
    return outcome.value if outcome.value is not None else ""
