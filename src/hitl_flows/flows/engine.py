"""Flow lifecycle: start, input, output, end and deadline expiry.

Workflow code is written as straight-line async code::

    handle = await engine.start("Onboarding", timeout_minutes=30)
    name = await handle.input("What is your name?")
    await handle.end()

`input` suspends until the step is answered over HTTP or the flow's deadline
passes, in which case :class:`~hitl_flows.errors.StepAborted` is raised with
reason ``"Timeout"``.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from hitl_flows.config import FlowSettings
from hitl_flows.errors import FlowNotFound, FlowNotStarted
from hitl_flows.ids import gen_id

from . import protocol
from .models import Flow, Step, StepKind
from .registry import FlowRegistry
from .scheduler import TimeoutScheduler
from .state_machine import FLOW_TRANSITIONS, Status, transition

logger = logging.getLogger(__name__)

TIMEOUT_REASON = "Timeout"


class FlowHandle:
    """Scoped handle that workflow code uses to talk to one flow."""

    def __init__(self, engine: FlowEngine, flow_id: str) -> None:
        self._engine = engine
        self.flow_id = flow_id

    def __repr__(self) -> str:
        return f"FlowHandle(flow_id={self.flow_id!r})"

    @property
    def url(self) -> str:
        return self._engine.settings.flow_url(self.flow_id)

    def _flow(self) -> Flow:
        flow = self._engine.registry.find(self.flow_id)
        if flow is None:
            raise FlowNotStarted(self.flow_id)
        return flow

    async def input(self, label: str) -> str:
        """Ask the human for a single text value and wait for the answer."""

        flow = self._flow()
        step = protocol.create_step(
            flow, label, StepKind.INPUT, step_id=gen_id(self._engine.settings.id_length)
        )
        self._engine.abort_if_past_deadline(flow, step)
        return await protocol.answer(flow, step)

    async def output(self, text: str) -> None:
        """Show `text` to the human. Does not wait."""

        flow = self._flow()
        step = protocol.create_step(
            flow, text, StepKind.OUTPUT, step_id=gen_id(self._engine.settings.id_length)
        )
        protocol.settle(step, text)

    async def end(self) -> None:
        self._flow()
        self._engine.end_flow(self.flow_id)


class FlowEngine:
    """Owns the flow registry and the deadline scheduler for one process."""

    def __init__(
        self,
        settings: FlowSettings | None = None,
        registry: FlowRegistry | None = None,
    ) -> None:
        self.settings = settings or FlowSettings()
        self.registry = registry or FlowRegistry()
        self.scheduler = TimeoutScheduler(self.timeout_fired)

    async def start(
        self,
        title: str,
        timeout_minutes: float | None = None,
        *,
        flow_id: str | None = None,
    ) -> FlowHandle:
        """Create a flow and arm its deadline.

        Args:
            title: Human-readable flow title.
            timeout_minutes: Minutes until still-pending steps are aborted.
                Defaults to ``settings.default_timeout_minutes``.
            flow_id: Use this id instead of generating one.

        Raises:
            FlowAlreadyExists: if `flow_id` is already registered.
        """

        if timeout_minutes is None:
            timeout_minutes = self.settings.default_timeout_minutes
        if timeout_minutes < 0:
            raise ValueError("timeout_minutes must be >= 0")

        self._maybe_prune()

        flow = self.registry.create_flow(flow_id or gen_id(self.settings.id_length), title)
        self.scheduler.schedule(flow.id, timeout_minutes * 60)

        handle = FlowHandle(self, flow.id)
        logger.info(
            "Flow URL: %s",
            handle.url,
            extra={"flow_id": flow.id, "flow_url": handle.url, "timeout_minutes": timeout_minutes},
        )
        return handle

    def handle(self, flow_id: str) -> FlowHandle:
        if flow_id not in self.registry:
            raise FlowNotFound(flow_id)
        return FlowHandle(self, flow_id)

    def end_flow(self, flow_id: str) -> bool:
        """Mark a flow done. Pending steps are left as they are.

        Returns False if the flow had already finished.
        """

        flow = self.registry.get(flow_id)
        with flow.lock:
            if flow.status.is_terminal:
                logger.debug(
                    "Ignoring end of finished flow",
                    extra={"flow_id": flow_id, "flow_status": flow.status.value},
                )
                return False
            flow.status = transition(table=FLOW_TRANSITIONS, current=flow.status, to=Status.DONE)
            flow.finished_at = datetime.now(tz=UTC)

        if flow.next_pending_step() is not None:
            logger.warning("Flow ended with pending steps", extra={"flow_id": flow_id})
        logger.info("Flow done", extra={"flow_id": flow_id})
        return True

    def timeout_fired(self, flow_id: str, reason: str = TIMEOUT_REASON) -> int:
        """Abort every step of `flow_id` that is not yet done.

        Unknown flows are ignored. The flow itself is only marked aborted if at
        least one step was cancelled by this call. Either way the deadline is
        recorded on the flow, so inputs requested later are aborted on creation.

        Returns:
            The number of steps cancelled.
        """

        flow = self.registry.find(flow_id)
        if flow is None:
            logger.debug("Timeout for unknown flow", extra={"flow_id": flow_id})
            return 0

        with flow.lock:
            if flow.deadline_reason is None:
                flow.deadline_reason = reason

        cancelled = 0
        for step in list(flow.steps):
            if step.status is Status.DONE:
                continue
            if protocol.cancel(step, reason):
                cancelled += 1

        if cancelled == 0:
            return 0

        self._mark_aborted(flow)
        logger.warning(
            "Flow aborted",
            extra={
                "flow_id": flow_id,
                "reason": reason,
                "cancelled_steps": cancelled,
                "flow_status": flow.status.value,
            },
        )
        return cancelled

    def abort_if_past_deadline(self, flow: Flow, step: Step) -> bool:
        """Abort `step` right away if `flow` is already past its deadline.

        Returns True if the step was cancelled.
        """

        reason = flow.deadline_reason
        if reason is None:
            return False
        if not protocol.cancel(step, reason):
            return False
        self._mark_aborted(flow)
        logger.warning(
            "Step requested after deadline",
            extra={"flow_id": flow.id, "step_id": step.id, "reason": reason},
        )
        return True

    def _mark_aborted(self, flow: Flow) -> None:
        with flow.lock:
            if not flow.status.is_terminal:
                flow.status = transition(
                    table=FLOW_TRANSITIONS, current=flow.status, to=Status.ABORTED
                )
                flow.finished_at = datetime.now(tz=UTC)

    def prune(self) -> list[str]:
        retention = self.settings.flow_retention_minutes
        if retention <= 0:
            return []
        cutoff = datetime.now(tz=UTC) - timedelta(minutes=retention)
        evicted = self.registry.prune(before=cutoff)
        for flow_id in evicted:
            self.scheduler.cancel(flow_id)
        return evicted

    def _maybe_prune(self) -> None:
        if self.settings.flow_retention_minutes > 0:
            self.prune()

    def shutdown(self) -> None:
        self.scheduler.shutdown()
