"""Translate inbound callback requests into flow and step operations.

The FastAPI routes are thin wrappers over :class:`CallbackDispatcher`, which can
also be driven directly by a host that does its own HTTP handling.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from hitl_flows.errors import FlowNotFound, InvalidSubmission
from hitl_flows.flows import protocol
from hitl_flows.flows.engine import FlowEngine
from hitl_flows.flows.models import Flow, StepKind
from hitl_flows.flows.state_machine import Status
from hitl_flows.server import render
from hitl_flows.server.models import ErrorBody, Indicator, SubmitRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Either an HTML document or a JSON error body, with its status code."""

    status_code: int
    html: str | None = None
    error: ErrorBody | None = None


def flow_indicator(flow: Flow) -> Indicator:
    """Completion indicator shown on the landing page.

    Derived from flow and step status; never stored.
    """

    if flow.status is Status.ABORTED:
        return "aborted"
    if flow.status is Status.DONE:
        return "done"
    if flow.steps and flow.all_steps_done:
        return "done"
    return "pending"


def parse_submission(body: bytes | None) -> str:
    """Extract the submitted value from a raw POST body.

    Raises:
        InvalidSubmission: if the body is empty, not JSON, or lacks a non-empty
            string `value`.
    """

    if not body or not body.strip():
        raise InvalidSubmission("Body required")
    try:
        return SubmitRequest.model_validate_json(body).value
    except ValidationError as e:
        raise InvalidSubmission("Value required") from e


class CallbackDispatcher:
    def __init__(self, engine: FlowEngine, *, page_title: str = "Flows") -> None:
        self._engine = engine
        self._page_title = page_title

    def submit(self, flow_id: str, step_id: str, body: bytes | None) -> DispatchResult:
        """Handle `POST /flow/{flow_id}/{step_id}`.

        Unknown step ids and already-settled steps are ignored; the response is
        the current rendering of the flow either way.
        """

        try:
            value = parse_submission(body)
        except InvalidSubmission as e:
            logger.info(
                "Rejected submission",
                extra={"flow_id": flow_id, "step_id": step_id, "error": e.message},
            )
            return DispatchResult(
                status_code=e.status_code,
                error=ErrorBody(error=e.message, status=e.status_code),
            )

        try:
            flow = self._engine.registry.get(flow_id)
        except FlowNotFound:
            return DispatchResult(status_code=404, error=ErrorBody(error="Flow not found", status=404))

        step = flow.find_step(step_id)
        if step is None or step.kind is not StepKind.INPUT:
            logger.info("Submission for unknown step", extra={"flow_id": flow_id, "step_id": step_id})
        elif protocol.settle(step, value):
            logger.info("Step answered", extra={"flow_id": flow_id, "step_id": step_id})

        return self._render_flow(flow)

    def view(self, flow_id: str, step_id: str | None = None) -> DispatchResult:
        """Handle `GET /flow/{flow_id}[/{step_id}]`."""

        flow = self._engine.registry.find(flow_id)
        if flow is None:
            return DispatchResult(
                status_code=404,
                html=self._page(render.render_redirect_body("Flow not found", "/")),
            )

        if step_id is not None:
            step = flow.find_step(step_id)
            if step is not None:
                protocol.observe(step)
                return DispatchResult(
                    status_code=200, html=self._page(render.render_step(flow.id, step))
                )
        return self._render_flow(flow)

    def landing(self) -> DispatchResult:
        entries = [(flow, flow_indicator(flow)) for flow in self._engine.registry.list()]
        return DispatchResult(
            status_code=200, html=self._page(render.render_landing_body(entries))
        )

    def _render_flow(self, flow: Flow) -> DispatchResult:
        steps_html = []
        for step in list(flow.steps):
            protocol.observe(step)
            steps_html.append(render.render_step(flow.id, step))
        body = render.render_flow_body(flow, steps_html, back_url="/")
        return DispatchResult(status_code=200, html=self._page(body))

    def _page(self, body: str) -> str:
        return render.render_page(body, title=self._page_title)
