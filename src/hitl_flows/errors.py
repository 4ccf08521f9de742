"""Error taxonomy for flows, steps and the HTTP callback surface.

Validation errors at the HTTP boundary are converted to structured JSON responses
by the server adapter. Repeated or late resolution of a step is never an error:
those calls are absorbed as no-ops by the suspension protocol.
"""

from __future__ import annotations


class HitlFlowError(Exception):
    """Base class for all hitl-flows errors."""


class FlowNotFound(HitlFlowError, KeyError):
    """An operation addressed a flow id the registry does not know."""

    def __init__(self, flow_id: str) -> None:
        super().__init__(flow_id)
        self.flow_id = flow_id

    def __str__(self) -> str:
        return f"Flow not found: {self.flow_id!r}"


class FlowNotStarted(HitlFlowError, RuntimeError):
    """Workflow code used a handle whose backing flow is missing."""

    def __init__(self, flow_id: str) -> None:
        super().__init__(flow_id)
        self.flow_id = flow_id

    def __str__(self) -> str:
        return f"Flow not started: {self.flow_id!r}"


class FlowAlreadyExists(HitlFlowError):
    """A flow was created under an id that is already registered."""

    def __init__(self, flow_id: str) -> None:
        super().__init__(flow_id)
        self.flow_id = flow_id

    def __str__(self) -> str:
        return f"Flow already exists: {self.flow_id!r}"


class InvalidSubmission(HitlFlowError, ValueError):
    """A POST body was missing or did not carry a usable value."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class StepAborted(HitlFlowError):
    """Raised into workflow code when a pending step is cancelled.

    For deadline expiry the reason is ``"Timeout"``. This is a normal failure
    path for workflow code, not a bug.
    """

    def __init__(self, *, flow_id: str, step_id: str, reason: str) -> None:
        super().__init__(reason)
        self.flow_id = flow_id
        self.step_id = step_id
        self.reason = reason

    def __str__(self) -> str:
        return f"Step {self.step_id!r} of flow {self.flow_id!r} aborted: {self.reason}"
