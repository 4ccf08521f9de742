"""Flow and step state machines with their suspension protocol.

This package holds all domain logic. The HTTP adapter in `hitl_flows.server`
only translates requests into calls on these types.
"""

from hitl_flows.flows.engine import TIMEOUT_REASON, FlowEngine, FlowHandle
from hitl_flows.flows.models import Flow, Step, StepKind
from hitl_flows.flows.registry import FlowRegistry
from hitl_flows.flows.state_machine import Status

__all__ = [
    "TIMEOUT_REASON",
    "Flow",
    "FlowEngine",
    "FlowHandle",
    "FlowRegistry",
    "Status",
    "Step",
    "StepKind",
]
