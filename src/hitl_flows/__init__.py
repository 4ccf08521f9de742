"""hitl-flows: human-in-the-loop workflows resumed over HTTP.

Workflow code awaits answers from people:
- `FlowEngine.start` creates a flow and arms its deadline
- `FlowHandle.input` suspends until a value is POSTed to the step URL
- `FlowHandle.end` marks the flow done
"""

__version__ = "0.1.0"

from hitl_flows.config import FlowSettings
from hitl_flows.errors import FlowNotFound, FlowNotStarted, StepAborted
from hitl_flows.flows.engine import FlowEngine, FlowHandle

__all__ = [
    "__version__",
    "FlowEngine",
    "FlowHandle",
    "FlowNotFound",
    "FlowNotStarted",
    "FlowSettings",
    "StepAborted",
]
