"""Process-wide store mapping flow ids to flows.

Both the workflow side (`FlowHandle`) and the HTTP side read from the same
registry. Flows are only reachable through these methods; the mapping itself is
never handed out.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime

from hitl_flows.errors import FlowAlreadyExists, FlowNotFound

from .models import Flow

logger = logging.getLogger(__name__)


class FlowRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._flows: dict[str, Flow] = {}

    def __contains__(self, flow_id: object) -> bool:
        with self._lock:
            return flow_id in self._flows

    def __len__(self) -> int:
        with self._lock:
            return len(self._flows)

    def create_flow(self, flow_id: str, title: str) -> Flow:
        """Register a new flow in status NOT_STARTED with no steps.

        Raises:
            FlowAlreadyExists: if `flow_id` is already registered. The existing
                flow is left untouched.
        """

        with self._lock:
            if flow_id in self._flows:
                raise FlowAlreadyExists(flow_id)
            flow = Flow(id=flow_id, title=title)
            self._flows[flow_id] = flow
        logger.debug("Flow created", extra={"flow_id": flow_id, "title": title})
        return flow

    def get(self, flow_id: str) -> Flow:
        flow = self.find(flow_id)
        if flow is None:
            raise FlowNotFound(flow_id)
        return flow

    def find(self, flow_id: str) -> Flow | None:
        with self._lock:
            return self._flows.get(flow_id)

    def list(self) -> list[Flow]:
        """All flows in creation order."""

        with self._lock:
            return list(self._flows.values())

    def prune(self, *, before: datetime) -> list[str]:
        """Evict terminal flows that finished before `before`.

        Flows still accepting input are never evicted.
        """

        with self._lock:
            evicted = [
                flow_id
                for flow_id, flow in self._flows.items()
                if flow.status.is_terminal
                and flow.finished_at is not None
                and flow.finished_at < before
            ]
            for flow_id in evicted:
                del self._flows[flow_id]
        if evicted:
            logger.info("Evicted finished flows", extra={"count": len(evicted)})
        return evicted
