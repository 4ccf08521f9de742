"""FastAPI server adapter for hitl-flows.

Design intent:
- Keep flow and step semantics in `hitl_flows.flows.*`
- Keep HTTP concerns (routing, rendering, error bodies) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from hitl_flows.server.app import create_app
