"""Test configuration and fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterator

import pytest
from fastapi import FastAPI

from hitl_flows.flows.engine import FlowEngine
from hitl_flows.flows.models import Step
from hitl_flows.flows.registry import FlowRegistry
from hitl_flows.server.app import create_app
from hitl_flows.server.config import ServerSettings

WaitForStep = Callable[..., Awaitable[Step]]


@pytest.fixture
def settings() -> ServerSettings:
    """Provide server settings isolated from any local `.env`."""
    return ServerSettings(
        _env_file=None,
        HITL_ENDPOINT_URL="http://testserver",
        HITL_DEFAULT_TIMEOUT_MINUTES=30,
    )


@pytest.fixture
def registry() -> FlowRegistry:
    return FlowRegistry()


@pytest.fixture
def engine(settings: ServerSettings, registry: FlowRegistry) -> Iterator[FlowEngine]:
    """Provide an engine whose pending deadlines are cancelled after the test."""
    engine = FlowEngine(settings=settings, registry=registry)
    yield engine
    engine.shutdown()


@pytest.fixture
def app(engine: FlowEngine, settings: ServerSettings) -> FastAPI:
    return create_app(engine, settings)


@pytest.fixture
def wait_for_step(engine: FlowEngine) -> WaitForStep:
    """Yield to the loop until a flow has a pending step, and return it."""

    async def _wait(flow_id: str | None = None, *, index: int = -1) -> Step:
        for _ in range(1000):
            flows = engine.registry.list()
            if flow_id is not None:
                flows = [f for f in flows if f.id == flow_id]
            if flows:
                pending = [s for s in flows[-1].steps if not s.status.is_terminal]
                if pending:
                    return pending[index]
            await asyncio.sleep(0)
        raise AssertionError("No pending step appeared")

    return _wait
