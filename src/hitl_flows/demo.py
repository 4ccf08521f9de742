"""A two-question demo flow."""

from __future__ import annotations

from hitl_flows.flows.engine import FlowEngine

NAME_LABEL = "What is your name?"


async def demo_flow(
    engine: FlowEngine,
    *,
    title: str = "Demo",
    label: str = "What is your quest?",
    timeout_minutes: float | None = None,
) -> tuple[str, str]:
    handle = await engine.start(title, timeout_minutes)
    name = await handle.input(NAME_LABEL)
    await handle.output(f"Hello, {name}!")
    answer = await handle.input(label)
    await handle.end()
    return name, answer
