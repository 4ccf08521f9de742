"""Unit tests for routing callback requests onto flows and steps."""

from __future__ import annotations

import pytest

from hitl_flows.errors import InvalidSubmission, StepAborted
from hitl_flows.flows import protocol
from hitl_flows.flows.engine import FlowEngine
from hitl_flows.flows.models import Flow, Step
from hitl_flows.flows.state_machine import Status
from hitl_flows.server.dispatcher import CallbackDispatcher, flow_indicator, parse_submission


@pytest.fixture
def dispatcher(engine: FlowEngine) -> CallbackDispatcher:
    return CallbackDispatcher(engine, page_title="Test Flows")


@pytest.fixture
def flow(engine: FlowEngine) -> Flow:
    return engine.registry.create_flow("ctx", "Demo")


@pytest.fixture
def step(flow: Flow) -> Step:
    return protocol.create_step(flow, "Name?", step_id="step1")


@pytest.mark.parametrize(
    ("body", "message"),
    [
        (None, "Body required"),
        (b"", "Body required"),
        (b"   ", "Body required"),
        (b"{}", "Value required"),
        (b'{"value": ""}', "Value required"),
        (b'{"value": 42}', "Value required"),
        (b"not json", "Value required"),
    ],
)
def test_parse_submission_rejects_unusable_bodies(body: bytes | None, message: str) -> None:
    with pytest.raises(InvalidSubmission) as exc:
        parse_submission(body)
    assert exc.value.message == message
    assert exc.value.status_code == 400


def test_parse_submission_returns_value() -> None:
    assert parse_submission(b'{"value": "Ada", "extra": 1}') == "Ada"


def test_submit_settles_step_and_renders_flow(
    dispatcher: CallbackDispatcher, step: Step
) -> None:
    result = dispatcher.submit("ctx", "step1", b'{"value": "Ada"}')

    assert result.status_code == 200
    assert result.error is None
    assert result.html is not None
    assert "Name?: Ada" in result.html
    assert step.status is Status.DONE
    assert step.value == "Ada"


def test_duplicate_submission_keeps_first_value(
    dispatcher: CallbackDispatcher, step: Step
) -> None:
    dispatcher.submit("ctx", "step1", b'{"value": "Ada"}')
    result = dispatcher.submit("ctx", "step1", b'{"value": "Grace"}')

    assert result.status_code == 200
    assert step.value == "Ada"
    assert result.html is not None
    assert "Grace" not in result.html


def test_malformed_submission_does_not_touch_steps(
    dispatcher: CallbackDispatcher, step: Step
) -> None:
    result = dispatcher.submit("ctx", "step1", b"")

    assert result.status_code == 400
    assert result.error is not None
    assert result.error.model_dump() == {"error": "Body required", "status": 400}
    assert step.status is Status.NOT_STARTED
    assert not step.cell.done()


def test_submission_to_unknown_flow_is_404(dispatcher: CallbackDispatcher) -> None:
    result = dispatcher.submit("missing", "step1", b'{"value": "Ada"}')

    assert result.status_code == 404
    assert result.error is not None
    assert result.error.status == 404


def test_submission_to_unknown_step_is_ignored(
    dispatcher: CallbackDispatcher, step: Step
) -> None:
    result = dispatcher.submit("ctx", "nope", b'{"value": "Ada"}')

    assert result.status_code == 200
    assert step.status is not Status.DONE


def test_submission_to_aborted_step_is_ignored(
    dispatcher: CallbackDispatcher, step: Step
) -> None:
    protocol.cancel(step, "Timeout")

    result = dispatcher.submit("ctx", "step1", b'{"value": "Ada"}')

    assert result.status_code == 200
    assert step.status is Status.ABORTED
    assert step.value is None


def test_view_unknown_flow_redirects(dispatcher: CallbackDispatcher) -> None:
    result = dispatcher.view("missing")

    assert result.status_code == 404
    assert result.html is not None
    assert "Flow not found" in result.html
    assert "Redirecting..." in result.html


def test_view_flow_renders_form_and_marks_step_in_progress(
    dispatcher: CallbackDispatcher, step: Step
) -> None:
    result = dispatcher.view("ctx")

    assert result.html is not None
    assert 'hx-post="/flow/ctx/step1"' in result.html
    assert "Loading..." in result.html
    assert "<title>Test Flows</title>" in result.html
    assert step.status is Status.IN_PROGRESS


def test_view_single_step_and_fallback_to_flow(
    dispatcher: CallbackDispatcher, step: Step
) -> None:
    protocol.settle(step, "Ada")

    single = dispatcher.view("ctx", "step1")
    assert single.html is not None
    assert "Name?: Ada" in single.html
    assert "Loading..." not in single.html

    fallback = dispatcher.view("ctx", "nope")
    assert fallback.html is not None
    assert "<h1>Demo</h1>" in fallback.html


def test_view_of_finished_flows(
    engine: FlowEngine, dispatcher: CallbackDispatcher, flow: Flow, step: Step
) -> None:
    protocol.settle(step, "Ada")
    engine.end_flow("ctx")
    done = dispatcher.view("ctx").html
    assert done is not None
    assert "Flow completed" in done
    assert "Go Back" in done

    other = engine.registry.create_flow("ctx2", "Other")
    protocol.create_step(other, "Quest?")
    engine.timeout_fired("ctx2")
    aborted = dispatcher.view("ctx2").html
    assert aborted is not None
    assert "Flow aborted" in aborted
    assert "aborted (Timeout)" in aborted


def test_rendered_values_are_escaped(dispatcher: CallbackDispatcher, step: Step) -> None:
    dispatcher.submit("ctx", "step1", b'{"value": "<script>x</script>"}')

    html = dispatcher.view("ctx").html
    assert html is not None
    assert "<script>x</script>" not in html
    assert "&lt;script&gt;x&lt;/script&gt;" in html


def test_indicator_is_derived_from_status(engine: FlowEngine, flow: Flow, step: Step) -> None:
    assert flow_indicator(flow) == "pending"
    protocol.settle(step, "Ada")
    assert flow_indicator(flow) == "done"

    empty = engine.registry.create_flow("empty", "Empty")
    assert flow_indicator(empty) == "pending"

    other = engine.registry.create_flow("ctx2", "Other")
    protocol.create_step(other, "Quest?")
    engine.timeout_fired("ctx2")
    assert flow_indicator(other) == "aborted"


def test_landing_lists_flows_with_indicators(
    engine: FlowEngine, dispatcher: CallbackDispatcher, step: Step
) -> None:
    protocol.settle(step, "Ada")
    engine.registry.create_flow("ctx2", "Second")

    html = dispatcher.landing().html
    assert html is not None
    assert "Choose a flow" in html
    assert '<a href="/flow/ctx">Demo</a> <span>✅</span>' in html
    assert '<a href="/flow/ctx2">Second</a> <span></span>' in html


@pytest.mark.asyncio
async def test_submission_to_step_requested_after_deadline_is_ignored(
    engine: FlowEngine, dispatcher: CallbackDispatcher
) -> None:
    handle = await engine.start("Demo", 30)
    engine.timeout_fired(handle.flow_id)
    with pytest.raises(StepAborted):
        await handle.input("Name?")
    (step,) = engine.registry.get(handle.flow_id).steps

    result = dispatcher.submit(handle.flow_id, step.id, b'{"value": "Ada"}')

    assert result.status_code == 200
    assert step.status is Status.ABORTED
    assert step.value is None
