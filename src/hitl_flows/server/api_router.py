"""Read-only JSON API for inspecting flows.

All routes are mounted under `/api`. Nothing here changes flow or step state;
in particular, reading a step does not mark it in-progress.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from hitl_flows import __version__
from hitl_flows.flows.engine import FlowEngine
from hitl_flows.flows.models import Flow, Step
from hitl_flows.server.dispatcher import flow_indicator
from hitl_flows.server.models import ApiStep, FlowDetail, FlowSummary

router = APIRouter()


def _engine(request: Request) -> FlowEngine:
    engine = getattr(request.app.state, "engine", None)
    if not isinstance(engine, FlowEngine):
        raise HTTPException(status_code=500, detail="Flow engine not configured")
    return engine


def _summary_fields(engine: FlowEngine, flow: Flow) -> dict[str, object]:
    return {
        "id": flow.id,
        "title": flow.title,
        "status": flow.status.value,
        "indicator": flow_indicator(flow),
        "url": engine.settings.flow_url(flow.id),
        "step_count": len(flow.steps),
        "created_at": flow.created_at,
        "finished_at": flow.finished_at,
    }


def _to_api_step(step: Step) -> ApiStep:
    return ApiStep(
        id=step.id,
        label=step.label,
        kind=step.kind.value,
        status=step.status.value,
        value=step.value,
        reason=step.abort_reason,
        created_at=step.created_at,
        settled_at=step.settled_at,
    )


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "version": __version__}


@router.get("/flows", response_model=list[FlowSummary])
def list_flows(request: Request) -> list[FlowSummary]:
    engine = _engine(request)
    return [
        FlowSummary.model_validate(_summary_fields(engine, flow))
        for flow in engine.registry.list()
    ]


@router.get("/flows/{flow_id}", response_model=FlowDetail)
def get_flow(flow_id: str, request: Request) -> FlowDetail:
    engine = _engine(request)
    flow = engine.registry.find(flow_id)
    if flow is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return FlowDetail.model_validate(
        {**_summary_fields(engine, flow), "steps": [_to_api_step(s) for s in list(flow.steps)]}
    )
