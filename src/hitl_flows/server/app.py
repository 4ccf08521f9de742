"""FastAPI app factory.

Routes:
- `GET /`                         landing page listing known flows
- `GET /flow/{flow_id}`           current rendering of a flow
- `GET /flow/{flow_id}/{step_id}` rendering of a single step
- `POST /flow/{flow_id}/{step_id}` submit `{"value": ...}` for a pending step
- `/api/*`                        read-only JSON inspection API

Endpoints are intentionally thin wrappers over :class:`CallbackDispatcher`.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response

from hitl_flows import __version__
from hitl_flows.flows.engine import FlowEngine
from hitl_flows.server.api_router import router as api_router
from hitl_flows.server.config import ServerSettings
from hitl_flows.server.dispatcher import CallbackDispatcher, DispatchResult

logger = logging.getLogger(__name__)


def _to_response(result: DispatchResult) -> Response:
    if result.error is not None:
        return JSONResponse(result.error.model_dump(), status_code=result.status_code)
    return HTMLResponse(result.html or "", status_code=result.status_code)


def create_app(
    engine: FlowEngine | None = None, settings: ServerSettings | None = None
) -> FastAPI:
    settings = settings or ServerSettings()
    engine = engine or FlowEngine(settings=settings)
    dispatcher = CallbackDispatcher(engine, page_title=settings.page_title)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        logger.info("Flow server ready", extra={"endpoint_url": engine.settings.endpoint_url})
        try:
            yield
        finally:
            engine.shutdown()

    app = FastAPI(
        title="hitl-flows",
        version=__version__,
        description="Human-in-the-loop flows resumed by HTTP callbacks.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.dispatcher = dispatcher

    origins = settings.parsed_cors_origins()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(api_router, prefix="/api")

    @app.get("/flow/{flow_id}", include_in_schema=False)
    def view_flow(flow_id: str) -> Response:
        return _to_response(dispatcher.view(flow_id))

    @app.get("/flow/{flow_id}/{step_id}", include_in_schema=False)
    def view_step(flow_id: str, step_id: str) -> Response:
        return _to_response(dispatcher.view(flow_id, step_id))

    @app.post("/flow/{flow_id}/{step_id}", include_in_schema=False)
    async def submit_step(flow_id: str, step_id: str, request: Request) -> Response:
        body = await request.body()
        return _to_response(dispatcher.submit(flow_id, step_id, body))

    @app.api_route("/", methods=["GET", "POST"], include_in_schema=False)
    def landing() -> Response:
        return _to_response(dispatcher.landing())

    @app.api_route("/{full_path:path}", methods=["GET", "POST"], include_in_schema=False)
    def fallback(full_path: str) -> Response:
        # Don't steal API routes.
        if full_path.startswith("api/") or full_path == "api":
            return JSONResponse({"detail": "Not Found"}, status_code=404)
        return _to_response(dispatcher.landing())

    return app
