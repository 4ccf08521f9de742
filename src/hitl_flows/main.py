"""CLI entrypoint: serve the callback endpoint or run the demo flow."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import uvicorn
from pydantic import ValidationError

from hitl_flows import __version__
from hitl_flows.demo import demo_flow
from hitl_flows.errors import StepAborted
from hitl_flows.flows.engine import FlowEngine
from hitl_flows.logging import configure_logging
from hitl_flows.server.app import create_app
from hitl_flows.server.config import ServerSettings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hitl-flows",
        description="Human-in-the-loop flows resumed by HTTP callbacks",
    )
    parser.add_argument("--version", action="version", version=f"hitl-flows {__version__}")
    parser.add_argument("--host", default=None, help="Bind address (default: HITL_HOST)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default: HITL_PORT)")
    parser.add_argument(
        "--log-level", default=None, help="Root logging level (default: LOG_LEVEL)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Serve the callback endpoint")

    demo = subparsers.add_parser(
        "demo", help="Serve the endpoint and run a two-question demo flow against it"
    )
    demo.add_argument("--title", default="Demo", help="Flow title")
    demo.add_argument(
        "--label", default="What is your quest?", help="Label of the second question"
    )
    demo.add_argument(
        "--timeout-minutes",
        type=float,
        default=None,
        help="Deadline for the flow (default: HITL_DEFAULT_TIMEOUT_MINUTES)",
    )
    return parser


def _settings_from_args(args: argparse.Namespace) -> ServerSettings:
    settings = ServerSettings()
    updates: dict[str, object] = {}
    if args.host is not None:
        updates["host"] = args.host
    if args.port is not None:
        updates["port"] = args.port
    if args.log_level is not None:
        updates["log_level"] = args.log_level
    return settings.model_copy(update=updates) if updates else settings


def _uvicorn_config(app: object, settings: ServerSettings) -> uvicorn.Config:
    # log_config=None keeps our JSON handler on the root logger.
    return uvicorn.Config(
        app, host=settings.host, port=settings.port, log_config=None, lifespan="on"
    )


async def _run_demo(settings: ServerSettings, args: argparse.Namespace) -> int:
    engine = FlowEngine(settings=settings)
    server = uvicorn.Server(_uvicorn_config(create_app(engine, settings), settings))
    serve_task = asyncio.create_task(server.serve())
    try:
        name, answer = await demo_flow(
            engine, title=args.title, label=args.label, timeout_minutes=args.timeout_minutes
        )
    except StepAborted as e:
        print(f"Demo aborted: {e.reason}", file=sys.stderr)
        return 1
    finally:
        server.should_exit = True
        await serve_task

    print(f"{name}: {answer}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = _settings_from_args(args)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    if args.command == "serve":
        server = uvicorn.Server(_uvicorn_config(create_app(settings=settings), settings))
        server.run()
        return 0

    if args.command == "demo":
        return asyncio.run(_run_demo(settings, args))

    parser.error(f"Unknown command: {args.command}")


if __name__ == "__main__":
    raise SystemExit(main())
