#!/usr/bin/env python3
"""Programmatic flow example.

This demonstrates using the engine and the server in one process:

* load settings from `.env`
* serve the callback endpoint with uvicorn
* run a flow that asks two questions and waits for the answers

Open the logged flow URL in a browser to answer.
"""

from __future__ import annotations

import argparse
import asyncio
from typing import Sequence

import uvicorn

from hitl_flows.errors import StepAborted
from hitl_flows.flows.engine import FlowEngine
from hitl_flows.logging import configure_logging
from hitl_flows.server.app import create_app
from hitl_flows.server.config import ServerSettings


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ask for a name and a colour over HTTP.")
    parser.add_argument("--title", default="Favourite colour", help="Flow title")
    parser.add_argument(
        "--timeout-minutes", type=float, default=5.0, help="Deadline for answering"
    )
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace, settings: ServerSettings) -> int:
    engine = FlowEngine(settings=settings)
    server = uvicorn.Server(
        uvicorn.Config(
            create_app(engine, settings), host=settings.host, port=settings.port, log_config=None
        )
    )
    serving = asyncio.create_task(server.serve())
    try:
        io = await engine.start(args.title, args.timeout_minutes)
        print(f"Answer at: {io.url}")
        name = await io.input("What is your name?")
        colour = await io.input(f"{name}, what is your favourite colour?")
        await io.output(f"{name} likes {colour}.")
        await io.end()
    except StepAborted as exc:
        print(f"Gave up waiting: {exc.reason}")
        return 1
    finally:
        server.should_exit = True
        await serving

    print(f"{name} likes {colour}.")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = ServerSettings()
    configure_logging(settings.log_level)

    return asyncio.run(_run(args, settings))


if __name__ == "__main__":
    raise SystemExit(main())
