"""CLI entrypoint for the task server.

`serve` runs the HTTP API; `mcp` runs the MCP tool server on stdio.
"""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from async_task_server import __version__
from async_task_server.config import TaskServerSettings
from async_task_server.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="async-task-server",
        description="Submit work asynchronously and poll for the outcome",
    )
    parser.add_argument("--version", action="version", version=f"async-task-server {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Serve the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (defaults to TASK_SERVER_HOST)")
    serve.add_argument(
        "--port", type=int, default=None, help="Bind port (defaults to TASK_SERVER_PORT)"
    )

    subparsers.add_parser("mcp", help="Serve the MCP tools over stdio")

    return parser


def _serve(settings: TaskServerSettings, host: str | None, port: int | None) -> None:
    import uvicorn

    from async_task_server.server.app import create_app

    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )


def _serve_mcp(settings: TaskServerSettings) -> None:
    from async_task_server.server.mcp_app import create_mcp_server
    from async_task_server.tasks.service import TaskService

    with TaskService.from_settings(settings) as service:
        logger.info("MCP server running on stdio")
        create_mcp_server(service).run()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = TaskServerSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your environment or .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    # stdout carries the protocol when serving MCP over stdio.
    configure_logging(settings.log_level, stream=sys.stderr if args.command == "mcp" else None)

    try:
        if args.command == "serve":
            _serve(settings, args.host, args.port)
            return 0

        if args.command == "mcp":
            _serve_mcp(settings)
            return 0
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down")
        return 0

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
