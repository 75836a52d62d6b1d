"""MCP server for the trellis issue tracker.

Exposes the tracker as a Jira-compatible tool catalog over stdio. Tool names,
argument names and payload shapes follow the Atlassian MCP server so that
agents built against Jira work unchanged.

Usage:
    trellis-mcp                              # Auto-discover .trellis/ from cwd
    trellis-mcp --project /path/to/project   # Explicit project root
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, TextContent, Tool

from trellis.core import TrellisDB, resolve_data_dir
from trellis.errors import TrellisError, UnknownToolError
from trellis.mcp_tools import hierarchy as hierarchy_tools
from trellis.mcp_tools import issues as issue_tools
from trellis.mcp_tools import meta as meta_tools
from trellis.types.api import ErrorResponse

# ---------------------------------------------------------------------------
# Server setup
# ---------------------------------------------------------------------------

server = Server("trellis")
db: TrellisDB | None = None
_logger: logging.Logger | None = None


def _get_db() -> TrellisDB:
    if db is None:
        msg = "Database not initialized"
        raise RuntimeError(msg)
    return db


def _build_catalog() -> tuple[list[Tool], dict[str, Callable[..., Any]]]:
    tools: list[Tool] = []
    handlers: dict[str, Callable[..., Any]] = {}
    for module in (issue_tools, meta_tools, hierarchy_tools):
        module_tools, module_handlers = module.register()
        tools.extend(module_tools)
        handlers.update(module_handlers)
    return tools, handlers


TOOLS, HANDLERS = _build_catalog()


def _error_result(message: str, code: str) -> CallToolResult:
    payload = ErrorResponse(error=message, code=code)
    return CallToolResult(content=[TextContent(type="text", text=json.dumps(payload, indent=2))], isError=True)


# ---------------------------------------------------------------------------
# Tool dispatch
# ---------------------------------------------------------------------------


@server.list_tools()  # type: ignore[untyped-decorator,no-untyped-call]
async def list_tools() -> list[Tool]:
    return list(TOOLS)


@server.call_tool(validate_input=False)  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any] | None) -> CallToolResult:
    """Run one tool to completion and wrap the outcome in a result envelope.

    Failures never escape: trellis errors carry their own code, anything else
    is reported as ``internal_error`` and logged with its traceback.
    """
    arguments = arguments or {}
    t0 = time.monotonic()
    log = _logger or logging.getLogger(__name__)

    try:
        handler = HANDLERS.get(name)
        if handler is None:
            msg = f"Unknown tool: {name}"
            raise UnknownToolError(msg)
        content = await handler(arguments)
    except TrellisError as exc:
        log.warning("tool_error", extra={"tool": name, "args_data": arguments, "code": exc.code})
        return _error_result(exc.message, exc.code)
    except Exception as exc:
        log.error("tool_error", extra={"tool": name, "args_data": arguments, "code": "internal_error"}, exc_info=True)
        return _error_result(str(exc) or type(exc).__name__, "internal_error")

    duration_ms = round((time.monotonic() - t0) * 1000, 1)
    log.info("tool_call", extra={"tool": name, "args_data": arguments, "duration_ms": duration_ms})
    return CallToolResult(content=content, isError=False)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


async def _run(project_path: Path | None) -> None:
    global db, _logger

    try:
        data_dir = resolve_data_dir(project_path)
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    db = TrellisDB.from_project(project_path)

    from trellis.logging import setup_logging

    _logger = setup_logging(data_dir)
    _logger.info("mcp_server_start", extra={"tool": "server", "args_data": {"data_dir": str(data_dir)}})

    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    import asyncio

    parser = argparse.ArgumentParser(description="Trellis MCP server")
    parser.add_argument("--project", type=Path, default=None, help="Project root (auto-discovers .trellis/ if omitted)")
    args = parser.parse_args()

    asyncio.run(_run(args.project))


if __name__ == "__main__":
    main()
