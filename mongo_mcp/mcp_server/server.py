"""Mongo MCP Server using FastMCP.

This module implements a Model Context Protocol (MCP) server that exposes a single
generic tool, ``execute_mongo_operation``, over stdio. The tool forwards one of
five operations (find, insertOne, updateOne, deleteOne, countDocuments) to the
MongoDB deployment named by the connection string given on the command line.

Architecture:
    - server.py: CLI, logging, signal handling, FastMCP registration
    - tools/dispatcher.py: validation, routing and error translation
    - database/connection.py: per-call MongoDB client and operation execution

Usage:
    mongo-mcp "mongodb://localhost:27017/app"
"""

import argparse
import logging
import signal
import sys
from collections.abc import Sequence
from typing import Literal

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from mcp.shared.exceptions import McpError
from mcp.types import TextContent

from mongo_mcp.config.settings import settings

from .database.async_executor import get_executor_pool
from .database.connection import StoreGateway
from .exceptions import StartupError
from .tool_prompts import get_system_instructions, get_tool_prompt
from .tools.dispatcher import OperationDispatcher
from .tools.models import TOOL_NAME

logger = logging.getLogger(__name__)

DEFAULT_INSTRUCTIONS = (
    "Use the execute_mongo_operation tool to query and modify documents in the "
    "configured MongoDB database."
)


def with_centralized_prompt(tool_name: str):
    """Decorator to set function docstring from centralized prompts."""

    def decorator(func):
        prompt = get_tool_prompt(tool_name)
        if prompt:
            func.__doc__ = prompt
        return func

    return decorator


def configure_logging() -> None:
    """Send logs to stderr. stdout carries the MCP protocol."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def create_server(gateway: StoreGateway) -> FastMCP:
    """Create the FastMCP server and register ``execute_mongo_operation``.

    Args:
        gateway: Store gateway bound to the command line connection string

    Returns:
        Configured FastMCP server instance
    """
    system_instructions = get_system_instructions()
    if not system_instructions:
        logger.warning("System instructions not found, using default instructions")
        system_instructions = DEFAULT_INSTRUCTIONS

    server = FastMCP(name=settings.server_name, instructions=system_instructions)
    dispatcher = OperationDispatcher(gateway)

    @server.tool(name=TOOL_NAME)
    @with_centralized_prompt(TOOL_NAME)
    async def execute_mongo_operation(
        collectionName: str,
        operation: Literal["find", "insertOne", "updateOne", "deleteOne", "countDocuments"],
        args: str,
    ) -> list[TextContent]:
        try:
            return await dispatcher.handle(
                TOOL_NAME,
                {"collectionName": collectionName, "operation": operation, "args": args},
            )
        except McpError as e:
            # ToolError text reaches the client unmasked
            raise ToolError(e.error.message) from e

    return server


def install_signal_handlers(gateway: StoreGateway) -> None:
    """Close store clients and exit 0 on SIGINT/SIGTERM.

    Shutdown is best-effort: an in-flight call may be cut off.
    """

    def _shutdown(signum, frame) -> None:
        signal_name = signal.Signals(signum).name
        logger.info(f"{signal_name} received, closing server and MongoDB clients...")
        gateway.close_all()
        get_executor_pool().shutdown(wait=False)
        sys.exit(0)

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse the command line. Exits with status 2 if the connection string is missing."""
    parser = argparse.ArgumentParser(
        prog="mongo-mcp",
        description="MCP server exposing MongoDB operations over stdio.",
    )
    parser.add_argument(
        "connection_string",
        nargs="?",
        help="MongoDB connection string, e.g. mongodb://localhost:27017/app",
    )
    args = parser.parse_args(argv)

    if not args.connection_string:
        parser.error("MongoDB connection string is required as a command line argument.")

    return args


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point for the MCP server."""
    args = parse_args(argv)
    configure_logging()

    gateway = StoreGateway(args.connection_string)
    install_signal_handlers(gateway)

    try:
        gateway.check_connection_string()
        server = create_server(gateway)
        logger.info(
            f"Mongo MCP server (v{settings.server_version}) running on stdio. "
            f"Waiting for requests..."
        )
        server.run(transport="stdio")

    except Exception as e:
        error = StartupError(
            message="Failed to start Mongo MCP server",
            details={"connection": settings.redact_connection_string(args.connection_string)},
            original_exception=e,
        )
        logger.error(str(error), exc_info=True)
        gateway.close_all()
        sys.exit(1)


if __name__ == "__main__":
    main()
