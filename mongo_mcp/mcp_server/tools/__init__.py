"""MCP tool package.

This package contains the ``execute_mongo_operation`` tool: its request and
argument models and the dispatcher that validates and routes each call.

Available Classes:
    - OperationDispatcher: validates, routes and executes tool calls
    - ToolRequest: outer shape of a tool call
    - MongoOperation: the five supported operations
"""

from .dispatcher import OperationDispatcher
from .models import TOOL_NAME, MongoOperation, ToolRequest

__all__ = [
    "OperationDispatcher",
    "ToolRequest",
    "MongoOperation",
    "TOOL_NAME",
]
