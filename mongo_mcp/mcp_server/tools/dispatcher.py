"""Operation dispatcher for the ``execute_mongo_operation`` tool.

The dispatcher turns one untyped tool call into one store operation:

1. validate  - tool name and outer argument shape (``ToolRequest``)
2. decode    - parse the ``args`` JSON blob
3. route     - pick the operation and validate its argument model
4. execute   - run it through the ``StoreGateway`` on the executor pool
5. serialize - render the result as one pretty-printed JSON text block

Validation failures are raised as ``McpError`` as soon as they are detected and
short-circuit the remaining steps, so the store is never contacted for a
malformed call. Store failures are caught at a single boundary in ``handle``,
logged, and re-raised as ``INTERNAL_ERROR``. Nothing else escapes ``handle``.
"""

import logging
from typing import TYPE_CHECKING, Any

from bson.errors import BSONError
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND, ErrorData, TextContent
from pydantic import ValidationError

from ..database.async_executor import run_blocking
from ..exceptions import StoreError, convert_to_store_error
from ._core.result_serialization import deserialize_mongodb_result, serialize_mongodb_result
from .models import OPERATION_ARGS_MODELS, TOOL_NAME, MongoOperation, OperationArgs, ToolRequest

if TYPE_CHECKING:
    from ..database.connection import StoreGateway

logger = logging.getLogger(__name__)


def _invalid_params(message: str, data: Any = None) -> McpError:
    return McpError(ErrorData(code=INVALID_PARAMS, message=message, data=data))


def _describe_args_error(operation: MongoOperation, error: ValidationError) -> str:
    """Build the message for the first problem pydantic found in ``args``.

    Fields are declared in the order they are checked, so for updateOne a
    missing ``filter`` is reported before a missing ``update``.
    """
    first = error.errors()[0]
    # union members append their type to loc, so keep only the field name
    field = str(first["loc"][0]) if first["loc"] else "args"

    if first["type"] == "missing":
        return f"Missing '{field}' in args for {operation.value}"

    return f"Invalid '{field}' in args for {operation.value}: {first['msg']}"


class OperationDispatcher:
    """Validates, routes and executes ``execute_mongo_operation`` calls.

    Example:
        >>> dispatcher = OperationDispatcher(StoreGateway("mongodb://localhost/app"))
        >>> content = await dispatcher.handle(
        ...     "execute_mongo_operation",
        ...     {"collectionName": "users", "operation": "find", "args": "{}"},
        ... )
        >>> content[0].text
        '[]'
    """

    def __init__(self, gateway: "StoreGateway") -> None:
        self._gateway = gateway

    async def handle(self, tool_name: str, arguments: Any) -> list[TextContent]:
        """Run one tool call end to end.

        Args:
            tool_name: Name the caller invoked
            arguments: Raw argument object from the tool call

        Returns:
            A single text content block holding the JSON-encoded result

        Raises:
            McpError: METHOD_NOT_FOUND for an unknown tool, INVALID_PARAMS for a
                malformed call, INTERNAL_ERROR when MongoDB fails
        """
        if tool_name != TOOL_NAME:
            raise McpError(ErrorData(code=METHOD_NOT_FOUND, message=f"Unknown tool: {tool_name}"))

        request = self.validate(arguments)
        decoded = self.decode(request)
        operation, operation_args = self.route(request.operation, decoded)

        logger.info(f"Executing {operation.value} on collection '{request.collectionName}'")

        try:
            result = await run_blocking(
                self._gateway.execute, request.collectionName, operation, operation_args
            )
            return self.serialize(result)

        except McpError:
            raise

        except Exception as e:
            error = e if isinstance(e, StoreError) else convert_to_store_error(
                e, context={"collection": request.collectionName, "operation": operation.value}
            )
            logger.error(f"MongoDB operation failed: {error}")
            raise McpError(
                ErrorData(
                    code=INTERNAL_ERROR,
                    message=f"MongoDB operation failed: {error.cause_message}",
                    data={"error_code": error.error_code, "request_id": error.request_id},
                )
            ) from e

    # =========================================================================
    # PIPELINE STEPS
    # =========================================================================

    @staticmethod
    def validate(arguments: Any) -> ToolRequest:
        """Check the outer shape of the call.

        Raises:
            McpError: INVALID_PARAMS if a field is missing, has the wrong type,
                or ``operation`` is not one of the five supported values
        """
        if not isinstance(arguments, dict):
            raise _invalid_params(f"Invalid arguments for {TOOL_NAME}.")

        try:
            return ToolRequest.model_validate(arguments)
        except ValidationError as e:
            problems = [
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
            ]
            logger.warning(f"Rejected {TOOL_NAME} call: {problems}")
            raise _invalid_params(f"Invalid arguments for {TOOL_NAME}.", data=problems) from e

    @staticmethod
    def decode(request: ToolRequest) -> dict[str, Any]:
        """Parse the ``args`` blob into a mapping.

        Extended JSON values such as ``{"$oid": ...}`` are restored to BSON
        types.

        Raises:
            McpError: INVALID_PARAMS if ``args`` is not valid JSON or is not a
                JSON object
        """
        try:
            decoded = deserialize_mongodb_result(request.args)
        except (ValueError, TypeError, BSONError) as e:
            raise _invalid_params(f"Invalid JSON in 'args': {e}") from e

        if not isinstance(decoded, dict):
            raise _invalid_params(
                f"Invalid JSON in 'args': expected an object, got {type(decoded).__name__}"
            )

        return decoded

    @staticmethod
    def route(
        operation: MongoOperation | str, decoded: dict[str, Any]
    ) -> tuple[MongoOperation, OperationArgs]:
        """Select the operation and validate its arguments.

        Raises:
            McpError: INVALID_PARAMS for an unsupported operation or a missing
                or mistyped required field
        """
        try:
            selected = MongoOperation(operation)
        except ValueError:
            raise _invalid_params(f"Unsupported operation: {operation}") from None

        try:
            return selected, OPERATION_ARGS_MODELS[selected].model_validate(decoded)
        except ValidationError as e:
            message = _describe_args_error(selected, e)
            logger.warning(message)
            raise _invalid_params(message) from e

    @staticmethod
    def serialize(result: Any) -> list[TextContent]:
        """Wrap the operation result in a single text content block."""
        return [TextContent(type="text", text=serialize_mongodb_result(result))]
