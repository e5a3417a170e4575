"""Pydantic models and enums for the ``execute_mongo_operation`` tool.

Key Components:
    - MongoOperation enum for the five supported operations
    - ToolRequest, the outer shape of a tool call
    - One argument model per operation, decoded from the ``args`` JSON blob

Design Principles:
    - Required fields are plain members, optional fields carry defaults, so a
      missing field surfaces as a pydantic ``missing`` error
    - JSON ``null`` is treated exactly like an absent key
    - Unknown keys in ``args`` are ignored
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr, model_validator

TOOL_NAME = "execute_mongo_operation"


class MongoOperation(str, Enum):
    """Operations the tool forwards to MongoDB.

    Values are the driver-neutral camelCase names callers send over the wire.
    """

    FIND = "find"
    INSERT_ONE = "insertOne"
    UPDATE_ONE = "updateOne"
    DELETE_ONE = "deleteOne"
    COUNT_DOCUMENTS = "countDocuments"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


# =============================================================================
# TOOL REQUEST
# =============================================================================


class ToolRequest(BaseModel):
    """Arguments of one ``execute_mongo_operation`` call.

    ``args`` stays an opaque string here. It is decoded and validated against
    the operation's argument model in a later step.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    collectionName: StrictStr = Field(
        ..., min_length=1, description="Name of the collection to operate on."
    )
    operation: MongoOperation = Field(..., description="The MongoDB operation to execute.")
    args: StrictStr = Field(
        ...,
        description=(
            "JSON object (as a string) with the arguments for the operation. "
            'E.g. for find: \'{"filter": {}, "options": {}}\', '
            'for insertOne: \'{"document": {}}\'.'
        ),
    )


# =============================================================================
# PER-OPERATION ARGUMENTS
# =============================================================================


class OperationArgs(BaseModel):
    """Fields shared by every operation's arguments."""

    model_config = ConfigDict(extra="ignore")

    options: dict[str, Any] | None = Field(
        None, description="Driver options forwarded with the operation"
    )

    @model_validator(mode="before")
    @classmethod
    def drop_null_fields(cls, data: Any) -> Any:
        """Treat ``{"filter": null}`` the same as an absent ``filter``."""
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class FindArgs(OperationArgs):
    """Arguments for ``find``. An absent filter matches every document."""

    filter: dict[str, Any] = Field(default_factory=dict)


class InsertOneArgs(OperationArgs):
    """Arguments for ``insertOne``."""

    document: dict[str, Any]


class UpdateOneArgs(OperationArgs):
    """Arguments for ``updateOne``.

    ``update`` is either an update document (``{"$set": ...}``) or an
    aggregation pipeline (list of stages).
    """

    filter: dict[str, Any]
    update: dict[str, Any] | list[dict[str, Any]]


class DeleteOneArgs(OperationArgs):
    """Arguments for ``deleteOne``."""

    filter: dict[str, Any]


class CountDocumentsArgs(OperationArgs):
    """Arguments for ``countDocuments``. An absent filter counts every document."""

    filter: dict[str, Any] = Field(default_factory=dict)


OPERATION_ARGS_MODELS: dict[MongoOperation, type[OperationArgs]] = {
    MongoOperation.FIND: FindArgs,
    MongoOperation.INSERT_ONE: InsertOneArgs,
    MongoOperation.UPDATE_ONE: UpdateOneArgs,
    MongoOperation.DELETE_ONE: DeleteOneArgs,
    MongoOperation.COUNT_DOCUMENTS: CountDocumentsArgs,
}
