"""Store gateway: per-call MongoDB connections and operation execution.

Every call to ``StoreGateway.execute`` opens its own ``MongoClient``, runs exactly
one operation and closes the client again, whether the operation succeeded or
raised. No client is kept between calls. This trades connection setup latency
for isolation: a failing call cannot poison a shared pool, and there is no
state to coordinate between concurrent calls.

The gateway keeps a registry of clients that are open *right now* so that
process teardown (SIGINT/SIGTERM) can close in-flight connections.

Example:
    >>> gateway = StoreGateway("mongodb://localhost:27017/app")
    >>> gateway.execute("users", MongoOperation.COUNT_DOCUMENTS, CountDocumentsArgs())
    42
"""

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult

from mongo_mcp.config.settings import settings

from ..exceptions import StoreError, convert_to_store_error
from ..tools.models import MongoOperation, OperationArgs

logger = logging.getLogger(__name__)

# camelCase option names (as used by the MongoDB drivers' shared API) mapped to
# pymongo keyword arguments. Unlisted names are passed through unchanged.
_FIND_OPTION_NAMES: dict[str, str] = {
    "allowDiskUse": "allow_disk_use",
    "batchSize": "batch_size",
    "maxTimeMS": "max_time_ms",
    "noCursorTimeout": "no_cursor_timeout",
    "returnKey": "return_key",
    "showRecordId": "show_record_id",
}

_WRITE_OPTION_NAMES: dict[str, str] = {
    "arrayFilters": "array_filters",
    "bypassDocumentValidation": "bypass_document_validation",
}

# count_documents forwards its keyword arguments to the server as-is, so
# maxTimeMS and friends keep their camelCase names.
_COUNT_OPTION_NAMES: dict[str, str] = {}


def _driver_options(options: dict[str, Any] | None, names: dict[str, str]) -> dict[str, Any]:
    """Translate caller options into pymongo keyword arguments."""
    if not options:
        return {}

    translated = {names.get(key, key): value for key, value in options.items()}

    # pymongo wants (key, direction) pairs; callers send {"field": 1}
    sort = translated.get("sort")
    if isinstance(sort, dict):
        translated["sort"] = list(sort.items())

    return translated


def _insert_result(result: InsertOneResult) -> dict[str, Any]:
    return {"acknowledged": result.acknowledged, "insertedId": result.inserted_id}


def _update_result(result: UpdateResult) -> dict[str, Any]:
    if not result.acknowledged:
        return {"acknowledged": False}
    return {
        "acknowledged": True,
        "matchedCount": result.matched_count,
        "modifiedCount": result.modified_count,
        "upsertedCount": 0 if result.upserted_id is None else 1,
        "upsertedId": result.upserted_id,
    }


def _delete_result(result: DeleteResult) -> dict[str, Any]:
    if not result.acknowledged:
        return {"acknowledged": False}
    return {"acknowledged": True, "deletedCount": result.deleted_count}


class StoreGateway:
    """Executes one MongoDB operation per call on a freshly opened client.

    Attributes:
        connection_string: MongoDB URI given on the command line
    """

    def __init__(
        self,
        connection_string: str,
        client_factory: Callable[..., MongoClient] = MongoClient,
    ) -> None:
        """Initialize the gateway. Does not connect.

        Args:
            connection_string: MongoDB URI, optionally naming the database
            client_factory: Callable building a client from the URI and
                keyword options. Tests pass a mock here.
        """
        self.connection_string = connection_string
        self._client_factory = client_factory
        self._open_clients: set[Any] = set()
        self._lock = threading.Lock()

        logger.debug(
            f"StoreGateway initialized for "
            f"{settings.redact_connection_string(connection_string)}"
        )

    # =========================================================================
    # CONNECTION LIFECYCLE
    # =========================================================================

    @contextmanager
    def session(self) -> Iterator[Database]:
        """Open a client, yield its default database, and always close it.

        The database is the one named in the connection string, or
        ``settings.default_database`` when the string names none.

        Yields:
            pymongo Database bound to the freshly opened client
        """
        client = self._client_factory(
            self.connection_string,
            serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
            connectTimeoutMS=settings.mongodb_timeout_ms,
            appname=settings.server_name,
        )
        with self._lock:
            self._open_clients.add(client)
        logger.debug("Opened MongoDB client")

        try:
            yield client.get_default_database(default=settings.default_database)
        finally:
            self._close_client(client)

    def check_connection_string(self) -> None:
        """Parse the connection string by building a client that does not connect.

        Called once at startup so a malformed URI stops the server instead of
        failing every later call.

        Raises:
            StoreConnectionError: If the driver rejects the connection string
        """
        try:
            client = self._client_factory(self.connection_string, connect=False)
        except Exception as e:
            raise convert_to_store_error(e, context={"operation": "startup"}) from e
        client.close()

    def _close_client(self, client: Any) -> None:
        with self._lock:
            self._open_clients.discard(client)
        client.close()
        logger.debug("Closed MongoDB client")

    @property
    def open_client_count(self) -> int:
        """Number of clients currently open (in-flight calls)."""
        with self._lock:
            return len(self._open_clients)

    def close_all(self) -> None:
        """Close every client that is still open. Used at process teardown.

        Errors while closing are logged and do not stop the remaining closes.
        """
        with self._lock:
            clients = list(self._open_clients)
            self._open_clients.clear()

        if clients:
            logger.info(f"Closing {len(clients)} open MongoDB client(s)...")

        for client in clients:
            try:
                client.close()
            except Exception as e:
                logger.error(f"Error closing MongoDB client during shutdown: {e}")

    # =========================================================================
    # OPERATION EXECUTION
    # =========================================================================

    def execute(
        self,
        collection_name: str,
        operation: MongoOperation,
        decoded_args: OperationArgs,
    ) -> Any:
        """Run one operation against ``collection_name``.

        Args:
            collection_name: Target collection
            operation: Which of the five operations to run
            decoded_args: Argument model matching ``operation``

        Returns:
            list of documents (find), acknowledgement dict (insertOne,
            updateOne, deleteOne) or int (countDocuments)

        Raises:
            StoreError: If the connection cannot be established or MongoDB
                rejects the operation
        """
        context = {"collection": collection_name, "operation": operation.value}

        try:
            with self.session() as db:
                collection = db[collection_name]
                return self._run(collection, operation, decoded_args)

        except StoreError:
            raise

        except Exception as e:
            raise convert_to_store_error(e, context=context) from e

    def _run(self, collection: Collection, operation: MongoOperation, args: OperationArgs) -> Any:
        if operation is MongoOperation.FIND:
            cursor = collection.find(args.filter, **_driver_options(args.options, _FIND_OPTION_NAMES))
            return list(cursor)

        if operation is MongoOperation.INSERT_ONE:
            result = collection.insert_one(
                args.document, **_driver_options(args.options, _WRITE_OPTION_NAMES)
            )
            return _insert_result(result)

        if operation is MongoOperation.UPDATE_ONE:
            result = collection.update_one(
                args.filter, args.update, **_driver_options(args.options, _WRITE_OPTION_NAMES)
            )
            return _update_result(result)

        if operation is MongoOperation.DELETE_ONE:
            result = collection.delete_one(
                args.filter, **_driver_options(args.options, _WRITE_OPTION_NAMES)
            )
            return _delete_result(result)

        if operation is MongoOperation.COUNT_DOCUMENTS:
            return collection.count_documents(
                args.filter, **_driver_options(args.options, _COUNT_OPTION_NAMES)
            )

        raise ValueError(f"Unsupported operation: {operation}")
