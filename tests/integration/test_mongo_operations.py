"""End-to-end tests of the dispatcher against a real MongoDB.

Set ``TEST_MONGODB_URI`` to point at a disposable deployment (default
``mongodb://localhost:27017``, without a database path). Each test works in its own database,
which is dropped afterwards. The whole module is skipped when the server
cannot be reached.
"""

import json
import os
from uuid import uuid4

import pytest
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from mongo_mcp.mcp_server.database.connection import StoreGateway
from mongo_mcp.mcp_server.tools.dispatcher import OperationDispatcher
from mongo_mcp.mcp_server.tools.models import TOOL_NAME

MONGODB_URI = os.getenv("TEST_MONGODB_URI", "mongodb://localhost:27017")


@pytest.fixture(scope="module")
def admin_client():
    client = MongoClient(MONGODB_URI, serverSelectionTimeoutMS=2000)
    try:
        client.admin.command("ping")
    except PyMongoError as e:
        client.close()
        pytest.skip(f"MongoDB not reachable at {MONGODB_URI}: {e}")

    yield client
    client.close()


@pytest.fixture
def database_name(admin_client):
    name = f"mongo_mcp_test_{uuid4().hex[:12]}"
    yield name
    admin_client.drop_database(name)


@pytest.fixture
def live_dispatcher(database_name):
    base, _, query = MONGODB_URI.partition("?")
    uri = f"{base.rstrip('/')}/{database_name}"
    if query:
        uri = f"{uri}?{query}"

    gateway = StoreGateway(uri)
    yield OperationDispatcher(gateway)
    gateway.close_all()


async def run(dispatcher, operation, args, collection="users"):
    content = await dispatcher.handle(
        TOOL_NAME,
        {"collectionName": collection, "operation": operation, "args": json.dumps(args)},
    )
    return json.loads(content[0].text)


async def test_insert_find_update_delete_cycle(live_dispatcher):
    inserted = await run(live_dispatcher, "insertOne", {"document": {"name": "Ada", "age": 36}})
    assert inserted["acknowledged"] is True
    object_id = inserted["insertedId"]["$oid"]

    found = await run(live_dispatcher, "find", {"filter": {"name": "Ada"}})
    assert [doc["_id"]["$oid"] for doc in found] == [object_id]

    updated = await run(
        live_dispatcher,
        "updateOne",
        {"filter": {"_id": {"$oid": object_id}}, "update": {"$set": {"age": 37}}},
    )
    assert updated["matchedCount"] == 1
    assert updated["modifiedCount"] == 1

    deleted = await run(live_dispatcher, "deleteOne", {"filter": {"_id": {"$oid": object_id}}})
    assert deleted == {"acknowledged": True, "deletedCount": 1}

    assert await run(live_dispatcher, "countDocuments", {}) == 0


async def test_find_options_and_count(live_dispatcher):
    for name, age in [("a", 30), ("b", 20), ("c", 40)]:
        await run(live_dispatcher, "insertOne", {"document": {"name": name, "age": age}})

    found = await run(
        live_dispatcher,
        "find",
        {"filter": {}, "options": {"sort": {"age": -1}, "limit": 2, "projection": {"_id": 0}}},
    )
    assert found == [{"name": "c", "age": 40}, {"name": "a", "age": 30}]

    assert await run(live_dispatcher, "countDocuments", {"filter": {"age": {"$gte": 30}}}) == 2
    assert await run(live_dispatcher, "countDocuments", {}) == 3


async def test_update_without_match_reports_zero(live_dispatcher):
    updated = await run(
        live_dispatcher,
        "updateOne",
        {"filter": {"name": "nobody"}, "update": {"$set": {"age": 1}}},
    )

    assert updated["matchedCount"] == 0
    assert updated["upsertedId"] is None


async def test_server_rejection_becomes_internal_error(live_dispatcher):
    with pytest.raises(McpError) as exc_info:
        await run(live_dispatcher, "find", {"filter": {"$badOperator": 1}})

    assert exc_info.value.error.code == INTERNAL_ERROR
    assert exc_info.value.error.message.startswith("MongoDB operation failed: ")
    assert "$badOperator" in exc_info.value.error.message
