"""Result serialization for converting between MongoDB values and JSON text.

Outgoing results are rendered as pretty-printed JSON with BSON types (ObjectId,
datetime, Decimal128, ...) encoded as relaxed MongoDB Extended JSON. Incoming
``args`` blobs are decoded with the same rules, so a caller can address a
document by ``{"_id": {"$oid": "..."}}``.
"""

import json
import logging
from typing import Any

from bson import json_util
from bson.json_util import RELAXED_JSON_OPTIONS

logger = logging.getLogger(__name__)


def serialize_mongodb_result(data: Any) -> str:
    """Serialize an operation result to a JSON string with BSON type support.

    Args:
        data: Operation result (list of documents, acknowledgement dict or int)

    Returns:
        JSON formatted string with two-space indentation

    Raises:
        TypeError: If data contains values json_util cannot encode

    Example:
        >>> from bson import ObjectId
        >>> print(serialize_mongodb_result({"insertedId": ObjectId("65f1c0ffee0000000000abcd")}))
        {
          "insertedId": {
            "$oid": "65f1c0ffee0000000000abcd"
          }
        }
    """
    try:
        return json.dumps(
            data,
            default=lambda value: json_util.default(value, json_options=RELAXED_JSON_OPTIONS),
            indent=2,
            ensure_ascii=False,
        )

    except TypeError as e:
        logger.error(f"Failed to serialize MongoDB result: {e}")
        raise


def deserialize_mongodb_result(json_str: str) -> Any:
    """Decode a JSON string, restoring Extended JSON values to BSON types.

    Args:
        json_str: JSON text, possibly containing ``$oid``, ``$date``, ...

    Returns:
        Decoded Python value with BSON types restored

    Raises:
        json.JSONDecodeError: If the text is not valid JSON
        bson.errors.InvalidId: If an ``$oid`` value is malformed

    Example:
        >>> deserialize_mongodb_result('{"_id": {"$oid": "65f1c0ffee0000000000abcd"}}')
        {'_id': ObjectId('65f1c0ffee0000000000abcd')}
    """
    try:
        return json.loads(json_str, object_hook=json_util.object_hook)

    except json.JSONDecodeError as e:
        logger.debug(f"Failed to deserialize JSON: {e}")
        raise
