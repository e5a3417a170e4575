"""Core helpers shared by the MongoDB tools.

Currently this is BSON-aware JSON encoding and decoding of operation payloads.
"""

from .result_serialization import deserialize_mongodb_result, serialize_mongodb_result

__all__ = [
    "serialize_mongodb_result",
    "deserialize_mongodb_result",
]
