"""
Helpers for moving documents between MongoDB and JSON
"""
from datetime import datetime, timedelta
from typing import Any, Optional
from bson import ObjectId


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Return an ObjectId for a valid identifier, None otherwise"""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def serialize_value(value: Any) -> Any:
    """Recursively serialize non-JSON-serializable values"""
    if isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, timedelta):
        return str(value)
    elif isinstance(value, ObjectId):
        return str(value)
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    return value


def serialize_document(document: Optional[dict]) -> Optional[dict]:
    """Convert a stored document to JSON, exposing _id as id"""
    if document is None:
        return None

    document = dict(document)
    if "_id" in document:
        document["id"] = str(document.pop("_id"))

    return serialize_value(document)
