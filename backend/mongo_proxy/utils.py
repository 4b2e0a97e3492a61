import json
import math
import uuid
from datetime import date, datetime
from typing import Any, Optional
from urllib.parse import urlsplit

from bson import ObjectId, json_util
from bson.binary import Binary
from bson.dbref import DBRef
from bson.decimal128 import Decimal128
from bson.json_util import RELAXED_JSON_OPTIONS

# Extended JSON wrappers that stand for a single BSON value. Dicts mixing
# these keys with query operators are left alone.
_WRAPPER_KEYS = {
    frozenset([key])
    for key in (
        "$oid",
        "$date",
        "$numberInt",
        "$numberLong",
        "$numberDouble",
        "$numberDecimal",
        "$binary",
        "$uuid",
        "$timestamp",
        "$regularExpression",
        "$symbol",
        "$code",
        "$dbPointer",
        "$minKey",
        "$maxKey",
    )
} | {frozenset(["$binary", "$type"]), frozenset(["$code", "$scope"])}
_LEGACY_REGEX_KEYS = frozenset(["$regex", "$options"])


def to_jsonable(obj: Any) -> Any:
    """Recursively convert Mongo objects (e.g., ObjectId) to JSON-serializable types."""
    if obj is None or isinstance(obj, (str, bool, int)):
        return obj
    if isinstance(obj, float):
        # NaN and +/-Infinity have no JSON form
        return obj if math.isfinite(obj) else None
    if isinstance(obj, ObjectId):
        return str(obj)
    if isinstance(obj, Decimal128):
        # string keeps the full precision
        return str(obj.to_decimal())
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, uuid.UUID):
        return str(obj)
    if isinstance(obj, (Binary, bytes)):
        return bytes(obj).hex()
    if isinstance(obj, DBRef):
        ref = {"$ref": obj.collection, "$id": to_jsonable(obj.id)}
        if obj.database is not None:
            ref["$db"] = obj.database
        return ref
    if isinstance(obj, dict):
        return {k: to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(i) for i in obj]
    # Timestamp, Regex, Code, MinKey, MaxKey, ...
    try:
        return json.loads(json_util.dumps(obj, json_options=RELAXED_JSON_OPTIONS))
    except (TypeError, ValueError):
        return str(obj)


def _is_wrapper(data: dict) -> bool:
    keys = frozenset(data)
    if keys in _WRAPPER_KEYS:
        return True
    return "$regex" in keys and keys <= _LEGACY_REGEX_KEYS


def from_extended_json(data: Any) -> Any:
    """Decode extended JSON value wrappers ($oid, $date, ...) inside a parsed request body.

    Only dicts made up entirely of one wrapper's keys are decoded; every other
    dict, including query operators, reaches the driver unchanged.
    """
    if isinstance(data, dict):
        if _is_wrapper(data):
            return json_util.loads(json.dumps(data))
        return {k: from_extended_json(v) for k, v in data.items()}
    if isinstance(data, list):
        return [from_extended_json(item) for item in data]
    return data


def uri_host(uri: Optional[str]) -> Optional[str]:
    """Host list of a connection string, without scheme, credentials or path."""
    if not uri:
        return None
    try:
        netloc = urlsplit(uri).netloc
    except ValueError:
        return None
    return netloc.rpartition("@")[2] or None
