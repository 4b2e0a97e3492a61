"""
Database operations exposed over HTTP.

Each function activates the shared connection, issues exactly one driver
call against ``db[collection]`` and returns an OperationResult. Exceptions
never escape: they are logged and returned as the result's error, leaving
the choice of HTTP status to the router.
"""

import json
import logging
from typing import Any, Callable, List, Tuple

from pymongo import ASCENDING, DESCENDING
from pymongo.collection import Collection

from ..errors import OperationResult
from ..schemas import (
    AggregateRequest,
    CountRequest,
    DistinctRequest,
    FindOptions,
    FindRequest,
    InsertManyRequest,
    InsertOneRequest,
)
from ..utils import from_extended_json, to_jsonable
from .mongo import ConnectionManager

logger = logging.getLogger(__name__)

_DIRECTIONS = {
    1: ASCENDING,
    -1: DESCENDING,
    "1": ASCENDING,
    "-1": DESCENDING,
    "asc": ASCENDING,
    "ascending": ASCENDING,
    "desc": DESCENDING,
    "descending": DESCENDING,
}


def _direction(value: Any) -> int:
    key = value.lower() if isinstance(value, str) else value
    if isinstance(key, bool) or key not in _DIRECTIONS:
        raise ValueError(f"Invalid sort direction: {value!r}")
    return _DIRECTIONS[key]


def sort_spec(sort: Any) -> List[Tuple[str, int]]:
    """Normalize the sort forms clients send into what pymongo's Cursor.sort accepts."""
    if isinstance(sort, str):
        return [(sort, ASCENDING)]
    if isinstance(sort, dict):
        return [(field, _direction(d)) for field, d in sort.items()]
    if isinstance(sort, (list, tuple)):
        # a single ["field", direction] pair
        if len(sort) == 2 and isinstance(sort[0], str) and not isinstance(sort[1], (list, tuple, dict)):
            return [(sort[0], _direction(sort[1]))]
        spec = []
        for item in sort:
            if isinstance(item, str):
                spec.append((item, ASCENDING))
            elif isinstance(item, (list, tuple)) and len(item) == 2:
                spec.append((item[0], _direction(item[1])))
            elif isinstance(item, dict):
                spec.extend((field, _direction(d)) for field, d in item.items())
            else:
                raise ValueError(f"Invalid sort item: {item!r}")
        return spec
    raise ValueError(f"Invalid sort specification: {sort!r}")


def _execute(label: str, conn_mgr: ConnectionManager, collection: str, call: Callable[[Collection], Any]) -> OperationResult:
    try:
        db = conn_mgr.ensure_connected()
        value = call(db[collection])
    except Exception as e:
        logger.exception("[%s] Error: %s", label, e)
        return OperationResult.failed(e)
    return OperationResult.ok(value)


def _dumps(value: Any) -> str:
    return json.dumps(value, default=str)


def find(conn_mgr: ConnectionManager, payload: FindRequest) -> OperationResult:
    options = payload.options or FindOptions()
    logger.info(
        "[QUERY] Collection: %s, Query: %s Options: %s",
        payload.collection,
        _dumps(payload.query or {}),
        _dumps(options.model_dump(exclude_none=True)),
    )

    def call(col: Collection):
        cursor = col.find(from_extended_json(payload.query or {}))
        # absent or zero means no restriction
        if options.sort:
            cursor = cursor.sort(sort_spec(options.sort))
        if options.skip:
            cursor = cursor.skip(options.skip)
        if options.limit:
            cursor = cursor.limit(options.limit)
        return [to_jsonable(doc) for doc in cursor]

    result = _execute("QUERY", conn_mgr, payload.collection, call)
    if result.success:
        logger.info("[QUERY] Success: returned %d documents", len(result.value))
    return result


def aggregate(conn_mgr: ConnectionManager, payload: AggregateRequest) -> OperationResult:
    logger.info("[AGGREGATE] Collection: %s, Pipeline: %s", payload.collection, _dumps(payload.pipeline))

    def call(col: Collection):
        return [to_jsonable(doc) for doc in col.aggregate(from_extended_json(payload.pipeline))]

    result = _execute("AGGREGATE", conn_mgr, payload.collection, call)
    if result.success:
        logger.info("[AGGREGATE] Success: returned %d documents", len(result.value))
    return result


def count(conn_mgr: ConnectionManager, payload: CountRequest) -> OperationResult:
    logger.info("[COUNT] Collection: %s, Query: %s", payload.collection, _dumps(payload.query or {}))

    def call(col: Collection):
        return col.count_documents(from_extended_json(payload.query or {}))

    result = _execute("COUNT", conn_mgr, payload.collection, call)
    if result.success:
        logger.info("[COUNT] Success: %d documents", result.value)
    return result


def distinct(conn_mgr: ConnectionManager, payload: DistinctRequest) -> OperationResult:
    logger.info(
        "[DISTINCT] Collection: %s, Field: %s, Query: %s",
        payload.collection,
        payload.field,
        _dumps(payload.query or {}),
    )

    def call(col: Collection):
        return to_jsonable(col.distinct(payload.field, from_extended_json(payload.query or {})))

    result = _execute("DISTINCT", conn_mgr, payload.collection, call)
    if result.success:
        logger.info("[DISTINCT] Success: %d unique values", len(result.value))
    return result


def insert_one(conn_mgr: ConnectionManager, payload: InsertOneRequest) -> OperationResult:
    def call(col: Collection):
        res = col.insert_one(from_extended_json(payload.document))
        return {"acknowledged": res.acknowledged, "insertedId": to_jsonable(res.inserted_id)}

    result = _execute("INSERT_ONE", conn_mgr, payload.collection, call)
    if result.success:
        logger.info("[INSERT_ONE] Collection: %s, insertedId: %s", payload.collection, result.value["insertedId"])
    return result


def insert_many(conn_mgr: ConnectionManager, payload: InsertManyRequest) -> OperationResult:
    def call(col: Collection):
        res = col.insert_many(from_extended_json(payload.documents))
        ids = res.inserted_ids
        return {
            "acknowledged": res.acknowledged,
            "insertedCount": len(ids),
            "insertedIds": {str(i): to_jsonable(_id) for i, _id in enumerate(ids)},
        }

    result = _execute("INSERT_MANY", conn_mgr, payload.collection, call)
    if result.success:
        logger.info("[INSERT_MANY] Collection: %s, inserted %d documents", payload.collection, result.value["insertedCount"])
    return result
