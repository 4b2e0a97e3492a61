from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..errors import OperationResult
from ..schemas import (
    AggregateRequest,
    CountRequest,
    DistinctRequest,
    FindRequest,
    InsertManyRequest,
    InsertOneRequest,
)
from ..services import operations
from ..services.mongo import ConnectionManager, get_conn_mgr

router = APIRouter(tags=["operations"])


def _respond(result: OperationResult, verbose: bool = True):
    if result.success:
        return result.value
    return JSONResponse(status_code=500, content=result.error.to_dict(verbose=verbose))


@router.post("/query")
def query_documents(payload: FindRequest, conn_mgr: ConnectionManager = Depends(get_conn_mgr)):
    return _respond(operations.find(conn_mgr, payload))


@router.post("/aggregate")
def run_aggregation(payload: AggregateRequest, conn_mgr: ConnectionManager = Depends(get_conn_mgr)):
    return _respond(operations.aggregate(conn_mgr, payload))


@router.post("/count")
def count_documents(payload: CountRequest, conn_mgr: ConnectionManager = Depends(get_conn_mgr)):
    result = operations.count(conn_mgr, payload)
    if result.success:
        return {"count": result.value}
    return _respond(result)


@router.post("/distinct")
def distinct_values(payload: DistinctRequest, conn_mgr: ConnectionManager = Depends(get_conn_mgr)):
    return _respond(operations.distinct(conn_mgr, payload))


@router.post("/insertOne")
def insert_one(payload: InsertOneRequest, conn_mgr: ConnectionManager = Depends(get_conn_mgr)):
    return _respond(operations.insert_one(conn_mgr, payload), verbose=False)


@router.post("/insertMany")
def insert_many(payload: InsertManyRequest, conn_mgr: ConnectionManager = Depends(get_conn_mgr)):
    return _respond(operations.insert_many(conn_mgr, payload), verbose=False)
