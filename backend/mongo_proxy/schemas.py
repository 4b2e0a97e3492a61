from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class FindOptions(BaseModel):
    # {"field": 1}, [["field", 1], ...], ["field", -1] or "field"
    sort: Optional[Any] = None
    skip: Optional[int] = None
    limit: Optional[int] = None


class CollectionRequest(BaseModel):
    collection: str = Field(..., min_length=1)


class FindRequest(CollectionRequest):
    query: Optional[Dict[str, Any]] = None
    options: Optional[FindOptions] = None


class AggregateRequest(CollectionRequest):
    pipeline: List[Dict[str, Any]]


class CountRequest(CollectionRequest):
    query: Optional[Dict[str, Any]] = None


class DistinctRequest(CollectionRequest):
    field: str = Field(..., min_length=1)
    query: Optional[Dict[str, Any]] = None


class InsertOneRequest(CollectionRequest):
    document: Dict[str, Any]


class InsertManyRequest(CollectionRequest):
    documents: List[Dict[str, Any]]
