import logging
import platform
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from ..config import Settings
from ..services.mongo import ConnectionManager, get_conn_mgr
from ..utils import uri_host

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _failed(e: Exception) -> Dict[str, Any]:
    return {"status": "failed", "error": str(e) or e.__class__.__name__}


@router.get("/health")
def health(
    settings: Settings = Depends(get_settings),
    conn_mgr: ConnectionManager = Depends(get_conn_mgr),
):
    """Liveness plus a ping and a count on the probe collection when connected. Always 200."""
    result: Dict[str, Any] = {
        "status": "ok",
        "connected": conn_mgr.is_connected,
        "database": settings.database,
        "timestamp": _now(),
    }
    if conn_mgr.is_connected:
        try:
            conn_mgr.ping()
            result["ping"] = "success"
            result["documentCount"] = conn_mgr.database[settings.health_collection].count_documents({})
            result["testCollection"] = "accessible"
        except Exception as e:
            logger.warning("Health probe failed: %s", e)
            result["ping"] = "failed"
            result["pingError"] = str(e) or e.__class__.__name__
            result["status"] = "degraded"
    return result


@router.get("/diagnose")
def diagnose(
    settings: Settings = Depends(get_settings),
    conn_mgr: ConnectionManager = Depends(get_conn_mgr),
):
    """
    Run the connection, ping, list-collections and sample-query probes in order.
    Failures are reported per probe; the response is always 200.
    """
    diagnostics: Dict[str, Any] = {
        "timestamp": _now(),
        "environment": {
            "pythonVersion": platform.python_version(),
            "port": settings.port,
            "database": settings.database,
            "mongoUriConfigured": bool(settings.mongodb_uri),
            "mongoUriHost": uri_host(settings.mongodb_uri) or "not configured",
        },
        "connection": {
            "clientInitialized": conn_mgr.client_initialized,
            "dbInitialized": conn_mgr.is_connected,
        },
        "tests": {},
    }
    tests = diagnostics["tests"]

    try:
        db = conn_mgr.ensure_connected()
        tests["connection"] = {"status": "success"}
    except Exception as e:
        tests["connection"] = _failed(e)
        return diagnostics

    try:
        conn_mgr.ping()
        tests["ping"] = {"status": "success"}
    except Exception as e:
        tests["ping"] = _failed(e)

    try:
        names = db.list_collection_names()
        tests["listCollections"] = {"status": "success", "count": len(names), "collections": names}
    except Exception as e:
        tests["listCollections"] = _failed(e)

    try:
        col = db[settings.health_collection]
        count = col.count_documents({})
        sample = col.find_one()
        tests["networkTests"] = {
            "status": "success",
            "count": count,
            "hasSampleData": sample is not None,
        }
    except Exception as e:
        tests["networkTests"] = _failed(e)

    return diagnostics
