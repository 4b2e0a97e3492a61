import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, load_settings
from .errors import ConfigurationError
from .logs import setup_logging
from .routers import health as health_router
from .routers import operations as operations_router
from .services.mongo import ConnectionManager

logger = logging.getLogger(__name__)


def _banner(settings: Settings) -> None:
    logger.info("MongoDB Proxy Server")
    logger.info("   Running on: http://localhost:%s", settings.port)
    logger.info("   Database: %s", settings.database)


def create_app(
    settings: Optional[Settings] = None,
    conn_mgr: Optional[ConnectionManager] = None,
    connect_on_startup: bool = True,
) -> FastAPI:
    """Build the FastAPI app around one ConnectionManager.

    Usable directly as a uvicorn factory: ``uvicorn --factory mongo_proxy.main:create_app``.
    """
    if settings is None:
        settings = load_settings()
    if conn_mgr is None:
        conn_mgr = ConnectionManager(
            settings.mongodb_uri,
            settings.database,
            server_selection_timeout_ms=settings.server_selection_timeout_ms,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _banner(settings)
        if connect_on_startup:
            try:
                conn_mgr.ensure_connected()
                logger.info("MongoDB connection verified")
            except ConnectionError as e:
                # not fatal, requests retry the connection
                logger.error("Failed to connect to MongoDB: %s. Check your MONGODB_URI", e)
        yield
        logger.info("Shutting down...")
        conn_mgr.close()

    app = FastAPI(title="MongoDB HTTP Proxy", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.conn_mgr = conn_mgr

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
        )

    app.include_router(health_router.router)
    app.include_router(operations_router.router)
    return app


def run() -> None:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        print("   Set it in your environment or .env file", file=sys.stderr)
        sys.exit(1)

    setup_logging(settings.log_level, settings.log_file)
    app = create_app(settings)
    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    except KeyboardInterrupt:
        # uvicorn re-raises the captured SIGINT after its graceful shutdown
        pass
    sys.exit(0)
