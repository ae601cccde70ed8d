"""
Switchbook Import API

Bulk CSV import and export for a keyboard switch collection.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import structlog
from datetime import datetime, timezone

from config import settings, check_connection
from config.switch_aliases import ALIAS_TABLE_VERSION
from exceptions import AppError

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: report the alias table in use and whether both tables
    the import reads (switches, manufacturers) are reachable.

    Import sessions are in memory only, so nothing is flushed on shutdown.
    """
    logger.info(
        "switchbook_import_starting",
        environment=settings.environment,
        alias_table_version=ALIAS_TABLE_VERSION,
        session_ttl_minutes=settings.import_session_ttl_minutes,
        max_sessions=settings.import_session_max_count
    )

    db_status = check_connection()
    if db_status["status"] == "healthy":
        logger.info(
            "catalog_tables_reachable",
            switches=db_status["switches_count"],
            manufacturers=db_status["manufacturers_count"]
        )
    else:
        logger.error("catalog_tables_unreachable", error=db_status.get("error"))

    yield

    logger.info("switchbook_import_stopped")


app = FastAPI(
    title="Switchbook Import API",
    description="Bulk CSV import and export for a keyboard switch collection",
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)


@app.get("/health")
async def health_check():
    """Database reachability plus in-memory import session counts."""
    from services.import_session_service import get_import_session_service

    db_status = check_connection()

    return {
        "status": "healthy" if db_status["status"] == "healthy" else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": db_status,
        "import_sessions": get_import_session_service().stats(),
        "alias_table_version": ALIAS_TABLE_VERSION
    }


@app.get("/")
async def root():
    return {
        "name": "Switchbook Import API",
        "version": API_VERSION,
        "docs": "/docs" if settings.debug else None,
        "endpoints": {
            "imports": "/api/imports",
            "import_template": "/api/imports/template",
            "switch_export": "/api/switches/export"
        }
    }


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Domain errors raised outside a route's own handle_error."""
    logger.warning(
        "app_error",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.debug else None
            }
        }
    )


from routes import imports_router, switches_router

app.include_router(imports_router)
app.include_router(switches_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
