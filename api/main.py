"""
MOF Field Calculator - FastAPI Application

This is the main entry point for the FastAPI backend.
It combines all route modules and provides system-wide endpoints.

Features:
- CT / MOF / peak power tables
- AISS controller setting lookup
- Stored meter sessions per device
- Resource projection
- Interactive API documentation (Swagger/OpenAPI)

Access Points:
- API Root: http://localhost:8000
- Swagger Docs: http://localhost:8000/docs
- ReDoc: http://localhost:8000/redoc
- OpenAPI JSON: http://localhost:8000/openapi.json
"""

import os
import logging
from datetime import datetime, timezone
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from api.database import check_database_health, init_database
from api.routes import meter_router, sessions_router, projection_router
from api.models import ErrorResponse, SystemHealth

# =========================================
# Logging Configuration
# =========================================

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# =========================================
# Application Lifespan
# =========================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs on startup and shutdown to manage resources.
    """
    logger.info("Starting MOF Field Calculator API...")

    try:
        init_database()

        db_health = check_database_health()
        if db_health["status"] == "healthy":
            logger.info(f"Database connection verified ({db_health.get('dialect')})")
        else:
            logger.warning(f"Database health check failed: {db_health}")

    except Exception as e:
        logger.error(f"Startup error: {e}")
        # Calculations do not need the database; keep serving them

    logger.info("MOF Field Calculator API started")
    logger.info("API Documentation: http://localhost:8000/docs")

    yield

    logger.info("Shutting down MOF Field Calculator API...")


# =========================================
# FastAPI Application
# =========================================

app = FastAPI(
    title="MOF Field Calculator API",
    description="""
## Metering-Out-Fit Field Calculator

Field tool for checking MOF (metering out fit) installations on 22.9kV
distribution lines.

### Key Features

- **CT Table**: MOF, Max TR and peak power for every standard CT rating
- **AISS Lookup**: Standard controller setting for a transformer capacity
- **Sessions**: Last readout and selected row stored per device
- **Projection**: Day-by-day resource projection

### Core Concepts

#### Readout
Readings are entered on a 4-digit keypad and read as `D.DDD`. Digits
typed within 2 seconds of each other scroll in from the right; a digit
typed later starts a fresh readout.

#### CT Table
- **MOF** = PT ratio (120) × CT / 5
- **Max TR** = CT × 35.7, rounded half-up
- **Peak Power** = reading × MOF

### Quick Start

1. **Check API health**: `GET /health`
2. **CT table**: `GET /api/v1/meter/table?digits=0450`
3. **AISS setting**: `GET /api/v1/meter/aiss?max_tr=536`
4. **Type on a device**: `POST /api/v1/sessions/FIELD-01/keys`
    """,
    version=__version__,
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT"
    },
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


# =========================================
# CORS Middleware
# =========================================

# Comma-separated; the Streamlit dashboard is the default client
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:8501,http://127.0.0.1:8501").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "PUT", "POST", "DELETE"],
    allow_headers=["*"],
)


# =========================================
# Exception Handlers
# =========================================

def error_response(status_code: int, message: str, detail: Optional[str] = None) -> JSONResponse:
    """Render the ErrorResponse envelope."""
    body = ErrorResponse(
        message=message,
        detail=detail,
        status_code=status_code,
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """Unexpected errors; the exception text is only exposed with DEBUG=true."""
    logger.exception(f"Unhandled exception on {request.url.path}: {exc}")
    show_detail = os.getenv("DEBUG", "false").lower() == "true"
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred",
        detail=str(exc) if show_detail else None,
    )


# =========================================
# Include Routers
# =========================================

# Every route can answer with the JSON error envelope
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Readout, row or input not usable"},
    404: {"model": ErrorResponse, "description": "Row or stored session not found"},
    500: {"model": ErrorResponse, "description": "Unexpected error"},
}

for router in (meter_router, sessions_router, projection_router):
    app.include_router(router, prefix="/api/v1", responses=ERROR_RESPONSES)


# =========================================
# Root Endpoints
# =========================================

@app.get(
    "/",
    tags=["System"],
    summary="API Root",
    description="Welcome endpoint with API information"
)
async def root():
    """API root endpoint."""
    return {
        "name": "MOF Field Calculator API",
        "version": __version__,
        "description": "CT / MOF / AISS field calculations",
        "documentation": "/docs",
        "health_check": "/health",
        "api_base": "/api/v1"
    }


@app.get(
    "/health",
    response_model=SystemHealth,
    tags=["System"],
    summary="System Health Check",
    description="Check the health status of the API and its dependencies"
)
async def health_check():
    """System health check endpoint."""
    db_health = check_database_health()

    overall_status = "ok" if db_health["status"] == "healthy" else "degraded"

    return SystemHealth(
        status=overall_status,
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        database=db_health["status"],
        components={
            "api": "ok",
            "database": db_health["status"],
            "metering_engine": "ok",
            "aiss_lookup": "ok"
        }
    )


@app.get(
    "/info",
    tags=["System"],
    summary="System Information",
    description="Get detailed system information"
)
async def system_info():
    """Get system information."""
    db_health = check_database_health()

    return {
        "api": {
            "name": "MOF Field Calculator API",
            "version": __version__,
            "environment": os.getenv("ENVIRONMENT", "development")
        },
        "database": {
            "status": db_health["status"],
            "dialect": db_health.get("dialect"),
            "snapshot_table_ready": db_health.get("snapshot_table_exists", False)
        },
        "endpoints": {
            "table": "/api/v1/meter/table",
            "aiss": "/api/v1/meter/aiss",
            "sessions": "/api/v1/sessions/{device_id}",
            "projection": "/api/v1/projection"
        },
        "documentation": {
            "swagger": "/docs",
            "redoc": "/redoc",
            "openapi": "/openapi.json"
        }
    }


@app.get("/ready", tags=["System"], summary="Readiness Check")
async def readiness_check():
    """
    Ready once the snapshot table can be reached.

    Calculations work without storage, but sessions do not.
    """
    db_health = check_database_health()

    if db_health["status"] != "healthy" or not db_health.get("snapshot_table_exists"):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Snapshot storage not ready"
        )

    return {"ready": True}


@app.get("/live", tags=["System"], summary="Liveness Check")
async def liveness_check():
    return {"alive": True, "version": __version__}


# =========================================
# Run with Uvicorn (for development)
# =========================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", 8000)),
        reload=os.getenv("API_RELOAD", "true").lower() == "true",
        log_level=os.getenv("LOG_LEVEL", "info").lower()
    )
