from __future__ import annotations

import logging
import time

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.cors import CORSMiddleware
import uvicorn

from .config import settings
from .db import check_db_connection
from .logging_utils import configure_logging
from .metrics import (
    CONTENT_TYPE_LATEST,
    HEALTH_CHECK_FAILURES_TOTAL,
    REQUEST_DURATION_SECONDS,
    REQUESTS_TOTAL,
    generate_latest,
)
from .migrations import run_migrations
from .schemas import HealthResponse, HelloResponse

configure_logging()
logger = logging.getLogger("grocerynana.app")

app = FastAPI(title="GroceryNana API", version="0.1.0")
api_router = APIRouter(prefix="/api")


@app.on_event("startup")
async def startup_event() -> None:
    if settings.run_migrations_on_startup:
        # MigrationError is fatal here: uvicorn aborts startup.
        run_migrations()
    logger.info(
        f"Starting GroceryNana Backend server on http://{settings.host}:{settings.port}",
        extra={
            "event": "startup",
            "db_backend": "sqlite" if settings.is_sqlite else "postgres",
        },
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=settings.cors_max_age,
)


@app.middleware("http")
async def access_log_middleware(request: Request, call_next):
    path = request.url.path
    method = request.method
    started = time.perf_counter()

    response = await call_next(request)

    elapsed = time.perf_counter() - started
    REQUESTS_TOTAL.labels(method=method, path=path, status=str(response.status_code)).inc()
    REQUEST_DURATION_SECONDS.labels(method=method, path=path).observe(elapsed)
    logger.info(
        f"{method} {path} {response.status_code}",
        extra={
            "event": "request",
            "method": method,
            "path": path,
            "status": response.status_code,
            "duration_ms": round(elapsed * 1000, 2),
        },
    )
    return response


def _health() -> JSONResponse:
    try:
        check_db_connection()
    except Exception:
        HEALTH_CHECK_FAILURES_TOTAL.inc()
        logger.warning("Database health check failed", extra={"event": "health_check_failed"}, exc_info=True)
        body = HealthResponse(status="error", message="Database connection failed")
        return JSONResponse(status_code=500, content=body.model_dump())

    body = HealthResponse(status="ok", message="Database connected")
    return JSONResponse(status_code=200, content=body.model_dump())


@app.get("/", response_model=HelloResponse)
async def hello_world() -> HelloResponse:
    return HelloResponse(message="Hello World from GroceryNana Backend!")


@api_router.get("/health", response_model=HealthResponse, responses={500: {"model": HealthResponse}})
async def api_healthcheck() -> JSONResponse:
    return _health()


@app.get("/health", response_model=HealthResponse, responses={500: {"model": HealthResponse}})
async def healthcheck() -> JSONResponse:
    return _health()


@app.get("/metrics")
async def metrics() -> Response:
    if not settings.enable_prometheus_metrics:
        raise HTTPException(status_code=404, detail="Metrics disabled")
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(api_router)


def run() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port)
