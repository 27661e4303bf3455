"""
main.py — reqflow application entry point

Builds the FastAPI app, mounts the routers, and owns the operation
boundary: every WorkflowError raised by a service is rendered here as the
shared ErrorResponse JSON, so callers always get a typed failure.

Business Rules:
- Every response carries an X-Request-ID header (first 8 chars of a uuid4)
- The request ID is bound into the Loguru context for the whole request
- Identity comes from the Starlette session (user_id), set upstream

Called by: uvicorn (reqflow.main:app), tests
Depends on: config, logging_config, database, routers, services/errors
"""

import os
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from .actor import Actor
from .config import APP_VERSION, settings
from .database import init_db
from .dependencies import require_actor
from .logging_config import setup_logging
from .routers import invoices, messages, quotes, requisitions
from .schemas.errors import ErrorResponse
from .schemas.responses import HealthResponse, PortalResponse
from .services.errors import WorkflowError
from .workflow import portal_for


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if settings.database_url.startswith("sqlite") and not os.environ.get("TESTING"):
        init_db()
        logger.info("SQLite tables ready")
    logger.info(f"reqflow {APP_VERSION} started ({settings.app_env})")
    yield


app = FastAPI(title="reqflow", version=APP_VERSION, lifespan=lifespan)
app.add_middleware(SessionMiddleware, secret_key=settings.secret_key, https_only=settings.is_production)


# ── Middleware ────────────────────────────────────────────────────────


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = str(uuid.uuid4())[:8]
    request.state.request_id = request_id
    start = time.perf_counter()
    with logger.contextualize(request_id=request_id):
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            f"{request.method} {request.url.path} → {response.status_code} ({elapsed_ms:.1f}ms)"
        )
    response.headers["X-Request-ID"] = request_id
    return response


# ── Error handlers ────────────────────────────────────────────────────


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.url.path}: {exc.message}")
    body = ErrorResponse(
        error=exc.message,
        code=exc.code,
        status_code=exc.status_code,
        request_id=_request_id(request),
        detail=exc.detail or None,
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    body = ErrorResponse(
        error=str(exc.detail),
        code="HTTPException",
        status_code=exc.status_code,
        request_id=_request_id(request),
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(mode="json"),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    body = ErrorResponse(
        error="Request validation failed",
        code="ValidationError",
        status_code=422,
        request_id=_request_id(request),
        detail=[{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()],
    )
    return JSONResponse(status_code=422, content=body.model_dump(mode="json"))


# ── Routes ────────────────────────────────────────────────────────────

app.include_router(requisitions.router)
app.include_router(quotes.router)
app.include_router(invoices.router)
app.include_router(messages.router)


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok", version=APP_VERSION)


@app.get("/api/me/portal", response_model=PortalResponse)
async def my_portal(actor: Actor = Depends(require_actor)):
    """Where the caller lands after login."""
    return PortalResponse(role=actor.role.value, portal=portal_for(actor.role))
