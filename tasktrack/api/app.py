"""
TaskTrack application factory.

create_app() wires configuration, the database, the token manager, the
notifier and the audit log queue into ``app.state`` and installs the single
error boundary that maps the exception hierarchy onto HTTP responses:

    TaskTrackValidationError  → 400 {message, errors}
    TaskTrackSessionError     → 401 {message}
    TaskTrackSecurityError    → 403 {message}
    TaskTrackNotFoundError    → 404 {message}
    anything else             → 500 {message}
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

import tasktrack
from tasktrack.api import admin, auth, tasks
from tasktrack.db.session import health_check, init_db
from tasktrack.engine.clock import Clock
from tasktrack.engine.config import TaskTrackConfig, get_config
from tasktrack.engine.errors import (
    TaskTrackError,
    TaskTrackValidationError,
    http_status_for,
)
from tasktrack.engine.logging import (
    AsyncLogQueue,
    configure_logging,
    create_log_queue,
    emit,
    log_api_request,
    log_system_event,
)
from tasktrack.engine.notifications import Notifier, build_notifier
from tasktrack.engine.security import TokenManager
from tasktrack.engine.validation import BODY_FIELD

logger = logging.getLogger("tasktrack.api")

EXECUTION_ID_HEADER = "X-Execution-Id"
INTERNAL_ERROR_MESSAGE = "Internal server error"


def _request_error_field(loc: tuple) -> str:
    # ("body",) / ("body", 12) for malformed JSON; ("path", "task_id") etc.
    if len(loc) >= 2 and loc[0] != "body":
        return "id" if loc[-1] == "task_id" else str(loc[-1])
    return BODY_FIELD


def _request_errors(exc: RequestValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for err in exc.errors():
        field = _request_error_field(tuple(err.get("loc") or ()))
        if field in errors:
            continue
        if field == BODY_FIELD:
            errors[field] = "Request body must be valid JSON"
        elif field == "id":
            errors[field] = "Invalid task ID"
        else:
            errors[field] = err.get("msg", "Invalid value")
    return errors


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(TaskTrackValidationError)
    async def validation_error_handler(request: Request, exc: TaskTrackValidationError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.message, "errors": exc.errors},
        )

    @app.exception_handler(TaskTrackError)
    async def tasktrack_error_handler(request: Request, exc: TaskTrackError):
        status_code = http_status_for(exc)
        if status_code >= 500:
            logger.error("Request failed: %s", exc.to_json())
            return JSONResponse(status_code=500, content={"message": INTERNAL_ERROR_MESSAGE})
        return JSONResponse(status_code=status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"message": "Validation failed", "errors": _request_errors(exc)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse(status_code=exc.status_code, content={"message": message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": INTERNAL_ERROR_MESSAGE})


def create_app(
    config: Optional[TaskTrackConfig] = None,
    session_factory: Optional[sessionmaker] = None,
    notifier: Optional[Notifier] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """
    Build the TaskTrack ASGI application.

    Args:
        config: Loaded configuration; defaults to get_config().
        session_factory: Pre-built session factory (tests); otherwise the
            configured database is initialised and its tables created.
        notifier: Outbound notifier; otherwise built from ``notifications``
            config at startup.
        clock: Time source; defaults to now in the configured time zone.
    """
    config = config or get_config()
    configure_logging(config.logging.level)

    if session_factory is None:
        db = config.database
        session_factory = init_db(
            db.url,
            create_tables=True,
            echo=db.echo,
            pool_size=db.pool_size,
            max_overflow=db.max_overflow,
            pool_timeout=db.pool_timeout,
            pool_recycle=db.pool_recycle,
            pool_pre_ping=db.pool_pre_ping,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_queue: Optional[AsyncLogQueue] = None
        if config.logging.enabled:
            qc = config.logging.async_queue
            log_queue = create_log_queue(
                log_dir=config.logging.directory,
                flush_interval_ms=qc.flush_interval_ms,
                flush_batch_size=qc.flush_batch_size,
                max_queue_size=qc.max_queue_size,
            )
            app.state.log_queue = log_queue
        owned_notifier = None
        if app.state.notifier is None:
            owned_notifier = build_notifier(config.notifications, log_queue=log_queue)
            app.state.notifier = owned_notifier

        emit(log_queue, log_system_event("startup", details={
            "environment": config.environment,
            "version": tasktrack.__version__,
        }))
        logger.info("%s started (environment=%s)", config.name, config.environment)
        try:
            yield
        finally:
            emit(log_queue, log_system_event("shutdown"))
            if owned_notifier is not None and hasattr(owned_notifier, "close"):
                owned_notifier.close()
                app.state.notifier = None
            if log_queue is not None:
                log_queue.stop()
                app.state.log_queue = None

    app = FastAPI(
        title=config.name,
        description="Multi-user task manager API",
        version=tasktrack.__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.session_factory = session_factory
    app.state.tokens = TokenManager(config.security.secret_key, ttl=config.security.token_ttl)
    app.state.notifier = notifier
    app.state.clock = clock or Clock(tz=config.tzinfo)
    app.state.log_queue = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_logging(request: Request, call_next):
        execution_id = f"req_{uuid.uuid4().hex[:12]}"
        request.state.execution_id = execution_id
        start_time = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start_time) * 1000
        response.headers[EXECUTION_ID_HEADER] = execution_id
        emit(request.app.state.log_queue, log_api_request(
            execution_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            user_id=getattr(request.state, "user_id", None),
            client_ip=request.client.host if request.client else None,
        ))
        return response

    _install_error_handlers(app)

    @app.get("/", tags=["meta"])
    def index() -> Dict[str, Any]:
        return {"message": f"{config.name} API is running", "version": tasktrack.__version__}

    @app.get("/health", tags=["meta"])
    def health() -> JSONResponse:
        healthy = health_check(app.state.session_factory)
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={
                "status": "healthy" if healthy else "unhealthy",
                "version": tasktrack.__version__,
                "database": "ok" if healthy else "unreachable",
            },
        )

    app.include_router(auth.router)
    app.include_router(tasks.router)
    app.include_router(admin.router)
    return app
