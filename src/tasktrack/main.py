"""FastAPI application factory.

App factory pattern: create_app() returns a configured FastAPI instance.
Lifespan manages startup/shutdown: logging, the Database handle
(app.state.db), optional schema creation. Middleware, exception handlers
and routers are all registered here.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasktrack import __version__
from tasktrack.api import api_router
from tasktrack.config import settings
from tasktrack.db.engine import Database
from tasktrack.errors import AppError, ValidationError
from tasktrack.logging_setup import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    configure_logging(settings.log_level, json=settings.log_json)
    logger.info(
        "tasktrack.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    db = Database(settings.database_url, echo=settings.db_echo)
    if settings.auto_create_schema:
        await db.create_all()
        logger.info("tasktrack.schema_created")
    app.state.db = db

    yield

    logger.info("tasktrack.shutdown")
    await db.dispose()


# ─── Exception handlers ──────────────────────────────────


def _validation_message(exc: RequestValidationError) -> str:
    """First validation error as "field: reason" (or just the reason)."""
    errors = exc.errors()
    if not errors:
        return ValidationError.default_message
    err = errors[0]
    msg = err.get("msg", ValidationError.default_message)
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    loc = [
        str(part) for part in err.get("loc", ())
        if part not in ("body", "query", "path", "header")
    ]
    return f"{'.'.join(loc)}: {msg}" if loc else msg


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers,
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    error = ValidationError(_validation_message(exc))
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    # Our own code raises AppError; a bare 404 here means no route matched.
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message},
        headers=getattr(exc, "headers", None),
    )


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="TaskTrack",
        description="Task management API with user accounts and revocable sessions",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → ErrorBoundary → handler

    from tasktrack.middleware.errors import ErrorBoundaryMiddleware
    from tasktrack.middleware.request_id import RequestIdMiddleware
    from tasktrack.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(ErrorBoundaryMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    app.include_router(api_router)

    @app.get("/", include_in_schema=False)
    async def index():
        return {
            "message": "Task Management API is running!",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "endpoints": {
                "register": "POST /api/auth/register",
                "login": "POST /api/auth/login",
                "profile": "GET /api/auth/me",
                "logout": "POST /api/auth/logout",
                "logoutAll": "POST /api/auth/logout-all",
                "getTasks": "GET /api/tasks",
                "createTask": "POST /api/tasks",
                "getTask": "GET /api/tasks/:id",
                "updateTask": "PUT /api/tasks/:id",
                "deleteTask": "DELETE /api/tasks/:id",
                "getStats": "GET /api/tasks/stats/overview",
                "health": "GET /api/health",
            },
        }

    return app


# Default app instance (used by uvicorn: tasktrack.main:app)
app = create_app()
