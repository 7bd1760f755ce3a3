"""Error boundary middleware: last line of defence for unexpected exceptions.

AppError, HTTPException and request validation errors are handled by the
exception handlers in main.py. Anything else that escapes a route ends up
here: it is logged with its traceback and replaced by a generic 500 body,
so stack traces and internals never reach the client.
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from tasktrack.errors import InternalError

logger = structlog.get_logger()


class ErrorBoundaryMiddleware(BaseHTTPMiddleware):
    """Convert uncaught exceptions into InternalError responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception:
            logger.exception("request.unhandled_error")
            error = InternalError()
            return JSONResponse(status_code=error.status_code, content=error.to_dict())
