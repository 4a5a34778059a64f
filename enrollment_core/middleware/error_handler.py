"""
Error Handler Middleware

Turns engine exceptions into structured JSON responses and catches
everything else as a generic 500 with a log id for support.

Response body:
{
    "error_code": "CAPACITY_EXCEEDED",
    "message": "Human-readable description",
    "details": {},
    "log_id": "1a2b3c4d",
    "timestamp": "2024-01-01T00:00:00"
}
"""
import logging
import traceback
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from enrollment_core.exceptions import EnrollmentCoreError

logger = logging.getLogger(__name__)


def _new_log_id() -> str:
    return str(uuid.uuid4())[:8]


def error_body(
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    log_id: Optional[str] = None
) -> Dict[str, Any]:
    return {
        "error_code": error_code,
        "message": message,
        "details": details or {},
        "log_id": log_id or _new_log_id(),
        "timestamp": datetime.utcnow().isoformat()
    }


def _request_context(request: Request, log_id: str) -> Dict[str, Any]:
    return {
        "log_id": log_id,
        "method": request.method,
        "path": request.url.path,
        "client": request.client.host if request.client else None,
    }


async def enrollment_error_handler(request: Request, exc: EnrollmentCoreError) -> JSONResponse:
    """Exception handler for every EnrollmentCoreError subclass."""
    log_id = _new_log_id()
    context = _request_context(request, log_id)
    if exc.status_code >= 500:
        logger.error(f"Engine error [{log_id}] {exc.code}: {exc.message} | Context: {context}")
    else:
        logger.warning(f"Handled error [{log_id}] {exc.code}: {exc.message} | Context: {context}")

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, exc.message, exc.details, log_id)
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Catches uncaught exceptions and returns structured error responses.
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except EnrollmentCoreError as e:
            return await enrollment_error_handler(request, e)

        except Exception as e:
            log_id = _new_log_id()
            logger.error(
                f"Unexpected error [{log_id}]: {str(e)}\n"
                f"Context: {_request_context(request, log_id)}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            if self.debug:
                # In debug mode, include stack trace
                return JSONResponse(
                    status_code=500,
                    content=error_body(
                        "SERVER_ERROR",
                        str(e),
                        {"traceback": traceback.format_exc(), "type": type(e).__name__},
                        log_id
                    )
                )

            return JSONResponse(
                status_code=500,
                content=error_body(
                    "SERVER_ERROR",
                    "An internal error occurred. Please try again or contact support.",
                    {},
                    log_id
                )
            )
