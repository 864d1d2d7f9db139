"""
Failure envelope shared by every portal surface.

Every error leaves the service as

    {"success": false, "message": "...", "status": "pending"?, "requestId": "..."}

``status`` is only present for exceptions that carry an account state
(``account_status`` attribute), e.g. a doctor awaiting approval.
"""
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def failure_body(
    request: Request, message: str, *, account_status: str | None = None, **extra: Any
) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "message": message}
    if account_status is not None:
        body["status"] = account_status
    body.update(extra)
    body["requestId"] = getattr(request.state, "request_id", None)
    return body


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=failure_body(
            request, message, account_status=getattr(exc, "account_status", None)
        ),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err["loc"][1:]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=failure_body(request, "Request validation failed.", errors=errors),
    )


async def error_envelope_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    try:
        return await call_next(request)
    except StarletteHTTPException as exc:
        return await http_exception_handler(request, exc)
    except Exception:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=failure_body(request, "An unexpected error occurred."),
        )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
