"""Error taxonomy and JSON exception handlers.

Domain errors subclass ``HTTPException`` so services can raise them directly
and routers don't need to translate anything. Every error response has the
same envelope::

    {"error": "<human readable message>", "code": "<stable code>", "trace_id": "..."}
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(HTTPException):
    status_code = 500
    code = "error"
    message = "Request failed."

    def __init__(self, message: Optional[str] = None):
        super().__init__(status_code=self.status_code, detail=message or self.message)


class Unauthenticated(AppError):
    status_code = 401
    code = "unauthenticated"
    message = "Unauthorized"


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"
    message = "Forbidden"


class EmailMismatch(Forbidden):
    code = "email_mismatch"
    message = "This invite was sent to a different email address."


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    message = "Not found."


class InviteExpiredOrUsed(AppError):
    status_code = 410
    code = "invite_unavailable"
    message = "This invite is no longer valid."


class AlreadyUsed(InviteExpiredOrUsed):
    code = "already_used"
    message = "This invite has already been used."


class Expired(InviteExpiredOrUsed):
    code = "expired"
    message = "This invite has expired."


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"
    message = "Invalid request."


class RoleNotAllowed(ValidationError):
    code = "role_not_allowed"


class Conflict(AppError):
    status_code = 400
    code = "conflict"
    message = "Already exists."


class AlreadyMember(Conflict):
    code = "already_member"
    message = "Already a member with that role."


def _trace_id(request: Request) -> str:
    """Reuse the id set by the request logging middleware, else make one up."""
    trace_id = getattr(request.state, "trace_id", None) or request.headers.get("x-request-id")
    if not trace_id:
        trace_id = uuid.uuid4().hex
        request.state.trace_id = trace_id
    return trace_id


def _payload(message: str, code: str, trace_id: str, details: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"error": message, "code": code, "trace_id": trace_id}
    if details is not None:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on the app."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):
        trace_id = _trace_id(request)
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        details = exc.detail if isinstance(exc.detail, dict) else None
        code = getattr(exc, "code", "http_error")

        level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
        logger.log(
            level,
            "%s %s -> %s (%s) | trace_id=%s | %s",
            request.method,
            request.url.path,
            exc.status_code,
            code,
            trace_id,
            message,
        )
        headers = dict(exc.headers or {})
        headers["X-Request-ID"] = trace_id
        return JSONResponse(
            status_code=exc.status_code,
            headers=headers,
            content=_payload(message, code, trace_id, details),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        trace_id = _trace_id(request)
        errors = exc.errors()
        logger.warning(
            "%s %s -> 400 validation | trace_id=%s | errors=%s",
            request.method,
            request.url.path,
            trace_id,
            errors,
        )
        return JSONResponse(
            status_code=400,
            headers={"X-Request-ID": trace_id},
            content=_payload("Validation failed.", "validation_error", trace_id, _jsonable(errors)),
        )

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):
        trace_id = _trace_id(request)
        # Full traceback to the logs, generic message to the client
        logger.exception(
            "Unhandled exception %s %s -> 500 | trace_id=%s",
            request.method,
            request.url.path,
            trace_id,
        )
        return JSONResponse(
            status_code=500,
            headers={"X-Request-ID": trace_id},
            content=_payload("Internal server error.", "internal_error", trace_id),
        )


def _jsonable(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    # pydantic puts the raw exception object in ctx for some validators
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in errors
    ]
