"""
HTTP Exception Handlers.

Maps framework-level failures onto the standard error body, so every
error a caller sees has the same shape:

    {"ok": false, "error": "<CODE>", "message": "..."}

Handled here:
    - 405 from routing            -> METHOD_NOT_ALLOWED
    - 404 from routing            -> NOT_FOUND
    - Unparseable JSON body       -> 400 INVALID_BODY
    - Bad query parameter         -> 400 INVALID_QUERY
    - Pipeline errors that escape -> their own status and body
    - Anything else               -> 500 INTERNAL_ERROR, no details

Pipeline errors raised inside the routes are normally turned into
responses there; these handlers cover what happens before a route runs.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from voicegen.core.logging import fail, get_logger, warn
from voicegen.services.errors import ErrorCode, ProviderError, VoiceGenError
from voicegen.services.validators import ValidationError

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

_LOG = get_logger("voicegen.api.errors")

_HTTP_CODES = {
    400: (ErrorCode.INVALID_BODY, "Request body must be a JSON object"),
    404: (ErrorCode.NOT_FOUND, "Not found"),
    405: (ErrorCode.METHOD_NOT_ALLOWED, "Method not allowed"),
}


def error_body(code: str, message: str, **extra: Any) -> Dict[str, Any]:
    """Standard error body."""
    body: Dict[str, Any] = {"ok": False, "error": code, "message": message}
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


def internal_error_response(request_id: str | None = None) -> JSONResponse:
    """Generic 500; the cause stays in the logs."""
    return JSONResponse(
        status_code=500,
        content=error_body(ErrorCode.INTERNAL_ERROR, "Internal server error", request_id=request_id),
    )


def voicegen_error_response(exc: VoiceGenError | ValidationError, request_id: str | None = None) -> JSONResponse:
    """Response for a pipeline error, with the status it maps to."""
    if isinstance(exc, ValidationError):
        return JSONResponse(status_code=400, content=exc.to_dict())
    if isinstance(exc, ProviderError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
    return internal_error_response(request_id)


def _get_request_id(request: Request) -> str | None:
    """Request id stored by the route on request.state, if any."""
    return getattr(request.state, "request_id", None)


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code, message = _HTTP_CODES.get(exc.status_code, (f"HTTP_{exc.status_code}", str(exc.detail)))
    if exc.status_code == 405:
        warn(_LOG, "method_not_allowed", method=request.method, path=request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(code, message),
        headers=getattr(exc, "headers", None),
    )


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    in_body = any((err.get("loc") or ("",))[0] == "body" for err in errors)
    if in_body:
        code, message = ErrorCode.INVALID_BODY, "Request body must be a JSON object"
    else:
        code, message = ErrorCode.INVALID_QUERY, "Invalid query parameter"
    warn(_LOG, "request_rejected", code=code, path=request.url.path, errors=len(errors))
    return JSONResponse(status_code=400, content=error_body(code, message))


async def _handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return voicegen_error_response(exc)


async def _handle_voicegen_error(request: Request, exc: VoiceGenError) -> JSONResponse:
    if not isinstance(exc, ProviderError):
        fail(_LOG, "unhandled_voicegen_error", code=exc.code, error_type=type(exc).__name__)
    return voicegen_error_response(exc, _get_request_id(request))


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    fail(_LOG, "unexpected_error", exc_info=True, error_type=type(exc).__name__, path=request.url.path)
    return internal_error_response(_get_request_id(request))


def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(ValidationError, _handle_validation_error)
    app.add_exception_handler(VoiceGenError, _handle_voicegen_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)
