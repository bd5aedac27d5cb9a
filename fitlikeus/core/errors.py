"""Error taxonomy, user-facing message table and FastAPI handlers."""

import logging
import builtins
from typing import Optional
from uuid import uuid4

from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.requests import Request

from fitlikeus.core.logging import get_request_id


class AppError(Exception):
    code = "app_error"
    status_code = 500

    def __init__(self, message: str, *, code: Optional[str] = None, status_code: Optional[int] = None, request_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.request_id = request_id


class ValidationError(AppError, ValueError):
    code = "validation_error"
    status_code = 400


class NotFoundError(AppError, ValueError):
    code = "not-found"
    status_code = 404


class PermissionError(AppError, builtins.PermissionError):
    code = "permission-denied"
    status_code = 403


class BillingDisabledError(AppError):
    code = "billing_disabled"
    status_code = 503


# Backend (auth provider + document store) error codes -> user-facing text.
BACKEND_ERROR_MESSAGES = {
    # Auth errors
    "auth/user-not-found": "No account found with this email. Please sign up first.",
    "auth/wrong-password": "Incorrect password. Please try again.",
    "auth/invalid-email": "Invalid email address. Please check and try again.",
    "auth/user-disabled": "This account has been disabled. Please contact support.",
    "auth/email-already-in-use": "An account with this email already exists. Please sign in or use a different email.",
    "auth/weak-password": "Password is too weak. It must be at least 8 characters with uppercase, lowercase, number, and special character.",
    "auth/invalid-password": "Password is too weak. It must be at least 8 characters with uppercase, lowercase, number, and special character.",
    "auth/operation-not-allowed": "This operation is not allowed. Please contact support.",
    "auth/too-many-requests": "Too many failed login attempts. Please try again later.",
    "auth/invalid-action-code": "Invalid or expired reset link. Please request a new password reset.",
    "auth/expired-action-code": "This reset link has expired. Please request a new password reset.",
    "auth/invalid-continue-uri": "Invalid URL. Please check the link and try again.",
    "auth/missing-continue-uri": "Continue URL is required.",
    "auth/invalid-api-key": "An API key error occurred. Please contact support.",
    "auth/network-request-failed": "Network error. Please check your internet connection and try again.",
    "auth/session-cookie-expired": "Your session has expired. Please sign in again.",
    "auth/uid-already-exists": "This user ID already exists.",

    # Document store errors
    "permission-denied": "You do not have permission to perform this action.",
    "not-found": "The requested resource was not found.",
    "already-exists": "This resource already exists.",
    "failed-precondition": "The operation failed due to a precondition. Please try again.",
    "internal": "An internal error occurred. Please try again later.",
    "unavailable": "The service is temporarily unavailable. Please try again later.",
    "unauthenticated": "You are not authenticated. Please sign in and try again.",

    # Plan gating
    "premium-required": "This content is available to Premium members. Upgrade to unlock it.",
}

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."
BACKEND_CONNECTIVITY_MESSAGE = "An error occurred. Please check your internet connection and try again."

_STATUS_BY_CODE = {
    "auth/user-not-found": 401,
    "auth/wrong-password": 401,
    "auth/user-disabled": 403,
    "auth/email-already-in-use": 409,
    "auth/uid-already-exists": 409,
    "auth/too-many-requests": 429,
    "auth/session-cookie-expired": 401,
    "auth/network-request-failed": 503,
    "permission-denied": 403,
    "premium-required": 403,
    "not-found": 404,
    "already-exists": 409,
    "failed-precondition": 412,
    "internal": 500,
    "unavailable": 503,
    "unauthenticated": 401,
}


def friendly_message(error) -> str:
    """Translate a backend error (or bare code) to a user-facing string."""
    if isinstance(error, str):
        code, message = error, error
    else:
        code = getattr(error, "code", None) or getattr(error, "message", None) or ""
        message = getattr(error, "message", None) or (str(error) if error is not None else "")

    if code in BACKEND_ERROR_MESSAGES:
        return BACKEND_ERROR_MESSAGES[code]

    if "backend" in (message or "").lower():
        return BACKEND_CONNECTIVITY_MESSAGE

    return GENERIC_ERROR_MESSAGE


def status_for_code(code: str) -> int:
    if code in _STATUS_BY_CODE:
        return _STATUS_BY_CODE[code]
    if code.startswith("auth/"):
        return 400
    return 500


class BackendError(AppError):
    """An error reported by the auth provider or the document store.

    The message is always the user-facing text for the code; the raw
    detail (if any) is kept on `detail` for logs.
    """

    def __init__(self, code: str, detail: Optional[str] = None):
        super().__init__(friendly_message(code), code=code, status_code=status_for_code(code))
        self.detail = detail


def _extract_request_id(request: Request, fallback: Optional[str] = None) -> str:
    return (
        getattr(request.state, "request_id", None)
        or get_request_id()
        or fallback
        or str(uuid4())
    )


def _error_payload(code: str, message: str, request_id: str) -> dict:
    return {
        "error": {"code": code, "message": message, "request_id": request_id},
        "detail": message,
    }


async def app_error_handler(request: Request, exc: AppError):
    rid = exc.request_id or _extract_request_id(request)
    payload = _error_payload(exc.code, exc.message, rid)
    logger = logging.getLogger("fitlikeus")
    log_level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        log_level,
        "app.error",
        extra={"request_id": rid, "error_code": exc.code, "error_message": exc.message, "status": exc.status_code},
    )
    response = JSONResponse(status_code=exc.status_code, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def http_error_handler(request: Request, exc: HTTPException):
    rid = _extract_request_id(request)
    code = "not-found" if exc.status_code == 404 else "http_error"
    message = exc.detail if exc.detail else "HTTP error"
    payload = _error_payload(code, message, rid)
    logger = logging.getLogger("fitlikeus")
    logger.warning("http.error", extra={"request_id": rid, "error_code": code, "status": exc.status_code})
    response = JSONResponse(status_code=exc.status_code, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def request_validation_handler(request: Request, exc: RequestValidationError):
    rid = _extract_request_id(request)
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "request"
    message = f"{field}: {first.get('msg', 'invalid value')}"
    payload = _error_payload("validation_error", message, rid)
    payload["error"]["fields"] = [
        {"loc": [str(p) for p in err.get("loc", ())], "msg": err.get("msg")} for err in errors
    ]
    logging.getLogger("fitlikeus").warning(
        "validation.error", extra={"request_id": rid, "error_code": "validation_error", "status": 422}
    )
    response = JSONResponse(status_code=422, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = _extract_request_id(request)
    logger = logging.getLogger("fitlikeus")
    logger.error("unhandled.exception", exc_info=True, extra={"request_id": rid, "error_code": "internal_error"})
    payload = _error_payload("internal_error", GENERIC_ERROR_MESSAGE, rid)
    response = JSONResponse(status_code=500, content=payload)
    response.headers["x-request-id"] = rid
    return response
