# backend/errors.py

import logging
import traceback
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions
from google.api_core import exceptions as gcp_exceptions
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.responses import error_response
from config.settings import is_production

logger = logging.getLogger(__name__)

ERROR_CODES = {
    # Authentication
    "AUTH_MISSING_HEADER": "auth/missing-auth-header",
    "AUTH_INVALID_HEADER": "auth/invalid-auth-header",
    "AUTH_INVALID_TOKEN": "auth/invalid-token",
    "AUTH_TOKEN_EXPIRED": "auth/id-token-expired",
    "AUTH_USER_NOT_FOUND": "auth/user-not-found",
    "AUTH_ACCESS_DENIED": "auth/access-denied",
    # Validation
    "VALIDATION_MISSING_FIELDS": "validation/missing-fields",
    "VALIDATION_INVALID_FORMAT": "validation/invalid-format",
    # Resources
    "RESOURCE_NOT_FOUND": "resource/not-found",
    "RESOURCE_ACCESS_DENIED": "resource/access-denied",
    # Server
    "SERVER_INTERNAL_ERROR": "server/internal-error",
    "SERVER_SERVICE_UNAVAILABLE": "server/service-unavailable",
}

# Identity-provider error codes and the HTTP status each one maps to.
FIREBASE_ERROR_STATUS_MAP = {
    "auth/user-not-found": 404,
    "auth/invalid-uid": 400,
    "auth/invalid-email": 400,
    "auth/email-already-exists": 409,
    "auth/phone-number-already-exists": 409,
    "auth/uid-already-exists": 409,
    "auth/insufficient-permission": 403,
    "auth/internal-error": 500,
    "auth/invalid-argument": 400,
    "auth/invalid-claims": 400,
    "auth/invalid-creation-time": 400,
    "auth/invalid-credential": 400,
    "auth/invalid-disabled-field": 400,
    "auth/invalid-display-name": 400,
    "auth/invalid-email-verified": 400,
    "auth/invalid-hash-algorithm": 400,
    "auth/invalid-hash-block-size": 400,
    "auth/invalid-hash-derived-key-length": 400,
    "auth/invalid-hash-key": 400,
    "auth/invalid-hash-memory-cost": 400,
    "auth/invalid-hash-parallelization": 400,
    "auth/invalid-hash-rounds": 400,
    "auth/invalid-hash-salt-separator": 400,
    "auth/invalid-last-sign-in-time": 400,
    "auth/invalid-page-token": 400,
    "auth/invalid-password": 400,
    "auth/invalid-password-hash": 400,
    "auth/invalid-password-salt": 400,
    "auth/invalid-phone-number": 400,
    "auth/invalid-photo-url": 400,
    "auth/invalid-provider-data": 400,
    "auth/invalid-provider-id": 400,
    "auth/invalid-session-cookie-duration": 400,
    "auth/invalid-user-import": 400,
    "auth/maximum-user-count-exceeded": 429,
    "auth/missing-hash-algorithm": 400,
    "auth/missing-uid": 400,
    "auth/operation-not-allowed": 403,
    "auth/project-not-found": 404,
    "auth/reserved-claims": 400,
    "auth/session-cookie-expired": 401,
    "auth/session-cookie-revoked": 401,
    "auth/unauthorized-continue-uri": 400,
    "auth/too-many-requests": 429,
}

FIREBASE_ERROR_MESSAGES = {
    "auth/user-not-found": "User not found",
    "auth/invalid-email": "Invalid email address",
    "auth/email-already-exists": "This email address is already in use",
    "auth/insufficient-permission": "Insufficient permission",
    "auth/too-many-requests": "Too many requests",
    "auth/session-cookie-expired": "Session has expired",
    "auth/session-cookie-revoked": "Session has been revoked",
}

# Checked in order, so subclasses come before their bases.
_FIREBASE_EXCEPTION_CODES = [
    (firebase_auth.ExpiredSessionCookieError, "auth/session-cookie-expired"),
    (firebase_auth.RevokedSessionCookieError, "auth/session-cookie-revoked"),
    (firebase_auth.UserNotFoundError, "auth/user-not-found"),
    (firebase_auth.EmailAlreadyExistsError, "auth/email-already-exists"),
    (firebase_auth.PhoneNumberAlreadyExistsError, "auth/phone-number-already-exists"),
    (firebase_auth.UidAlreadyExistsError, "auth/uid-already-exists"),
    (firebase_auth.InsufficientPermissionError, "auth/insufficient-permission"),
    (firebase_auth.TooManyAttemptsTryLaterError, "auth/too-many-requests"),
]

_CANONICAL_STATUS_MAP = {
    firebase_exceptions.INVALID_ARGUMENT: 400,
    firebase_exceptions.FAILED_PRECONDITION: 400,
    firebase_exceptions.OUT_OF_RANGE: 400,
    firebase_exceptions.UNAUTHENTICATED: 401,
    firebase_exceptions.PERMISSION_DENIED: 403,
    firebase_exceptions.NOT_FOUND: 404,
    firebase_exceptions.ALREADY_EXISTS: 409,
    firebase_exceptions.CONFLICT: 409,
    firebase_exceptions.ABORTED: 409,
    firebase_exceptions.RESOURCE_EXHAUSTED: 429,
}

INDEX_BUILDING_MESSAGE = "Database index is being created. Please try again in a few minutes."


class AppError(Exception):
    """An error that carries its own HTTP status and error code."""

    status_code = 500
    code = ERROR_CODES["SERVER_INTERNAL_ERROR"]

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.details = details


class AuthError(AppError):
    status_code = 401
    code = ERROR_CODES["AUTH_INVALID_TOKEN"]


class AccessDeniedError(AppError):
    status_code = 403
    code = ERROR_CODES["RESOURCE_ACCESS_DENIED"]

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404
    code = ERROR_CODES["RESOURCE_NOT_FOUND"]

    def __init__(self, resource: str = "Resource", message: Optional[str] = None):
        super().__init__(message or f"{resource} not found")
        self.resource = resource


class ServiceUnavailableError(AppError):
    status_code = 503
    code = ERROR_CODES["SERVER_SERVICE_UNAVAILABLE"]


class StoreIndexBuildingError(ServiceUnavailableError):
    def __init__(self, message: str = INDEX_BUILDING_MESSAGE):
        super().__init__(message)


class GenerationError(AppError):
    code = "generation/failed"


def resolve_firebase_error(exc: firebase_exceptions.FirebaseError) -> tuple[int, str, str]:
    """Returns (status, code, message) for an identity-provider error."""
    for exc_type, code in _FIREBASE_EXCEPTION_CODES:
        if isinstance(exc, exc_type):
            status = FIREBASE_ERROR_STATUS_MAP[code]
            return status, code, FIREBASE_ERROR_MESSAGES.get(code) or str(exc) or "Authentication error"

    canonical = exc.code or firebase_exceptions.UNKNOWN
    status = _CANONICAL_STATUS_MAP.get(canonical, 500)
    code = "auth/" + canonical.lower().replace("_", "-")
    return status, code, str(exc) or "Authentication error"


def raise_for_missing_index(exc: Exception) -> None:
    """Raises StoreIndexBuildingError when exc means a composite index is missing or still building."""
    if isinstance(exc, gcp_exceptions.FailedPrecondition) or "requires an index" in str(exc):
        logger.error("[Firestore] Query requires a composite index that is missing or still building: %s", exc)
        raise StoreIndexBuildingError() from exc


def format_validation_errors(exc: RequestValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return messages


def _log_error(request: Request, exc: Exception, status_code: int) -> None:
    user = getattr(request.state, "user", None)
    context = {
        "method": request.method,
        "url": str(request.url),
        "ip": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
        "uid": user.uid if user else None,
    }
    if status_code >= 500:
        logger.error("[Error] %s: %s | %s", type(exc).__name__, exc, context, exc_info=exc)
    else:
        logger.warning("[Error] %s: %s | %s", type(exc).__name__, exc, context)


def register_exception_handlers(app: FastAPI, config: dict) -> None:
    show_stack = not is_production(config)

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        _log_error(request, exc, exc.status_code)
        return error_response(exc.status_code, exc.message, exc.code, exc.details)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        _log_error(request, exc, 400)
        return error_response(
            400,
            "Validation failed",
            ERROR_CODES["VALIDATION_INVALID_FORMAT"],
            ", ".join(format_validation_errors(exc)),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        _log_error(request, exc, exc.status_code)
        if exc.status_code == 404:
            return error_response(404, f"Route {request.url.path} not found", ERROR_CODES["RESOURCE_NOT_FOUND"])
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(firebase_exceptions.FirebaseError)
    async def handle_firebase_error(request: Request, exc: firebase_exceptions.FirebaseError):
        status, code, message = resolve_firebase_error(exc)
        _log_error(request, exc, status)
        return error_response(status, message, code)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        _log_error(request, exc, 500)
        details = "".join(traceback.format_exception(exc)) if show_stack else None
        return error_response(500, "Internal server error", ERROR_CODES["SERVER_INTERNAL_ERROR"], details)
