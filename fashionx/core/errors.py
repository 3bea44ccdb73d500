# ============================================================================
# core/errors.py - Error Taxonomy & Centralized Exception Handlers
# ============================================================================

import logging
import traceback
from typing import Any, Dict, Optional

import jwt
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from fashionx.core.config import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Operational error with an HTTP status; safe to show to the client"""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None, **extra: Any):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "message": self.message, **self.extra}


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request data"


class InvalidPlanError(ValidationError):
    default_message = "Invalid plan"


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Access denied. No token provided."


class InvalidToken(Unauthenticated):
    default_message = "Invalid token. Please login again."


class TokenExpired(Unauthenticated):
    default_message = "Token expired. Please login again."


class UserNotFound(Unauthenticated):
    default_message = "Invalid token. User not found."


class AccountDeactivated(Unauthenticated):
    default_message = "Account is deactivated. Please contact support."


class Forbidden(AppError):
    status_code = 403
    default_message = "Access denied."


class AccountBlocked(Forbidden):
    default_message = "Your account has been blocked. Please contact support for assistance."


class PlanRequired(Forbidden):
    default_message = "Please select a plan first"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        extra.setdefault("redirectTo", "/pricing")
        super().__init__(message, **extra)


class InsufficientCredits(Forbidden):
    default_message = "You have run out of credits. Please upgrade your plan."

    def __init__(self, message: Optional[str] = None, **extra: Any):
        extra.setdefault("redirectTo", "/pricing")
        super().__init__(message, **extra)


class NotFound(AppError):
    status_code = 404
    default_message = "Resource not found"


class UpstreamError(AppError):
    status_code = 502
    default_message = "The processing service returned an error"


class UpstreamUnavailable(UpstreamError):
    status_code = 502
    default_message = "The processing service is currently unavailable. Please try again later."


class UpstreamTimeout(UpstreamError):
    status_code = 504
    default_message = "The processing is taking too long. Please try again later."


class InternalError(AppError):
    status_code = 500
    default_message = "Something went wrong on our end. Please try again later."


# ============================================================================
# Handlers
# ============================================================================

async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"❌ {exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append(f"{field}: {error.get('msg')}" if field else error.get("msg"))
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid input data", "errors": errors},
    )


async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "A record with this value already exists"},
    )


async def jwt_error_handler(request: Request, exc: jwt.PyJWTError):
    error = TokenExpired() if isinstance(exc, jwt.ExpiredSignatureError) else InvalidToken()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = f"Route {request.url.path} not found"
    else:
        message = exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url}: {str(exc)}")
    stack = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error(f"Full traceback: {''.join(stack)}")

    content: Dict[str, Any] = {"success": False, "message": InternalError.default_message}
    if not settings.is_production:
        content["error"] = str(exc)
        content["stack"] = stack
    return JSONResponse(status_code=500, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(jwt.PyJWTError, jwt_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
