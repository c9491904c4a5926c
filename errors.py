"""Error taxonomy and the exception handlers that render it as the response envelope."""
import logging
import traceback

import stripe
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from firebase_admin import auth
from firebase_admin.exceptions import FirebaseError
from google.api_core.exceptions import GoogleAPICallError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from responses import envelope

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class BadRequestError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(ApiError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT


class InvalidTransitionError(BadRequestError):
    """Raised when a ride is not in a state that allows the requested transition."""


class SeatsUnavailableError(BadRequestError):
    def __init__(self, message: str = "No seats available"):
        super().__init__(message)


# Checked in order: subclasses before their parents.
FIREBASE_AUTH_ERRORS = [
    (auth.ExpiredIdTokenError, status.HTTP_401_UNAUTHORIZED, "Token has expired"),
    (auth.RevokedIdTokenError, status.HTTP_401_UNAUTHORIZED, "Token has been revoked"),
    (auth.InvalidIdTokenError, status.HTTP_401_UNAUTHORIZED, "Invalid or expired token"),
    (auth.UserNotFoundError, status.HTTP_401_UNAUTHORIZED, "User not found"),
    (auth.UserDisabledError, status.HTTP_403_FORBIDDEN, "Account is deactivated"),
    (auth.EmailAlreadyExistsError, status.HTTP_409_CONFLICT, "Email is already registered"),
    (auth.PhoneNumberAlreadyExistsError, status.HTTP_409_CONFLICT, "Phone number already exists"),
    (auth.TooManyAttemptsTryLaterError, status.HTTP_429_TOO_MANY_REQUESTS,
     "Too many failed attempts. Please try again later"),
]

STRIPE_ERRORS = [
    (stripe.CardError, status.HTTP_400_BAD_REQUEST, None),
    (stripe.RateLimitError, status.HTTP_429_TOO_MANY_REQUESTS, "Too many requests. Please try again later"),
    (stripe.InvalidRequestError, status.HTTP_400_BAD_REQUEST, "Invalid payment request"),
    (stripe.AuthenticationError, status.HTTP_401_UNAUTHORIZED, "Payment authentication failed"),
    (stripe.APIConnectionError, status.HTTP_503_SERVICE_UNAVAILABLE, "Network error. Please try again"),
    (stripe.APIError, status.HTTP_503_SERVICE_UNAVAILABLE, "Payment service temporarily unavailable"),
]


def translate_firebase_error(exc: FirebaseError) -> tuple[int, str]:
    for error_class, status_code, message in FIREBASE_AUTH_ERRORS:
        if isinstance(exc, error_class):
            return status_code, message
    return status.HTTP_401_UNAUTHORIZED, str(exc) or "Authentication error"


def translate_stripe_error(exc: stripe.StripeError) -> tuple[int, str]:
    for error_class, status_code, message in STRIPE_ERRORS:
        if isinstance(exc, error_class):
            if message is None:
                message = exc.user_message or "Card was declined"
            return status_code, message
    return status.HTTP_400_BAD_REQUEST, exc.user_message or "Payment processing error"


def _error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope(message=message, success=False, **extra))


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return _error_response(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = f"Route not found - {request.url.path}"
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(message=str(message), success=False),
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    logger.info(f"Validation failed for {request.url.path}: {errors}")
    return _error_response(status.HTTP_400_BAD_REQUEST, "Validation failed", errors=errors)


async def firebase_error_handler(request: Request, exc: FirebaseError) -> JSONResponse:
    logger.error(f"Firebase error: {str(exc)}")
    status_code, message = translate_firebase_error(exc)
    return _error_response(status_code, message)


async def stripe_error_handler(request: Request, exc: stripe.StripeError) -> JSONResponse:
    logger.error(f"Stripe error: {str(exc)}")
    status_code, message = translate_stripe_error(exc)
    return _error_response(status_code, message)


async def firestore_error_handler(request: Request, exc: GoogleAPICallError) -> JSONResponse:
    logger.error(f"Firestore error: {str(exc)}")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Database operation failed")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    extra = {}
    if not settings.is_production:
        extra["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Internal server error", **extra)


EXCEPTION_HANDLERS = {
    ApiError: api_error_handler,
    StarletteHTTPException: http_exception_handler,
    RequestValidationError: validation_error_handler,
    FirebaseError: firebase_error_handler,
    stripe.StripeError: stripe_error_handler,
    GoogleAPICallError: firestore_error_handler,
    Exception: unhandled_error_handler,
}


def register_exception_handlers(app: FastAPI):
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
