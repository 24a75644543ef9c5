"""
Error taxonomy for the API and the handlers that render it.

Every failure reaches the client as ``{"error": <code>, "message": <text>}``.
Login failures and ownership checks deliberately reuse one message for
several causes so callers cannot tell them apart.
"""
import http
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.security import MissingTokenError, TokenError, authenticate

logger = logging.getLogger(__name__)


class APIError(HTTPException):
    error = "ServerError"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int = None, headers: dict = None):
        super().__init__(status_code=status_code or self.status_code, detail=message, headers=headers)

    @property
    def message(self) -> str:
        return self.detail


class ValidationError(APIError):
    error = "ValidationError"
    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(APIError):
    error = "AuthError"
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(APIError):
    error = "ForbiddenError"
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundOrUnauthorized(APIError):
    error = "NotFoundOrUnauthorized"
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(APIError):
    error = "UserExistsError"
    status_code = status.HTTP_409_CONFLICT


class ServerError(APIError):
    error = "ServerError"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class StoreError(Exception):
    """Raised by the data and blob layers when the backing service fails."""


class DuplicateRecordError(StoreError):
    """A unique index rejected an insert."""


def authentication_error(exc: TokenError) -> APIError:
    if isinstance(exc, MissingTokenError):
        return AuthError("Missing token", headers={"WWW-Authenticate": "Bearer"})
    return ForbiddenError("Invalid or expired token")


def _server_error_response(request: Request, exc: Exception) -> JSONResponse:
    settings = getattr(request.app.state, "settings", None)
    body = {"error": ServerError.error, "message": "An unexpected error occurred"}
    if settings is not None and settings.is_development:
        body["details"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


async def api_error_handler(request: Request, exc: APIError):
    if exc.status_code >= 500:
        return _server_error_response(request, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "message": exc.message},
        headers=exc.headers,
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        return _server_error_response(request, exc)
    phrase = http.HTTPStatus(exc.status_code).phrase
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": phrase.replace(" ", ""), "message": exc.detail or phrase},
        headers=getattr(exc, "headers", None),
    )


def _gateway_rejection(request: Request) -> Optional[APIError]:
    """Auth error for a protected path, checked ahead of body validation.

    FastAPI parses the request body before route dependencies run, so a
    malformed body on a protected route would otherwise answer before the
    token check does.
    """
    prefixes = getattr(request.app.state, "protected_prefixes", ())
    if not request.url.path.startswith(tuple(prefixes)):
        return None
    settings = request.app.state.settings
    try:
        authenticate(
            request.headers.get("Authorization"),
            secret=settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )
    except TokenError as exc:
        return authentication_error(exc)
    return None


async def request_validation_handler(request: Request, exc: RequestValidationError):
    rejection = _gateway_rejection(request)
    if rejection is not None:
        return await api_error_handler(request, rejection)

    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        message = "Invalid JSON body"
    else:
        fields = [".".join(str(part) for part in err["loc"] if part != "body") for err in errors]
        message = f"Invalid value for: {', '.join(f for f in fields if f) or 'body'}"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "ValidationError", "message": message},
    )


async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"{request.method} {request.url.path} store error: {exc}")
    return _server_error_response(request, exc)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} failed")
    return _server_error_response(request, exc)


def register_exception_handlers(app: FastAPI, protected_prefixes=()):
    """Install the JSON error envelope.

    ``protected_prefixes`` are the path prefixes guarded by the auth gateway.
    """
    app.state.protected_prefixes = tuple(protected_prefixes)
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
