import logging
from http import HTTPStatus
from typing import Any, Callable

from fastapi import FastAPI, Request, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.responses import error_payload


logger = logging.getLogger(__name__)


class APIException(Exception):
    """ Base class for auth exceptions that map to a fixed status and message. """
    pass


class InvalidTokenException(APIException):
    """ Exception is thrown when user provided an expired or invalid token. """
    pass


class AccessTokenRequiredException(APIException):
    """ Exception is raised when a protected endpoint is called without a bearer token. """
    pass


class InvalidUserCredentialsException(APIException):
    """ Exception is thrown when a user has provided invalid credentials. """
    pass


class AccountDeactivatedException(APIException):
    """ Exception is thrown when a deactivated user tries to sign in or use a token. """
    pass


class UserAlreadyExistsException(APIException):
    """ Exception is thrown when a user has provided an email that exists. """
    pass


class NotFoundException(HTTPException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class BadRequestException(HTTPException):
    def __init__(self, detail: str = "Bad request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class UnauthorizedException(HTTPException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class ForbiddenException(HTTPException):
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class ConflictException(HTTPException):
    def __init__(self, detail: str = "Resource already exists"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class DataIntegrityException(HTTPException):
    """ Stored data breaks an invariant the application relies on (e.g. a category cycle). """

    def __init__(self, detail: str = "Data integrity error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


def _reason(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def create_exception_handler(status_code: int, detail: Any) -> Callable[[Request, Exception], JSONResponse]:
    async def exception_handler(request: Request, exception: APIException):
        return JSONResponse(
            content=error_payload(status_code, detail, request.url.path, _reason(status_code)),
            status_code=status_code,
        )

    return exception_handler


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed with %s: %s",
            request.method, request.url.path, exc.status_code, exc.detail,
            exc_info=exc,
        )
        message = "Internal server error"
    else:
        message = exc.detail

    return JSONResponse(
        content=error_payload(exc.status_code, message, request.url.path, _reason(exc.status_code)),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc)
        messages.append(f"{field}: {err['msg']}" if field else err["msg"])

    return JSONResponse(
        content=error_payload(400, "; ".join(messages) or "Validation failed", request.url.path, "Bad Request"),
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        content=error_payload(500, "Internal server error", request.url.path, "Internal Server Error"),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def register_exception_handlers(app: FastAPI) -> None:
    # Auth-related exception handlers
    app.add_exception_handler(AccessTokenRequiredException, create_exception_handler(401, "Authentication required!"))
    app.add_exception_handler(InvalidTokenException, create_exception_handler(401, "Invalid or expired token provided!"))
    app.add_exception_handler(InvalidUserCredentialsException, create_exception_handler(401, "Invalid credentials"))
    app.add_exception_handler(AccountDeactivatedException, create_exception_handler(401, "Account is deactivated"))
    app.add_exception_handler(UserAlreadyExistsException, create_exception_handler(409, "User with this email already exists"))

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
