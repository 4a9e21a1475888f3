"""
Error handling for the HTTP layer.

Every error leaves the API as ``{"message": ...}``. Domain exceptions carry
their own status code; SQLAlchemy errors are classified by
``AsyncErrorHandler``; anything else is logged and reported as a 500.
"""

import logging
from typing import Any, Dict

import asyncpg
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import (
    DataError,
    DatabaseError,
    DisconnectionError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    StatementError,
    TimeoutError as SQLTimeoutError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

from fitsocial.core.exceptions import FitSocialError
from fitsocial.utils.logger import api_logger

logger = logging.getLogger(__name__)


class AsyncErrorHandler:
    """Classifies database errors into HTTP status codes and messages."""

    # Checked in order; subclasses come before DatabaseError
    ERROR_MAPPINGS = {
        IntegrityError: {
            'status_code': status.HTTP_409_CONFLICT,
            'detail': 'Data integrity constraint violation',
            'retryable': False
        },
        OperationalError: {
            'status_code': status.HTTP_503_SERVICE_UNAVAILABLE,
            'detail': 'Database operation failed',
            'retryable': True
        },
        DisconnectionError: {
            'status_code': status.HTTP_503_SERVICE_UNAVAILABLE,
            'detail': 'Database connection lost',
            'retryable': True
        },
        SQLTimeoutError: {
            'status_code': status.HTTP_504_GATEWAY_TIMEOUT,
            'detail': 'Database operation timed out',
            'retryable': True
        },
        DataError: {
            'status_code': status.HTTP_400_BAD_REQUEST,
            'detail': 'Invalid data format',
            'retryable': False
        },
        DatabaseError: {
            'status_code': status.HTTP_500_INTERNAL_SERVER_ERROR,
            'detail': 'Database error occurred',
            'retryable': False
        },
        StatementError: {
            'status_code': status.HTTP_400_BAD_REQUEST,
            'detail': 'Invalid database query',
            'retryable': False
        },
    }

    @classmethod
    def classify_error(cls, error: Exception) -> Dict[str, Any]:
        """
        Classify a database error.

        Args:
            error: The exception that occurred

        Returns:
            Dictionary with status_code, detail, and retryable flag
        """
        for exc_type, mapping in cls.ERROR_MAPPINGS.items():
            if isinstance(error, exc_type):
                return mapping.copy()

        original = getattr(error, "orig", None)
        if isinstance(original, asyncpg.PostgresError):
            return cls._handle_postgres_error(original)

        return {
            'status_code': status.HTTP_500_INTERNAL_SERVER_ERROR,
            'detail': 'An unexpected database error occurred',
            'retryable': False
        }

    @classmethod
    def _handle_postgres_error(cls, error: asyncpg.PostgresError) -> Dict[str, Any]:
        if isinstance(error, asyncpg.UniqueViolationError):
            return {
                'status_code': status.HTTP_409_CONFLICT,
                'detail': 'Unique constraint violation',
                'retryable': False
            }

        if isinstance(error, asyncpg.ForeignKeyViolationError):
            return {
                'status_code': status.HTTP_409_CONFLICT,
                'detail': 'Foreign key constraint violation',
                'retryable': False
            }

        return {
            'status_code': status.HTTP_500_INTERNAL_SERVER_ERROR,
            'detail': f'PostgreSQL error: {error.sqlstate}',
            'retryable': False
        }

    @classmethod
    def is_retryable(cls, error: Exception) -> bool:
        return cls.classify_error(error).get('retryable', False)


def _message_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    message = first.get("msg", "Invalid request")
    if location:
        return f"{'.'.join(location)}: {message}"
    return message


async def fitsocial_error_handler(request: Request, exc: FitSocialError) -> JSONResponse:
    api_logger.warning(exc.message, context="ERROR", path=request.url.path, status=exc.status_code)
    return _message_response(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = _message_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = _validation_message(exc)
    api_logger.debug("Request validation failed", context="ERROR", path=request.url.path, detail=message)
    return _message_response(status.HTTP_400_BAD_REQUEST, message)


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    error_info = AsyncErrorHandler.classify_error(exc)
    if error_info['retryable']:
        logger.warning(f"Retryable database error on {request.url.path}: {exc}")
    else:
        logger.error(f"Database error on {request.url.path}: {exc}")
    return _message_response(error_info['status_code'], error_info['detail'])


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    api_logger.error("Unhandled error", context="ERROR", path=request.url.path,
                     error_type=type(exc).__name__, error=str(exc))
    return _message_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FitSocialError, fitsocial_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
