# =============================================================================
# File: sentinel/core/exceptions.py
# Description: Exception handlers for FastAPI application
# =============================================================================

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from starlette import status
from starlette.responses import JSONResponse

from sentinel.common.exceptions.exceptions import (
    AuthError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from sentinel.config.app_config import get_app_config
from sentinel.core.fastapi_types import FastAPI

logger = logging.getLogger("sentinel.exceptions")

_DOMAIN_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    AuthError: status.HTTP_401_UNAUTHORIZED,
}


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""

    for exc_type in _DOMAIN_STATUS:
        app.add_exception_handler(exc_type, domain_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")


async def domain_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map domain exceptions to their HTTP status"""
    status_code = next(
        (code for exc_type, code in _DOMAIN_STATUS.items() if isinstance(exc, exc_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    logger.warning(f"{type(exc).__name__} on path {request.url.path}: {exc}")

    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "type": type(exc).__name__},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors"""
    logger.warning(f"Validation error on path {request.url.path}: {exc.errors()}")

    errors = []
    for error in exc.errors():
        error_dict = {
            "loc": error["loc"],
            "msg": error["msg"],
            "type": error["type"],
        }

        if "ctx" in error:
            error_dict["ctx"] = {
                key: str(value) if isinstance(value, Exception) else value
                for key, value in error["ctx"].items()
            }

        errors.append(error_dict)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": errors},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle general unhandled exceptions"""
    logger.error(f"Unhandled exception on path {request.url.path}: {str(exc)}", exc_info=True)

    if get_app_config().is_production:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "An internal server error occurred."}
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "type": type(exc).__name__}
    )
