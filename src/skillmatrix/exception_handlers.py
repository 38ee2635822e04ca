"""
Exception handlers for the FastAPI application.

Service errors become JSON bodies with the status their class declares;
anything else is logged with its traceback and answered with a 500 and an
error id that can be matched against the logs.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from skillmatrix.exceptions import SkillMatrixError

logger = logging.getLogger(__name__)


async def skill_matrix_exception_handler(request: Request, exc: SkillMatrixError) -> JSONResponse:
    """
    Convert a service error into its HTTP response.

    Args:
        request: The HTTP request that caused the exception
        exc: The service error that was raised

    Returns:
        JSONResponse with the error class, message and context
    """
    logger.warning(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Log an unhandled exception and return a generic 500 response.

    Args:
        request: The HTTP request that caused the exception
        exc: The exception that was raised

    Returns:
        JSONResponse with error details and error ID
    """
    error_id = id(exc)

    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "error_type": type(exc).__name__,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(SkillMatrixError, skill_matrix_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")
