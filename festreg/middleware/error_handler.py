"""
Error Handler Middleware

Maps every exception that reaches the transport layer onto the categorical
error body of festreg.errors. Unexpected exceptions are logged with a short
log id and answered with a generic 500; no stack trace leaves the process
unless debug is on.
"""
import logging
import traceback
import uuid

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from festreg.errors import APIError, ErrorCode, ErrorKind, InternalError

logger = logging.getLogger(__name__)


def _request_context(request: Request) -> str:
    client = request.client.host if request.client else None
    return f"{request.method} {request.url.path} client={client}"


def register_error_handlers(app: FastAPI, debug: bool = False) -> None:
    """
    Setup error handlers for the FastAPI application.

    Args:
        app: FastAPI application instance
        debug: include exception text and traceback in 500 responses
    """

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        logger.warning(f"{exc.kind} [{exc.code}] {exc.message} | {_request_context(request)}")
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "success": False,
                "error": ErrorKind.VALIDATION,
                "message": "Invalid input data",
                "code": ErrorCode.VALIDATION_ERROR,
                "details": {"errors": [
                    {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                    for e in exc.errors()
                ]},
            },
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        log_id = str(uuid.uuid4())[:8]
        logger.error(
            f"Unexpected error [{log_id}]: {exc}\n"
            f"Context: {_request_context(request)}\n"
            f"Traceback:\n{traceback.format_exc()}"
        )
        error = InternalError(str(exc) if debug else "An internal error occurred", log_id=log_id)
        return error.to_response()

    logger.info("Error handlers configured")
