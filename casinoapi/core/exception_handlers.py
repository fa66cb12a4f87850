"""
Exception handlers. Every error body is a BaseResponse with success=False.

Domain errors keep their own error code; plain HTTPExceptions (auth, routing)
are mapped by status. Ledger write failures are also reported on the
reconciliation log, since a stake or payout may now need reconciling.
"""

import logging
import traceback
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from casinoapi.core.exceptions import BaseAPIException, InternalServerError, PersistenceError
from casinoapi.core.logging_middleware import level_for
from casinoapi.core.responses import error_response
from casinoapi.logging_config import RECONCILIATION_LOGGER
from casinoapi.schemas.common import BaseResponse, Error, ErrorCode

logger = logging.getLogger("casinoapi")
reconciliation_logger = logging.getLogger(RECONCILIATION_LOGGER)

HTTP_ERROR_CODES = {
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.UNAUTHORIZED,
    404: ErrorCode.NOT_FOUND,
    422: ErrorCode.VALIDATION_FAILED,
}


def _where(request: Request) -> str:
    client = request.client.host if request.client else "-"
    return f"{request.method} {request.url.path} from {client}"


def _failure(
    status_code: int,
    code: ErrorCode,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    body = BaseResponse(
        success=False, error=Error(code=code, message=message, details=details)
    )
    return JSONResponse(
        status_code=status_code, content=body.model_dump(mode="json"), headers=headers
    )


async def handle_base_api_exception(request: Request, exc: BaseAPIException):
    where = _where(request)
    logger.log(
        level_for(exc.status_code),
        f"[{exc.error_code}] {where} -> {exc.status_code}: {exc.message}",
    )
    if isinstance(exc, PersistenceError):
        reconciliation_logger.warning(f"Ledger write failed during {where}: {exc.message}")
    return error_response(exc)


async def handle_http_exception(request: Request, exc):
    message = f"[HTTPException] {_where(request)} -> {exc.status_code}: {exc.detail}"
    if exc.status_code >= 500:
        tb_str = "".join(traceback.format_tb(exc.__traceback__))
        logger.error(f"{message}\n\nStack Trace:\n{tb_str}")
    else:
        logger.warning(message)

    if isinstance(exc.detail, dict) and "error" in exc.detail:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.detail,
            headers=getattr(exc, "headers", None),
        )
    code = HTTP_ERROR_CODES.get(exc.status_code, ErrorCode.HTTP_ERROR)
    return _failure(
        exc.status_code, code, str(exc.detail), headers=getattr(exc, "headers", None)
    )


def jsonable_errors(errors) -> list:
    # pydantic v2 may put exception instances under "ctx"
    return [
        {key: (str(value) if key == "ctx" else value) for key, value in error.items()}
        for error in errors
    ]


async def handle_validation_error(request: Request, exc):
    errors = jsonable_errors(exc.errors())
    logger.warning(f"[ValidationError] {_where(request)} -> 422: {errors}")
    return _failure(
        422, ErrorCode.VALIDATION_FAILED, "Validation failed", details={"errors": errors}
    )


async def handle_unexpected_error(request: Request, exc: Exception):
    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(
        f"[Unhandled Error] {_where(request)}\n"
        f"Exception Type: {type(exc).__name__}\n"
        f"Exception Message: {exc}\n\n"
        f"Full Stack Trace:\n{tb_str}"
    )
    return error_response(InternalServerError())
