import logging
import time

from fastapi import HTTPException, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = logging.getLogger("casinoapi.http")


def level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class LoggingMiddleware(BaseHTTPMiddleware):
    """One line per request and one per response.

    Only the path is logged; query strings and headers (bearer tokens) are not.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        client = request.client.host if request.client else "-"
        where = f"{request.method} {request.url.path} from {client}"

        logger.debug(f"[Request] {where}")
        try:
            response = await call_next(request)
        except HTTPException as http_exc:
            logger.log(
                level_for(http_exc.status_code),
                f"[HTTPException] {where} -> {http_exc.status_code}: {http_exc.detail}",
            )
            raise
        except Exception:
            logger.exception(f"[Unhandled Error] {where}")
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        logger.log(
            level_for(response.status_code),
            f"[Response] {where} -> {response.status_code} in {duration_ms:.1f}ms",
        )
        return response
