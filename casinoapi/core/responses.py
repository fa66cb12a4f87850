import logging
from typing import Any, Callable, Optional

from fastapi.responses import JSONResponse

from casinoapi.core.exceptions import BaseAPIException
from casinoapi.schemas.common import BaseResponse, Error
from casinoapi.schemas.games import RoundView

logger = logging.getLogger(__name__)


def error_response(exc: BaseAPIException, data: Optional[dict] = None) -> JSONResponse:
    """Render a domain error as a BaseResponse with the exception's status code."""
    return JSONResponse(
        status_code=exc.status_code,
        content=BaseResponse(
            success=False,
            data=data,
            error=Error(code=exc.error_code, message=exc.message, details=exc.details or None),
        ).model_dump(mode="json"),
    )


def round_response(
    action: Callable[[], RoundView], current_view: Callable[[], RoundView]
) -> Any:
    """Run a round action; on a domain error return it alongside the current round."""
    try:
        view = action()
        return BaseResponse(success=True, data={"round": view.model_dump(mode="json")})
    except BaseAPIException as exc:
        try:
            data = {"round": current_view().model_dump(mode="json")}
        except BaseAPIException:
            logger.warning("Could not load current round for error response")
            data = None
        return error_response(exc, data)
