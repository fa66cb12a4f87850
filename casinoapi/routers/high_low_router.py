from typing import Any

from fastapi import APIRouter, Depends

from casinoapi.core.auth_middleware import Identity, get_current_identity
from casinoapi.core.responses import round_response
from casinoapi.deps import get_high_low_service
from casinoapi.schemas.common import BaseResponse
from casinoapi.schemas.games import BetRequest, HighLowChoiceRequest
from casinoapi.services.high_low_service import HighLowService

router = APIRouter(prefix="/games/high-low", tags=["high-low"])


@router.get("/round", response_model=BaseResponse)
def get_round(
    identity: Identity = Depends(get_current_identity),
    service: HighLowService = Depends(get_high_low_service),
) -> Any:
    return round_response(
        lambda: service.get_round(identity.user_id),
        lambda: service.get_round(identity.user_id),
    )


@router.post("/bet", response_model=BaseResponse)
def place_bet(
    payload: BetRequest,
    identity: Identity = Depends(get_current_identity),
    service: HighLowService = Depends(get_high_low_service),
) -> Any:
    """Debit the stake and turn over the first card."""
    return round_response(
        lambda: service.place_bet(identity.user_id, payload.amount),
        lambda: service.get_round(identity.user_id),
    )


@router.post("/choose", response_model=BaseResponse)
def choose(
    payload: HighLowChoiceRequest,
    identity: Identity = Depends(get_current_identity),
    service: HighLowService = Depends(get_high_low_service),
) -> Any:
    return round_response(
        lambda: service.choose(identity.user_id, payload.direction),
        lambda: service.get_round(identity.user_id),
    )


@router.post("/new-round", response_model=BaseResponse)
def new_round(
    identity: Identity = Depends(get_current_identity),
    service: HighLowService = Depends(get_high_low_service),
) -> Any:
    return round_response(
        lambda: service.new_round(identity.user_id),
        lambda: service.get_round(identity.user_id),
    )
