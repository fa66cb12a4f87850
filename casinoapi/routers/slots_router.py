from typing import Any

from fastapi import APIRouter, Depends

from casinoapi.core.auth_middleware import Identity, get_current_identity
from casinoapi.core.responses import round_response
from casinoapi.deps import get_slots_service
from casinoapi.schemas.common import BaseResponse
from casinoapi.schemas.games import BetRequest
from casinoapi.services.slots_service import SlotsService

router = APIRouter(prefix="/games/slots", tags=["slots"])


@router.get("/round", response_model=BaseResponse)
def get_round(
    identity: Identity = Depends(get_current_identity),
    service: SlotsService = Depends(get_slots_service),
) -> Any:
    """Current grid plus the bet options offered at this machine."""
    response = round_response(
        lambda: service.get_round(identity.user_id),
        lambda: service.get_round(identity.user_id),
    )
    if isinstance(response, BaseResponse):
        response.data["bet_options"] = service.bet_options()
    return response


@router.post("/spin", response_model=BaseResponse)
def spin(
    payload: BetRequest,
    identity: Identity = Depends(get_current_identity),
    service: SlotsService = Depends(get_slots_service),
) -> Any:
    return round_response(
        lambda: service.spin(identity.user_id, payload.amount),
        lambda: service.get_round(identity.user_id),
    )


@router.post("/new-round", response_model=BaseResponse)
def new_round(
    identity: Identity = Depends(get_current_identity),
    service: SlotsService = Depends(get_slots_service),
) -> Any:
    return round_response(
        lambda: service.new_round(identity.user_id),
        lambda: service.get_round(identity.user_id),
    )
