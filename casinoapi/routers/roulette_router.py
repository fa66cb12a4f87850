from typing import Any

from fastapi import APIRouter, Depends

from casinoapi.core.auth_middleware import Identity, get_current_identity
from casinoapi.core.responses import round_response
from casinoapi.deps import get_roulette_service
from casinoapi.schemas.common import BaseResponse
from casinoapi.schemas.games import RouletteSelectRequest, RouletteSpinRequest
from casinoapi.services.roulette_service import RouletteService

router = APIRouter(prefix="/games/roulette", tags=["roulette"])


@router.get("/round", response_model=BaseResponse)
def get_round(
    identity: Identity = Depends(get_current_identity),
    service: RouletteService = Depends(get_roulette_service),
) -> Any:
    return round_response(
        lambda: service.get_round(identity.user_id),
        lambda: service.get_round(identity.user_id),
    )


@router.post("/select", response_model=BaseResponse)
def select_color(
    payload: RouletteSelectRequest,
    identity: Identity = Depends(get_current_identity),
    service: RouletteService = Depends(get_roulette_service),
) -> Any:
    return round_response(
        lambda: service.select_color(identity.user_id, payload.color),
        lambda: service.get_round(identity.user_id),
    )


@router.post("/spin", response_model=BaseResponse)
def spin(
    payload: RouletteSpinRequest,
    identity: Identity = Depends(get_current_identity),
    service: RouletteService = Depends(get_roulette_service),
) -> Any:
    """Bet on the selected colour (or `color` in the body) and spin."""
    return round_response(
        lambda: service.spin(identity.user_id, payload.amount, payload.color),
        lambda: service.get_round(identity.user_id),
    )


@router.post("/new-round", response_model=BaseResponse)
def new_round(
    identity: Identity = Depends(get_current_identity),
    service: RouletteService = Depends(get_roulette_service),
) -> Any:
    return round_response(
        lambda: service.new_round(identity.user_id),
        lambda: service.get_round(identity.user_id),
    )
