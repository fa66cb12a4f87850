from typing import Any

from fastapi import APIRouter, Depends

from casinoapi.core.auth_middleware import Identity, get_current_identity
from casinoapi.core.responses import round_response
from casinoapi.deps import get_blackjack_service
from casinoapi.schemas.common import BaseResponse
from casinoapi.schemas.games import BetRequest
from casinoapi.services.blackjack_service import BlackjackService

router = APIRouter(prefix="/games/blackjack", tags=["blackjack"])


@router.get("/round", response_model=BaseResponse)
def get_round(
    identity: Identity = Depends(get_current_identity),
    service: BlackjackService = Depends(get_blackjack_service),
) -> Any:
    return round_response(
        lambda: service.get_round(identity.user_id),
        lambda: service.get_round(identity.user_id),
    )


@router.post("/bet", response_model=BaseResponse)
def place_bet(
    payload: BetRequest,
    identity: Identity = Depends(get_current_identity),
    service: BlackjackService = Depends(get_blackjack_service),
) -> Any:
    """Debit the stake and deal. A natural settles immediately."""
    return round_response(
        lambda: service.place_bet(identity.user_id, payload.amount),
        lambda: service.get_round(identity.user_id),
    )


@router.post("/hit", response_model=BaseResponse)
def hit(
    identity: Identity = Depends(get_current_identity),
    service: BlackjackService = Depends(get_blackjack_service),
) -> Any:
    return round_response(
        lambda: service.hit(identity.user_id),
        lambda: service.get_round(identity.user_id),
    )


@router.post("/stand", response_model=BaseResponse)
def stand(
    identity: Identity = Depends(get_current_identity),
    service: BlackjackService = Depends(get_blackjack_service),
) -> Any:
    return round_response(
        lambda: service.stand(identity.user_id),
        lambda: service.get_round(identity.user_id),
    )


@router.post("/new-round", response_model=BaseResponse)
def new_round(
    identity: Identity = Depends(get_current_identity),
    service: BlackjackService = Depends(get_blackjack_service),
) -> Any:
    return round_response(
        lambda: service.new_round(identity.user_id),
        lambda: service.get_round(identity.user_id),
    )
