"""Endpoints shared by every game: settled-round history and seed verification."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from casinoapi.core.auth_middleware import Identity, get_current_identity
from casinoapi.core.exceptions import NotFoundError
from casinoapi.deps import get_round_services
from casinoapi.models.game_round import GameType
from casinoapi.schemas.common import BaseResponse
from casinoapi.services.round_service import RoundService

router = APIRouter(prefix="/games", tags=["games"])


def _pick(game: str, services: dict) -> RoundService:
    service = services.get(game)
    if service is None:
        raise NotFoundError(
            f"Unknown game '{game}'", details={"games": [g.value for g in GameType]}
        )
    return service


@router.get("/{game}/history", response_model=BaseResponse)
def get_history(
    game: str,
    limit: Optional[int] = Query(None, ge=0, description="Entries to return (capped)"),
    identity: Identity = Depends(get_current_identity),
    services: dict = Depends(get_round_services),
) -> Any:
    """Settled rounds for one game, newest first."""
    service = _pick(game, services)
    entries = service.history(identity.user_id, limit)
    return BaseResponse(
        success=True,
        data={"history": [entry.model_dump(mode="json") for entry in entries]},
    )


@router.get("/{game}/rounds/{round_id}/verify", response_model=BaseResponse)
def verify_round(
    game: str,
    round_id: str,
    identity: Identity = Depends(get_current_identity),
    services: dict = Depends(get_round_services),
) -> Any:
    """Replay a settled round from its recorded seed."""
    service = _pick(game, services)
    verification = service.verify(identity.user_id, round_id)
    return BaseResponse(success=True, data={"verification": verification.model_dump()})
