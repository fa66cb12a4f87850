"""
Request-scoped service builders.

Each request gets its own Session from `get_db`; the container supplies the
service factories (and their settings) so tests can still override them.
"""

from typing import Callable

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from sqlalchemy.orm import Session

from casinoapi.containers import Container
from casinoapi.database.session import get_db
from casinoapi.models.game_round import GameType
from casinoapi.services.blackjack_service import BlackjackService
from casinoapi.services.export_service import ExportService
from casinoapi.services.high_low_service import HighLowService
from casinoapi.services.ledger_service import LedgerService
from casinoapi.services.payout_service import PayoutService
from casinoapi.services.roulette_service import RouletteService
from casinoapi.services.slots_service import SlotsService


@inject
def get_ledger_service(
    db: Session = Depends(get_db),
    factory: Callable[..., LedgerService] = Depends(
        Provide[Container.services.ledger_service.provider]
    ),
) -> LedgerService:
    return factory(db=db)


@inject
def get_payout_service(
    db: Session = Depends(get_db),
    factory: Callable[..., PayoutService] = Depends(
        Provide[Container.services.payout_service.provider]
    ),
) -> PayoutService:
    return factory(db=db)


@inject
def get_export_service(
    db: Session = Depends(get_db),
    factory: Callable[..., ExportService] = Depends(
        Provide[Container.services.export_service.provider]
    ),
) -> ExportService:
    return factory(db=db)


@inject
def get_blackjack_service(
    db: Session = Depends(get_db),
    factory: Callable[..., BlackjackService] = Depends(
        Provide[Container.services.blackjack_service.provider]
    ),
) -> BlackjackService:
    return factory(db=db)


@inject
def get_high_low_service(
    db: Session = Depends(get_db),
    factory: Callable[..., HighLowService] = Depends(
        Provide[Container.services.high_low_service.provider]
    ),
) -> HighLowService:
    return factory(db=db)


@inject
def get_slots_service(
    db: Session = Depends(get_db),
    factory: Callable[..., SlotsService] = Depends(
        Provide[Container.services.slots_service.provider]
    ),
) -> SlotsService:
    return factory(db=db)


@inject
def get_roulette_service(
    db: Session = Depends(get_db),
    factory: Callable[..., RouletteService] = Depends(
        Provide[Container.services.roulette_service.provider]
    ),
) -> RouletteService:
    return factory(db=db)


def get_round_services(
    blackjack: BlackjackService = Depends(get_blackjack_service),
    high_low: HighLowService = Depends(get_high_low_service),
    slots: SlotsService = Depends(get_slots_service),
    roulette: RouletteService = Depends(get_roulette_service),
) -> dict:
    """Every round controller, keyed by game name. FastAPI caches get_db, so all
    four share the request's session."""
    return {
        GameType.BLACKJACK.value: blackjack,
        GameType.HIGH_LOW.value: high_low,
        GameType.SLOTS.value: slots,
        GameType.ROULETTE.value: roulette,
    }
