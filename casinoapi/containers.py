from dependency_injector import containers, providers

from casinoapi.config import Settings
from casinoapi.services.blackjack_service import BlackjackService
from casinoapi.services.export_service import ExportService
from casinoapi.services.high_low_service import HighLowService
from casinoapi.services.ledger_service import LedgerService
from casinoapi.services.payout_service import PayoutService
from casinoapi.services.roulette_service import RouletteService
from casinoapi.services.slots_service import SlotsService


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)


class ServiceModule(containers.DeclarativeContainer):
    """Service factories. The caller passes the request's session as `db`."""

    config = providers.DependenciesContainer()

    ledger_service = providers.Factory(LedgerService, settings=config.config)
    payout_service = providers.Factory(PayoutService, settings=config.config)
    export_service = providers.Factory(ExportService, settings=config.config)
    blackjack_service = providers.Factory(BlackjackService, settings=config.config)
    high_low_service = providers.Factory(HighLowService, settings=config.config)
    slots_service = providers.Factory(SlotsService, settings=config.config)
    roulette_service = providers.Factory(RouletteService, settings=config.config)


class Container(containers.DeclarativeContainer):
    """Application container."""

    wiring_config = containers.WiringConfiguration(modules=["casinoapi.deps"])

    config = providers.Container(ConfigModule)
    services = providers.Container(ServiceModule, config=config)
