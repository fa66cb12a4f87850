import logging

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from mangum import Mangum
from starlette.middleware.cors import CORSMiddleware

load_dotenv("casinoapi/.env")

from casinoapi import containers  # noqa: E402
from casinoapi.config import settings  # noqa: E402
from casinoapi.core.exception_handlers import (  # noqa: E402
    handle_base_api_exception,
    handle_http_exception,
    handle_unexpected_error,
    handle_validation_error,
)
from casinoapi.core.exceptions import BaseAPIException  # noqa: E402
from casinoapi.core.logging_middleware import LoggingMiddleware  # noqa: E402
from casinoapi.database.connection import engine  # noqa: E402
from casinoapi.logging_config import setup_logging  # noqa: E402
from casinoapi.models.base import Base  # noqa: E402
from casinoapi.routers import (  # noqa: E402
    blackjack_router,
    games_router,
    health_router,
    high_low_router,
    roulette_router,
    slots_router,
    wallet_router,
)

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
    )
    app.container = containers.Container()  # type: ignore

    if settings.is_sqlite:
        # Local development: no migrations, create tables on start.
        Base.metadata.create_all(bind=engine)

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BaseAPIException, handle_base_api_exception)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(health_router.router)
    for module in (
        wallet_router,
        blackjack_router,
        high_low_router,
        slots_router,
        roulette_router,
        games_router,
    ):
        app.include_router(module.router, prefix=settings.API_V1_STR)

    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")
    return app


app = create_app()

handler = Mangum(app)
