from decimal import Decimal
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="casinoapi/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Casino 401k API"
    PROJECT_NAME: str = "Casino 401k"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./casino.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    # Security
    SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440

    # Ledger
    INITIAL_BALANCE: int = 401000
    MAX_RECENT_TRANSACTIONS: int = 50
    EXPORT_TRANSACTION_LIMIT: int = 200
    PERSISTENCE_RETRY_COUNT: int = 3
    PERSISTENCE_RETRY_BACKOFF_SECONDS: float = 0.05

    # Games
    MIN_BET: int = 100
    ROUND_HISTORY_LIMIT: int = 12
    HIGH_LOW_PAYOUT_MULTIPLIER: Decimal = Decimal("1.9")
    SLOTS_BET_OPTIONS: List[int] = [100, 250, 500, 1000]
    SLOTS_JACKPOT_MULTIPLIER: int = 20
    ROUND_TIMEOUT_MINUTES: int = 30  # unfinished interactive rounds are force-settled after this


settings = Settings()
