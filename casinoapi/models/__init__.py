from .base import Base, BaseModel
from .account import Account
from .transaction import LedgerTransaction, TransactionType
from .game_round import GameRound, GameType, IDLE_STAGE, TERMINAL_STAGES, VOID_STAGE
from .game_session import GameSession
from .pending_payout import PendingPayout, PayoutStatus

__all__ = [
    "Base",
    "BaseModel",
    "Account",
    "LedgerTransaction",
    "TransactionType",
    "GameRound",
    "GameType",
    "IDLE_STAGE",
    "TERMINAL_STAGES",
    "VOID_STAGE",
    "GameSession",
    "PendingPayout",
    "PayoutStatus",
]
