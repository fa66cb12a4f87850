import enum
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, BigInteger, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from casinoapi.models.base import BaseModel


class GameType(str, enum.Enum):
    BLACKJACK = "blackjack"
    HIGH_LOW = "high-low"
    SLOTS = "slots"
    ROULETTE = "roulette"


class GameRound(BaseModel):
    """
    One play of a game, from bet to settlement.

    The latest row for a (user, game) pair is that user's current round.
    `state` holds the game-specific table (deck, hands, grid, selected colour)
    and is never sent to clients verbatim.
    """

    __tablename__ = "game_rounds"
    __table_args__ = (Index("ix_game_rounds_user_game", "user_id", "game_type"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    game_type: Mapped[str] = mapped_column(String(32), nullable=False)
    stage: Mapped[str] = mapped_column(String(32), nullable=False)
    stake: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    outcome: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    payout: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    rng_seed: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    state: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    started_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    settled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


IDLE_STAGE = "idle"
VOID_STAGE = "void"

# Stages in which the stake has been fully settled (or voided by reset).
TERMINAL_STAGES = ("round-over", "settled", "complete", VOID_STAGE)
