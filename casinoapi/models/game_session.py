from typing import Any, Dict, Optional

from sqlalchemy import JSON, BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from casinoapi.models.base import BaseModel, BigIntegerPK


class GameSession(BaseModel):
    """Audit record written once per settled round. Never updated."""

    __tablename__ = "game_sessions"

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    round_id: Mapped[str] = mapped_column(String(36), nullable=False)
    game_type: Mapped[str] = mapped_column(String(32), nullable=False)
    bet_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    payout_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    result: Mapped[str] = mapped_column(String(32), nullable=False)
    details: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    rng_seed: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
