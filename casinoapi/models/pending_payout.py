import enum
from typing import Optional

from sqlalchemy import BigInteger, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import UniqueConstraint

from casinoapi.models.base import BaseModel, BigIntegerPK


class PayoutStatus(str, enum.Enum):
    PENDING = "pending"
    APPLIED = "applied"


class PendingPayout(BaseModel):
    """
    A credit owed to a player for a settled round.

    Written before the credit is attempted and keyed by round id, so a payout
    whose credit failed is retried until it lands in the ledger.
    """

    __tablename__ = "pending_payouts"
    __table_args__ = (UniqueConstraint("round_id"),)

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    round_id: Mapped[str] = mapped_column(String(36), nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[PayoutStatus] = mapped_column(
        Enum(PayoutStatus, values_callable=lambda e: [m.value for m in e]),
        default=PayoutStatus.PENDING,
        nullable=False,
    )
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    transaction_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
