"""
Ledger transaction table - append-only record of every balance change.

Rules:
1. Immutable: rows are never updated; only `reset` deletes a user's rows.
2. Complete: every change to accounts.balance has exactly one row here.
3. Idempotent: `ref_id` is unique, so retrying a keyed operation is a no-op.
4. Chained: `balance_after` equals the previous row's balance_after +/- amount.
"""

import enum
from typing import Optional

from sqlalchemy import BigInteger, Enum, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import UniqueConstraint

from casinoapi.models.base import BaseModel, BigIntegerPK


class TransactionType(str, enum.Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class LedgerTransaction(BaseModel):
    __tablename__ = "ledger_transactions"
    __table_args__ = (
        UniqueConstraint("ref_id"),
        Index("ix_ledger_transactions_user_id_id", "user_id", "id"),
    )

    # Monotonic id doubles as the newest-first ordering key.
    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    game_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    ref_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    @property
    def signed_amount(self) -> int:
        return self.amount if self.type == TransactionType.CREDIT else -self.amount
