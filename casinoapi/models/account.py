"""
Token account table.

One row per authenticated user. The row holds the authoritative balance plus
play statistics; every change to `balance` is paired with a row in
`ledger_transactions` whose `balance_after` equals the new balance.

`version` is an optimistic concurrency counter: an UPDATE issued from a stale
read fails with StaleDataError instead of overwriting a newer balance.
"""

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from casinoapi.models.base import BaseModel


class Account(BaseModel):
    __tablename__ = "accounts"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    balance: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_wagered: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    total_won: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    games_played: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
