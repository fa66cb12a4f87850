from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class TransactionEntry(BaseModel):
    """One ledger row as shown to clients."""

    id: int = Field(..., description="Transaction id")
    type: str = Field(..., description="debit or credit")
    amount: int = Field(..., description="Positive token amount")
    balance_after: int = Field(..., description="Balance right after this transaction")
    description: str = Field(..., description="Free-text label")
    game_id: Optional[str] = Field(None, description="Originating round id")
    timestamp: datetime = Field(..., description="Creation instant (UTC)")

    class Config:
        from_attributes = True


class BalanceResponse(BaseModel):
    balance: int = Field(..., description="Current token balance")


class AccountResponse(BaseModel):
    user_id: str
    balance: int
    total_wagered: int
    total_won: int
    games_played: int
    transactions: List[TransactionEntry] = Field(
        ..., description="Most recent transactions, newest first"
    )


class TransactionListResponse(BaseModel):
    balance: int
    entries: List[TransactionEntry]
    total_count: int


class IntegrityCheckResponse(BaseModel):
    """Result of replaying a user's full transaction log."""

    status: str = Field(..., description="OK or MISMATCH")
    user_id: str
    calculated_balance: int = Field(..., description="Sum of credits minus debits")
    recorded_balance: int = Field(..., description="balance_after of the latest entry")
    account_balance: int = Field(..., description="Balance stored on the account")
    entry_count: int
    error: Optional[str] = None
    entry_id: Optional[int] = Field(None, description="First entry that broke the chain")
    verified_at: str


class ReconcileResponse(BaseModel):
    applied: int = Field(..., description="Pending payouts credited by this run")
    still_pending: int
    balance: int
