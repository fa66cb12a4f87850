"""
Ledger transaction repository.

Only appends, reads and the per-user purge used by account reset live here.
Balance arithmetic belongs to LedgerService, which holds the account row.
"""

from typing import List, Optional

from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from casinoapi.models.transaction import LedgerTransaction, TransactionType
from casinoapi.repositories.base import BaseRepository
from casinoapi.utils.timezone_utils import utc_now


class TransactionRepository(BaseRepository[LedgerTransaction]):
    def __init__(self, db: Session):
        super().__init__(LedgerTransaction, db)

    def get_by_ref_id(self, ref_id: str) -> Optional[LedgerTransaction]:
        return self.get_by_field("ref_id", ref_id)

    def append(
        self,
        user_id: str,
        type: TransactionType,
        amount: int,
        balance_after: int,
        description: str,
        game_id: Optional[str] = None,
        ref_id: Optional[str] = None,
    ) -> LedgerTransaction:
        return self.create(
            user_id=user_id,
            type=type,
            amount=amount,
            balance_after=balance_after,
            description=description,
            game_id=game_id,
            ref_id=ref_id,
            created_at=utc_now(),
        )

    def latest(self, user_id: str, limit: int, offset: int = 0) -> List[LedgerTransaction]:
        """Newest first."""
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.user_id == user_id)
            .order_by(desc(self.model_class.id))
            .offset(offset)
            .limit(limit)
            .all()
        )

    def all_for_user(self, user_id: str) -> List[LedgerTransaction]:
        """Oldest first, for replaying the chain."""
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.user_id == user_id)
            .order_by(asc(self.model_class.id))
            .all()
        )

    def count_for_user(self, user_id: str) -> int:
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.user_id == user_id)
            .count()
        )

    def delete_for_user(self, user_id: str) -> int:
        deleted = (
            self.db.query(self.model_class)
            .filter(self.model_class.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return deleted
