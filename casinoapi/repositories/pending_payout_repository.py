from typing import List, Optional

from sqlalchemy import asc
from sqlalchemy.orm import Session

from casinoapi.models.pending_payout import PayoutStatus, PendingPayout
from casinoapi.repositories.base import BaseRepository


class PendingPayoutRepository(BaseRepository[PendingPayout]):
    def __init__(self, db: Session):
        super().__init__(PendingPayout, db)

    def get_by_round(self, round_id: str) -> Optional[PendingPayout]:
        return self.get_by_field("round_id", round_id)

    def pending_for_user(self, user_id: str) -> List[PendingPayout]:
        return (
            self.db.query(self.model_class)
            .filter(
                self.model_class.user_id == user_id,
                self.model_class.status == PayoutStatus.PENDING,
            )
            .order_by(asc(self.model_class.id))
            .all()
        )

    def delete_for_user(self, user_id: str) -> int:
        deleted = (
            self.db.query(self.model_class)
            .filter(self.model_class.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return deleted

    def users_with_pending(self) -> List[str]:
        rows = (
            self.db.query(self.model_class.user_id)
            .filter(self.model_class.status == PayoutStatus.PENDING)
            .distinct()
            .all()
        )
        return [row[0] for row in rows]
