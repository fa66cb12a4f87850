"""
Pending payouts - owed credits that must eventually reach the ledger.

A payout row is written in the same unit that settles a round, before any
credit is attempted. `apply` then credits it under the ref_id
"<round_id>:payout", so a retried or reconciled payout never pays twice.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from casinoapi.config import Settings
from casinoapi.config import settings as default_settings
from casinoapi.core.exceptions import PersistenceError
from casinoapi.logging_config import RECONCILIATION_LOGGER
from casinoapi.models.pending_payout import PayoutStatus, PendingPayout
from casinoapi.repositories.pending_payout_repository import PendingPayoutRepository
from casinoapi.schemas.ledger import ReconcileResponse
from casinoapi.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)
reconciliation_logger = logging.getLogger(RECONCILIATION_LOGGER)


def payout_ref(round_id: str) -> str:
    return f"{round_id}:payout"


class PayoutService:
    def __init__(
        self,
        db: Session,
        settings: Settings = default_settings,
        ledger: Optional[LedgerService] = None,
    ):
        self.db = db
        self.settings = settings
        self.ledger = ledger or LedgerService(db, settings)
        self.repo = PendingPayoutRepository(db)

    def enqueue(
        self, round_id: str, user_id: str, amount: int, description: str
    ) -> PendingPayout:
        """Staged; call inside the settling unit of work."""
        existing = self.repo.get_by_round(round_id)
        if existing is not None:
            return existing
        return self.repo.create(
            round_id=round_id,
            user_id=user_id,
            amount=amount,
            description=description,
            status=PayoutStatus.PENDING,
            attempts=0,
        )

    def apply(self, round_id: str) -> PendingPayout:
        """Credit a pending payout. Raises PersistenceError if it could not land."""

        def _apply() -> PendingPayout:
            payout = self.repo.get_by_round(round_id)
            if payout is None or payout.status == PayoutStatus.APPLIED:
                return payout
            transaction = self.ledger.apply_credit(
                payout.user_id,
                payout.amount,
                payout.description,
                game_id=round_id,
                ref_id=payout_ref(round_id),
            )
            return self.repo.update(
                payout,
                status=PayoutStatus.APPLIED,
                attempts=payout.attempts + 1,
                last_error=None,
                transaction_id=transaction.id,
            )

        try:
            return self.ledger.run_atomic(_apply, f"payout for round {round_id}")
        except PersistenceError as e:
            self._record_failure(round_id, e)
            raise

    def _record_failure(self, round_id: str, error: PersistenceError) -> None:
        error = error.__cause__ or error

        def _bump() -> Optional[PendingPayout]:
            payout = self.repo.get_by_round(round_id)
            if payout is None:
                return None
            return self.repo.update(
                payout, attempts=payout.attempts + 1, last_error=str(error)
            )

        try:
            payout = self.ledger.run_atomic(_bump, f"record payout failure {round_id}")
        except PersistenceError:
            payout = None

        amount = payout.amount if payout is not None else "unknown"
        reconciliation_logger.error(
            f"Payout defect: payout of {amount} tokens for round "
            f"{round_id} is still pending: {error}"
        )

    def reconcile(self, user_id: str) -> ReconcileResponse:
        """Re-apply every pending payout for the user, oldest first."""
        applied = 0
        still_pending = 0
        round_ids = [p.round_id for p in self.repo.pending_for_user(user_id)]
        for round_id in round_ids:
            try:
                self.apply(round_id)
                applied += 1
            except PersistenceError:
                still_pending += 1

        if applied:
            reconciliation_logger.info(f"Reconciled {applied} pending payouts for user {user_id}")

        return ReconcileResponse(
            applied=applied,
            still_pending=still_pending,
            balance=self.ledger.get_balance(user_id),
        )
