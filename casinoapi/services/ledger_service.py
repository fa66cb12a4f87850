"""
Ledger service - the only code path that moves tokens.

Every balance change happens inside `run_atomic`: the account row update and
the appended transaction commit together or not at all. Domain rejections
(InvalidAmountError, InsufficientFundsError, ...) roll back and propagate at
once; database failures are retried a bounded number of times with doubling
backoff before surfacing as PersistenceError.

Round services compose several ledger steps (stake debit + round creation)
into one unit by calling the `apply_*` methods inside their own `run_atomic`.
"""

import logging
import math
import time
from decimal import Decimal
from typing import Callable, List, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from casinoapi.config import Settings
from casinoapi.config import settings as default_settings
from casinoapi.core.exceptions import (
    BaseAPIException,
    InsufficientFundsError,
    InvalidAmountError,
    PersistenceError,
)
from casinoapi.logging_config import RECONCILIATION_LOGGER
from casinoapi.models.account import Account
from casinoapi.models.game_round import TERMINAL_STAGES, VOID_STAGE
from casinoapi.models.transaction import LedgerTransaction, TransactionType
from casinoapi.repositories.account_repository import AccountRepository
from casinoapi.repositories.game_round_repository import GameRoundRepository
from casinoapi.repositories.pending_payout_repository import PendingPayoutRepository
from casinoapi.repositories.transaction_repository import TransactionRepository
from casinoapi.schemas.ledger import (
    AccountResponse,
    IntegrityCheckResponse,
    TransactionEntry,
    TransactionListResponse,
)
from casinoapi.utils.timezone_utils import as_utc, utc_now

logger = logging.getLogger(__name__)
reconciliation_logger = logging.getLogger(RECONCILIATION_LOGGER)

T = TypeVar("T")

SEED_DESCRIPTION = "Initial satirical 401k deposit"
RESET_DESCRIPTION = "Account reset - Initial satirical 401k deposit"


def validate_amount(amount) -> int:
    """Return `amount` as int, or raise InvalidAmountError.

    Accepts ints and integral finite floats/Decimals greater than zero.
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
        raise InvalidAmountError(details={"amount": repr(amount)})
    if isinstance(amount, float) and not math.isfinite(amount):
        raise InvalidAmountError(details={"amount": repr(amount)})
    if isinstance(amount, Decimal) and not amount.is_finite():
        raise InvalidAmountError(details={"amount": repr(amount)})
    if amount <= 0 or amount != int(amount):
        raise InvalidAmountError(details={"amount": repr(amount)})
    return int(amount)


def to_entry(transaction: LedgerTransaction) -> TransactionEntry:
    return TransactionEntry(
        id=transaction.id,
        type=transaction.type.value,
        amount=transaction.amount,
        balance_after=transaction.balance_after,
        description=transaction.description,
        game_id=transaction.game_id,
        timestamp=as_utc(transaction.created_at),
    )


class LedgerService:
    """Token ledger for one database session."""

    def __init__(self, db: Session, settings: Settings = default_settings):
        self.db = db
        self.settings = settings
        self.accounts = AccountRepository(db)
        self.transactions = TransactionRepository(db)
        self.pending_payouts = PendingPayoutRepository(db)
        self.rounds = GameRoundRepository(db)

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    def run_atomic(self, operation: Callable[[], T], label: str = "ledger operation") -> T:
        """Run `operation` and commit, retrying database failures with backoff."""
        attempts = max(1, self.settings.PERSISTENCE_RETRY_COUNT)
        backoff = self.settings.PERSISTENCE_RETRY_BACKOFF_SECONDS
        last_error: Optional[Exception] = None

        for attempt in range(attempts):
            try:
                result = operation()
                self.db.commit()
                return result
            except BaseAPIException:
                self.db.rollback()
                raise
            except SQLAlchemyError as e:
                self.db.rollback()
                last_error = e
                if attempt == attempts - 1:
                    break
                delay = backoff * (2**attempt)
                logger.warning(
                    f"{label} failed on attempt {attempt + 1}/{attempts}, "
                    f"retrying in {delay:.3f}s: {e}"
                )
                if delay > 0:
                    time.sleep(delay)
            except Exception:
                self.db.rollback()
                raise

        logger.error(f"{label} failed after {attempts} attempts: {last_error}")
        raise PersistenceError(details={"operation": label}) from last_error

    # ------------------------------------------------------------------
    # Staged operations (caller commits)
    # ------------------------------------------------------------------

    def load_account(self, user_id: str) -> Account:
        """Fetch the account, opening it with the initial deposit on first access."""
        account = self.accounts.get(user_id)
        if account is not None:
            return account

        initial = self.settings.INITIAL_BALANCE
        account = self.accounts.create_account(user_id, initial)
        self.transactions.append(
            user_id=user_id,
            type=TransactionType.CREDIT,
            amount=initial,
            balance_after=initial,
            description=SEED_DESCRIPTION,
        )
        logger.info(f"Opened account for user {user_id} with {initial} tokens")
        return account

    def apply_debit(
        self,
        user_id: str,
        amount,
        description: str,
        game_id: Optional[str] = None,
        ref_id: Optional[str] = None,
    ) -> LedgerTransaction:
        amount = validate_amount(amount)

        if ref_id:
            existing = self.transactions.get_by_ref_id(ref_id)
            if existing is not None:
                return existing

        account = self.load_account(user_id)
        if amount > account.balance:
            logger.warning(
                f"Rejected debit of {amount} tokens for user {user_id}: "
                f"balance {account.balance}"
            )
            raise InsufficientFundsError(
                details={"balance": account.balance, "amount": amount}
            )

        new_balance = account.balance - amount
        self.accounts.update(
            account,
            balance=new_balance,
            total_wagered=account.total_wagered + amount,
        )
        transaction = self.transactions.append(
            user_id=user_id,
            type=TransactionType.DEBIT,
            amount=amount,
            balance_after=new_balance,
            description=description,
            game_id=game_id,
            ref_id=ref_id,
        )
        logger.info(f"Debited {amount} tokens for user {user_id}: {description}")
        return transaction

    def apply_credit(
        self,
        user_id: str,
        amount,
        description: str,
        game_id: Optional[str] = None,
        ref_id: Optional[str] = None,
        count_as_winnings: bool = True,
    ) -> LedgerTransaction:
        amount = validate_amount(amount)

        if ref_id:
            existing = self.transactions.get_by_ref_id(ref_id)
            if existing is not None:
                return existing

        account = self.load_account(user_id)
        new_balance = account.balance + amount
        changes = {"balance": new_balance}
        if count_as_winnings:
            changes["total_won"] = account.total_won + amount
        self.accounts.update(account, **changes)

        transaction = self.transactions.append(
            user_id=user_id,
            type=TransactionType.CREDIT,
            amount=amount,
            balance_after=new_balance,
            description=description,
            game_id=game_id,
            ref_id=ref_id,
        )
        logger.info(f"Credited {amount} tokens for user {user_id}: {description}")
        return transaction

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def debit(
        self,
        user_id: str,
        amount,
        description: str,
        game_id: Optional[str] = None,
        ref_id: Optional[str] = None,
    ) -> LedgerTransaction:
        return self.run_atomic(
            lambda: self.apply_debit(user_id, amount, description, game_id, ref_id),
            "debit",
        )

    def credit(
        self,
        user_id: str,
        amount,
        description: str,
        game_id: Optional[str] = None,
        ref_id: Optional[str] = None,
    ) -> LedgerTransaction:
        return self.run_atomic(
            lambda: self.apply_credit(user_id, amount, description, game_id, ref_id),
            "credit",
        )

    def reset(self, user_id: str) -> Account:
        """Restore the initial balance with a single deposit entry.

        Open rounds are voided and pending payouts discarded; their stakes
        belong to the history being cleared.
        """

        def _reset() -> Account:
            account = self.load_account(user_id)
            self.transactions.delete_for_user(user_id)
            self.pending_payouts.delete_for_user(user_id)
            for round_ in self.rounds.open_rounds(user_id, TERMINAL_STAGES):
                self.rounds.update(round_, stage=VOID_STAGE, settled_at=utc_now())

            initial = self.settings.INITIAL_BALANCE
            self.accounts.update(
                account,
                balance=initial,
                total_wagered=0,
                total_won=0,
                games_played=0,
            )
            self.transactions.append(
                user_id=user_id,
                type=TransactionType.CREDIT,
                amount=initial,
                balance_after=initial,
                description=RESET_DESCRIPTION,
            )
            return account

        account = self.run_atomic(_reset, "reset")
        logger.info(f"Reset account for user {user_id} to {account.balance} tokens")
        return account

    def ensure_account(self, user_id: str) -> Account:
        return self.run_atomic(lambda: self.load_account(user_id), "open account")

    def history(self, user_id: str, limit: Optional[int] = None) -> List[LedgerTransaction]:
        """Newest-first transactions, at most `limit` (default: recent window)."""
        if limit is None:
            limit = self.settings.MAX_RECENT_TRANSACTIONS
        self.ensure_account(user_id)
        if limit <= 0:
            return []
        return self.transactions.latest(user_id, limit)

    def get_balance(self, user_id: str) -> int:
        return self.ensure_account(user_id).balance

    def get_account(self, user_id: str) -> AccountResponse:
        account = self.ensure_account(user_id)
        recent = self.transactions.latest(user_id, self.settings.MAX_RECENT_TRANSACTIONS)
        return AccountResponse(
            user_id=account.user_id,
            balance=account.balance,
            total_wagered=account.total_wagered,
            total_won=account.total_won,
            games_played=account.games_played,
            transactions=[to_entry(t) for t in recent],
        )

    def list_transactions(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> TransactionListResponse:
        account = self.ensure_account(user_id)
        entries = self.transactions.latest(user_id, limit, offset)
        return TransactionListResponse(
            balance=account.balance,
            entries=[to_entry(t) for t in entries],
            total_count=self.transactions.count_for_user(user_id),
        )

    def record_game_played(self, user_id: str) -> None:
        """Staged; part of the caller's unit of work."""
        account = self.load_account(user_id)
        self.accounts.increment_games_played(account)

    def verify_integrity(self, user_id: str) -> IntegrityCheckResponse:
        """
        Replay the whole log for a user.

        Checks, in order:
        1. each balance_after chains from the previous one (+credit / -debit)
        2. the running sum equals the latest balance_after
        3. the account row agrees with the latest balance_after
        """
        account = self.ensure_account(user_id)
        entries = self.transactions.all_for_user(user_id)
        verified_at = utc_now().isoformat()

        calculated = 0
        recorded = 0
        for index, entry in enumerate(entries):
            calculated += entry.signed_amount
            if index == 0:
                # The first entry is the opening deposit.
                expected = entry.signed_amount
            else:
                expected = recorded + entry.signed_amount
            if entry.balance_after != expected:
                reconciliation_logger.error(
                    f"Ledger chain broken for user {user_id} at entry {entry.id}: "
                    f"expected {expected}, recorded {entry.balance_after}"
                )
                return IntegrityCheckResponse(
                    status="MISMATCH",
                    user_id=user_id,
                    calculated_balance=calculated,
                    recorded_balance=entry.balance_after,
                    account_balance=account.balance,
                    entry_count=len(entries),
                    error="balance_after does not follow from the previous entry",
                    entry_id=entry.id,
                    verified_at=verified_at,
                )
            recorded = entry.balance_after

        status = "OK"
        error = None
        if calculated != recorded:
            status, error = "MISMATCH", "sum of credits minus debits differs from latest balance"
        elif account.balance != recorded:
            status, error = "MISMATCH", "account balance differs from latest balance_after"

        if status != "OK":
            reconciliation_logger.error(f"Ledger integrity mismatch for user {user_id}: {error}")

        return IntegrityCheckResponse(
            status=status,
            user_id=user_id,
            calculated_balance=calculated,
            recorded_balance=recorded,
            account_balance=account.balance,
            entry_count=len(entries),
            error=error,
            verified_at=verified_at,
        )
