from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError

from casinoapi.core.exceptions import (
    InsufficientFundsError,
    InvalidAmountError,
    PersistenceError,
)
from casinoapi.models.account import Account
from casinoapi.models.transaction import TransactionType
from casinoapi.services.ledger_service import (
    RESET_DESCRIPTION,
    SEED_DESCRIPTION,
    LedgerService,
)

USER = "user-1"


@pytest.fixture
def ledger(db, test_settings):
    return LedgerService(db, test_settings)


def db_down():
    return OperationalError("UPDATE accounts", {}, Exception("database is locked"))


class TestAccountLifecycle:
    def test_first_access_opens_account_with_seed_deposit(self, ledger):
        account = ledger.get_account(USER)

        assert account.balance == 401000
        assert len(account.transactions) == 1
        seed = account.transactions[0]
        assert seed.type == "credit"
        assert seed.amount == 401000
        assert seed.balance_after == 401000
        assert seed.description == SEED_DESCRIPTION

    def test_accounts_are_isolated_per_user(self, ledger):
        ledger.debit(USER, 1000, "bet")

        assert ledger.get_balance(USER) == 400000
        assert ledger.get_balance("user-2") == 401000

    def test_reset_is_idempotent(self, ledger):
        ledger.debit(USER, 5000, "Blackjack bet")
        ledger.credit(USER, 700, "Blackjack win")

        ledger.reset(USER)
        first = ledger.get_account(USER)
        ledger.reset(USER)
        second = ledger.get_account(USER)

        for account in (first, second):
            assert account.balance == 401000
            assert account.total_wagered == 0
            assert account.total_won == 0
            assert account.games_played == 0
            assert len(account.transactions) == 1
            assert account.transactions[0].description == RESET_DESCRIPTION
            assert account.transactions[0].balance_after == 401000


class TestDebitCredit:
    def test_balance_is_conserved(self, ledger):
        debits = [100, 250, 1000, 75]
        credits = [200, 1900, 50]

        for amount in debits:
            ledger.debit(USER, amount, "bet")
        for amount in credits:
            ledger.credit(USER, amount, "win")

        expected = 401000 + sum(credits) - sum(debits)
        assert ledger.get_balance(USER) == expected
        assert ledger.history(USER, 1)[0].balance_after == expected
        assert ledger.verify_integrity(USER).status == "OK"

    def test_overdraft_is_rejected_without_side_effects(self, ledger):
        ledger.debit(USER, 400000, "big bet")
        before = ledger.list_transactions(USER)

        with pytest.raises(InsufficientFundsError):
            ledger.debit(USER, 1001, "too big")

        after = ledger.list_transactions(USER)
        assert after.balance == before.balance == 1000
        assert after.total_count == before.total_count

    def test_debit_of_entire_balance_is_allowed(self, ledger):
        ledger.debit(USER, 401000, "all in")

        assert ledger.get_balance(USER) == 0

    @pytest.mark.parametrize(
        "amount", [0, -5, 1.5, "100", None, True, float("inf"), float("nan")]
    )
    def test_invalid_amounts_are_rejected(self, ledger, amount):
        ledger.ensure_account(USER)

        with pytest.raises(InvalidAmountError):
            ledger.debit(USER, amount, "bet")
        with pytest.raises(InvalidAmountError):
            ledger.credit(USER, amount, "win")

        assert ledger.get_balance(USER) == 401000
        assert len(ledger.history(USER)) == 1

    def test_integral_float_is_accepted(self, ledger):
        transaction = ledger.debit(USER, 100.0, "bet")

        assert transaction.amount == 100

    def test_history_is_newest_first(self, ledger):
        debit = ledger.debit(USER, 100, "bet")
        credit = ledger.credit(USER, 200, "win")

        history = ledger.history(USER, 2)

        assert [t.id for t in history] == [credit.id, debit.id]
        assert history[0].type == TransactionType.CREDIT
        assert history[0].balance_after - history[1].balance_after == 200

    def test_history_defaults_to_recent_window(self, ledger):
        for i in range(60):
            ledger.credit(USER, 1, f"credit {i}")

        history = ledger.history(USER)

        assert len(history) == 50
        assert history[0].description == "credit 59"
        # the full log is still kept
        assert ledger.list_transactions(USER).total_count == 61

    def test_ref_id_makes_operation_idempotent(self, ledger):
        first = ledger.debit(USER, 500, "bet", game_id="round-1", ref_id="round-1:stake")
        second = ledger.debit(USER, 500, "bet", game_id="round-1", ref_id="round-1:stake")

        assert first.id == second.id
        assert ledger.get_balance(USER) == 400500

    def test_statistics_track_wagers_and_winnings(self, ledger):
        ledger.debit(USER, 300, "bet")
        ledger.credit(USER, 600, "win")

        account = ledger.get_account(USER)

        assert account.total_wagered == 300
        assert account.total_won == 600

    def test_game_id_is_recorded(self, ledger):
        transaction = ledger.debit(USER, 100, "Roulette bet", game_id="abc")

        assert ledger.history(USER, 1)[0].game_id == "abc"
        assert transaction.game_id == "abc"


class TestRunAtomic:
    def test_retries_transient_database_errors(self, ledger):
        operation = Mock(side_effect=[db_down(), db_down(), "done"])

        assert ledger.run_atomic(operation, "flaky") == "done"
        assert operation.call_count == 3

    def test_gives_up_with_persistence_error(self, ledger):
        operation = Mock(side_effect=db_down())

        with pytest.raises(PersistenceError):
            ledger.run_atomic(operation, "down")
        assert operation.call_count == 3

    def test_domain_errors_are_not_retried(self, ledger):
        operation = Mock(side_effect=InsufficientFundsError())

        with pytest.raises(InsufficientFundsError):
            ledger.run_atomic(operation, "rejected")
        assert operation.call_count == 1


class TestIntegrity:
    def test_clean_ledger_passes(self, ledger):
        ledger.debit(USER, 100, "bet")

        result = ledger.verify_integrity(USER)

        assert result.status == "OK"
        assert result.calculated_balance == result.account_balance == 400900
        assert result.entry_count == 2

    def test_detects_tampered_account_balance(self, ledger, db):
        ledger.debit(USER, 100, "bet")
        db.query(Account).filter(Account.user_id == USER).update(
            {"balance": 999999}, synchronize_session=False
        )
        db.commit()
        db.expire_all()

        result = ledger.verify_integrity(USER)

        assert result.status == "MISMATCH"
        assert result.account_balance == 999999
        assert result.recorded_balance == 400900
