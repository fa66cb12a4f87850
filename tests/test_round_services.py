from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from casinoapi.core.exceptions import (
    InsufficientFundsError,
    InvalidAmountError,
    NotFoundError,
    PersistenceError,
    RoundStateError,
    ValidationError,
)
from casinoapi.games.roulette import RouletteSpin
from casinoapi.games.slots import SYMBOLS_BY_ID
from casinoapi.models.pending_payout import PayoutStatus
from casinoapi.services.blackjack_service import BlackjackService
from casinoapi.services.high_low_service import HighLowService
from casinoapi.services.ledger_service import LedgerService
from casinoapi.services.roulette_service import RouletteService
from casinoapi.services.slots_service import SlotsService
from casinoapi.utils.timezone_utils import utc_now

USER = "user-1"


@pytest.fixture
def blackjack(db, test_settings):
    return BlackjackService(db, test_settings)


@pytest.fixture
def high_low(db, test_settings):
    return HighLowService(db, test_settings)


@pytest.fixture
def slots(db, test_settings):
    return SlotsService(db, test_settings)


@pytest.fixture
def roulette(db, test_settings):
    return RouletteService(db, test_settings)


def rigged_deal(player, dealer, deck):
    return patch(
        "casinoapi.services.blackjack_service.deal",
        side_effect=lambda seed: (list(player), list(dealer), list(deck)),
    )


def rigged_high_low(*cards):
    """Cards are drawn from the end: the last argument is the first card."""
    return patch(
        "casinoapi.services.high_low_service.shuffled_deck",
        side_effect=lambda values, seed: list(cards),
    )


def age_round(service, db, minutes):
    round_ = service.rounds.current(USER, service.game_type)
    round_.started_at = utc_now() - timedelta(minutes=minutes)
    db.commit()


class TestBlackjackRounds:
    def test_natural_settles_at_deal(self, blackjack, bj_card):
        with rigged_deal([bj_card("A"), bj_card("K")], [bj_card("9"), bj_card("7")], []):
            view = blackjack.place_bet(USER, 1000)

        assert view.stage == "round-over"
        assert view.outcome == "blackjack"
        assert view.payout == 2000
        assert view.rng_seed is not None
        assert blackjack.ledger.get_balance(USER) == 402000
        assert blackjack.ledger.get_account(USER).games_played == 1

    def test_double_natural_is_push(self, blackjack, bj_card):
        with rigged_deal([bj_card("A"), bj_card("Q")], [bj_card("A"), bj_card("J")], []):
            view = blackjack.place_bet(USER, 1000)

        assert view.outcome == "push"
        assert blackjack.ledger.get_balance(USER) == 401000

    def test_dealer_hole_card_is_hidden_during_player_turn(self, blackjack, bj_card):
        with rigged_deal([bj_card("10"), bj_card("6")], [bj_card("9"), bj_card("K")], []):
            view = blackjack.place_bet(USER, 500)

        assert view.stage == "player-turn"
        assert len(view.table["dealer_hand"]) == 1
        assert view.table["dealer_total"] is None
        assert view.table["hide_dealer_hole"] is True
        assert view.rng_seed is None
        assert "deck" not in view.table
        assert blackjack.ledger.get_balance(USER) == 400500

    def test_bust_on_hit_loses_without_dealer_draw(self, blackjack, bj_card):
        deck = [bj_card("5"), bj_card("K")]
        with rigged_deal([bj_card("10"), bj_card("6")], [bj_card("10"), bj_card("7")], deck):
            blackjack.place_bet(USER, 1000)
        view = blackjack.hit(USER)

        assert view.stage == "round-over"
        assert view.outcome == "dealer"
        assert view.payout == 0
        assert view.table["player_total"] == 26
        assert len(view.table["dealer_hand"]) == 2
        assert blackjack.ledger.get_balance(USER) == 400000

    def test_hit_without_bust_keeps_player_turn(self, blackjack, bj_card):
        deck = [bj_card("K"), bj_card("2")]
        with rigged_deal([bj_card("5"), bj_card("6")], [bj_card("10"), bj_card("7")], deck):
            blackjack.place_bet(USER, 1000)
        view = blackjack.hit(USER)

        assert view.stage == "player-turn"
        assert view.table["player_total"] == 13

    def test_hit_to_21_stands_automatically(self, blackjack, bj_card):
        deck = [bj_card("K")]
        with rigged_deal([bj_card("5"), bj_card("6")], [bj_card("10"), bj_card("8")], deck):
            blackjack.place_bet(USER, 1000)
        view = blackjack.hit(USER)

        assert view.stage == "round-over"
        assert view.outcome == "win"
        assert view.table["player_total"] == 21

    def test_stand_dealer_busts(self, blackjack, bj_card):
        deck = [bj_card("9")]
        with rigged_deal([bj_card("10"), bj_card("8")], [bj_card("10"), bj_card("6")], deck):
            blackjack.place_bet(USER, 1000)
        view = blackjack.stand(USER)

        assert view.outcome == "win"
        assert view.payout == 2000
        assert view.table["dealer_total"] == 25
        assert blackjack.ledger.get_balance(USER) == 401000 + 1000

    def test_bet_rejected_while_round_active(self, blackjack, bj_card):
        with rigged_deal([bj_card("10"), bj_card("6")], [bj_card("9"), bj_card("K")], []):
            blackjack.place_bet(USER, 500)

        with pytest.raises(RoundStateError):
            blackjack.place_bet(USER, 500)
        assert blackjack.ledger.get_balance(USER) == 400500

    def test_actions_require_player_turn(self, blackjack):
        with pytest.raises(RoundStateError):
            blackjack.hit(USER)
        with pytest.raises(RoundStateError):
            blackjack.stand(USER)

    def test_minimum_bet(self, blackjack):
        with pytest.raises(InvalidAmountError):
            blackjack.place_bet(USER, 99)

    def test_insufficient_funds_opens_no_round(self, blackjack):
        with pytest.raises(InsufficientFundsError):
            blackjack.place_bet(USER, 500000)

        assert blackjack.get_round(USER).stage == "idle"
        assert blackjack.ledger.get_balance(USER) == 401000

    def test_timed_out_round_auto_stands(self, blackjack, db, bj_card):
        with rigged_deal([bj_card("10"), bj_card("9")], [bj_card("10"), bj_card("7")], []):
            blackjack.place_bet(USER, 1000)
        age_round(blackjack, db, 31)

        view = blackjack.get_round(USER)

        assert view.stage == "round-over"
        assert view.outcome == "win"
        assert view.note.startswith("Round timed out")
        assert blackjack.ledger.get_balance(USER) == 402000

    def test_fresh_round_is_not_expired(self, blackjack, db, bj_card):
        with rigged_deal([bj_card("10"), bj_card("9")], [bj_card("10"), bj_card("7")], []):
            blackjack.place_bet(USER, 1000)
        age_round(blackjack, db, 5)

        assert blackjack.get_round(USER).stage == "player-turn"

    def test_failed_payout_is_reconciled(self, blackjack, bj_card):
        failure = OperationalError("INSERT", {}, Exception("database is locked"))
        with rigged_deal([bj_card("A"), bj_card("K")], [bj_card("9"), bj_card("7")], []):
            with patch.object(LedgerService, "apply_credit", side_effect=failure):
                view = blackjack.place_bet(USER, 1000)

        assert view.stage == "round-over"
        assert "pending" in view.error
        assert blackjack.ledger.get_balance(USER) == 400000
        pending = blackjack.payouts.repo.get_by_round(view.id)
        assert pending.status == PayoutStatus.PENDING

        result = blackjack.payouts.reconcile(USER)

        assert result.applied == 1
        assert result.balance == 402000
        assert blackjack.ledger.verify_integrity(USER).status == "OK"

    def test_reset_voids_open_round(self, blackjack, bj_card):
        with rigged_deal([bj_card("10"), bj_card("6")], [bj_card("9"), bj_card("K")], []):
            blackjack.place_bet(USER, 500)

        blackjack.ledger.reset(USER)
        view = blackjack.get_round(USER)

        assert view.stage == "void"
        assert view.rng_seed is None
        assert blackjack.ledger.get_balance(USER) == 401000

    def test_settled_round_is_replayable(self, blackjack):
        view = blackjack.place_bet(USER, 1000)
        if view.stage == "player-turn":
            view = blackjack.stand(USER)

        verification = blackjack.verify(USER, view.id)

        assert verification.matches
        assert verification.rng_seed == view.rng_seed
        assert verification.recorded["outcome"] == view.outcome

    def test_session_is_recorded(self, blackjack, bj_card):
        with rigged_deal([bj_card("A"), bj_card("K")], [bj_card("9"), bj_card("7")], []):
            view = blackjack.place_bet(USER, 1000)

        session = blackjack.sessions.for_round(view.id)
        assert session.result == "blackjack"
        assert session.bet_amount == 1000
        assert session.payout_amount == 2000
        assert session.details["player_hand"] == ["A♠", "K♠"]

    def test_natural_is_settled_with_the_deal(self, blackjack, bj_card):
        deck = [bj_card("5")]
        with rigged_deal([bj_card("A"), bj_card("K")], [bj_card("9"), bj_card("7")], deck):
            with patch.object(BlackjackService, "_finalize", side_effect=lambda round_: round_):
                view = blackjack.place_bet(USER, 1000)
                with pytest.raises(RoundStateError):
                    blackjack.hit(USER)

        assert view.outcome == "blackjack"
        view = blackjack.get_round(USER)
        assert view.stage == "round-over"
        assert view.table["player_total"] == 21
        assert blackjack.ledger.get_balance(USER) == 402000


class TestHighLowRounds:
    def test_higher_wins_with_multiplier(self, high_low, hl_card):
        with rigged_high_low(hl_card("K"), hl_card("7")):
            view = high_low.place_bet(USER, 1000)

        assert view.stage == "waiting-choice"
        assert view.table["first_card"]["rank"] == "7"
        assert view.table["second_card"] is None

        view = high_low.choose(USER, "higher")

        assert view.outcome == "win"
        assert view.payout == 1900
        assert view.table["second_card"]["rank"] == "K"
        assert high_low.ledger.get_balance(USER) == 401900

    def test_equal_cards_push(self, high_low, hl_card):
        with rigged_high_low(hl_card("7", "♣"), hl_card("7")):
            high_low.place_bet(USER, 1000)
        view = high_low.choose(USER, "lower")

        assert view.outcome == "push"
        assert high_low.ledger.get_balance(USER) == 401000

    def test_ace_is_low(self, high_low, hl_card):
        with rigged_high_low(hl_card("A"), hl_card("2")):
            high_low.place_bet(USER, 1000)
        view = high_low.choose(USER, "higher")

        assert view.outcome == "lose"
        assert high_low.ledger.get_balance(USER) == 400000

    def test_invalid_direction(self, high_low, hl_card):
        with rigged_high_low(hl_card("A"), hl_card("2")):
            high_low.place_bet(USER, 1000)

        with pytest.raises(ValidationError):
            high_low.choose(USER, "sideways")
        assert high_low.get_round(USER).stage == "waiting-choice"

    def test_choose_without_round(self, high_low):
        with pytest.raises(RoundStateError):
            high_low.choose(USER, "higher")

    def test_timed_out_round_refunds_stake(self, high_low, db, hl_card):
        with rigged_high_low(hl_card("A"), hl_card("2")):
            high_low.place_bet(USER, 1000)
        age_round(high_low, db, 45)

        view = high_low.get_round(USER)

        assert view.stage == "round-over"
        assert view.outcome == "push"
        assert view.payout == 1000
        assert high_low.ledger.get_balance(USER) == 401000

    def test_settled_round_is_replayable(self, high_low):
        high_low.place_bet(USER, 500)
        view = high_low.choose(USER, "lower")

        assert high_low.verify(USER, view.id).matches


class TestSlotsRounds:
    def test_only_listed_bets_are_accepted(self, slots):
        with pytest.raises(InvalidAmountError):
            slots.spin(USER, 300)

    def test_spin_settles_immediately(self, slots):
        view = slots.spin(USER, 250)

        assert view.stage == "settled"
        assert view.outcome in ("win", "loss", "jackpot")
        assert len(view.table["reels"]) == 3
        assert all(len(reel) == 3 for reel in view.table["reels"])
        assert slots.ledger.get_balance(USER) == 401000 - 250 + view.payout
        assert slots.verify(USER, view.id).matches

    def test_jackpot_line(self, slots):
        seven, lemon, bell = (SYMBOLS_BY_ID[s] for s in ("seven", "lemon", "bell"))
        grid = [[lemon, seven, bell], [bell, seven, lemon], [lemon, seven, bell]]
        with patch("casinoapi.games.slots.spin_reels", return_value=grid):
            view = slots.spin(USER, 100)

        assert view.outcome == "jackpot"
        assert view.payout == 2500
        assert view.table["is_jackpot"] is True
        assert view.table["winning_positions"] == [[0, 1], [1, 1], [2, 1]]
        assert slots.ledger.history(USER, 1)[0].description == "Slots Mini jackpot"

    def test_idle_table_shows_blank_grid(self, slots):
        view = slots.get_round(USER)

        assert view.stage == "idle"
        assert view.table["reels"] == [["blank"] * 3] * 3

    def test_bet_options(self, slots):
        assert slots.bet_options() == [100, 250, 500, 1000]

    def test_interrupted_spin_settles_on_next_read(self, slots):
        with patch.object(SlotsService, "_resolve_spin", side_effect=PersistenceError()):
            with pytest.raises(PersistenceError):
                slots.spin(USER, 1000)
        assert slots.rounds.current(USER, slots.game_type).stage == "spinning"

        view = slots.get_round(USER)

        assert view.stage == "settled"
        assert view.outcome in ("win", "loss", "jackpot")
        assert slots.ledger.get_balance(USER) == 400000 + view.payout
        assert slots.spin(USER, 100).stage == "settled"


class TestRouletteRounds:
    def test_select_then_spin_uses_selected_color(self, roulette):
        roulette.select_color(USER, "red")
        spin = RouletteSpin(rotation=1080.0, section=0, color="red")
        with patch("casinoapi.games.roulette.spin_wheel", return_value=spin):
            view = roulette.spin(USER, 500)

        assert view.stage == "complete"
        assert view.outcome == "win"
        assert view.payout == 1000
        assert view.table["selected_color"] == "red"
        assert roulette.ledger.get_balance(USER) == 401500

    def test_explicit_color_overrides_selection(self, roulette):
        roulette.select_color(USER, "red")
        spin = RouletteSpin(rotation=1080.0, section=0, color="red")
        with patch("casinoapi.games.roulette.spin_wheel", return_value=spin):
            view = roulette.spin(USER, 500, color="black")

        assert view.outcome == "loss"
        assert roulette.ledger.get_balance(USER) == 400500

    def test_spin_without_color_is_rejected(self, roulette):
        with pytest.raises(ValidationError):
            roulette.spin(USER, 500)
        assert roulette.ledger.get_balance(USER) == 401000

    def test_invalid_color(self, roulette):
        with pytest.raises(ValidationError):
            roulette.select_color(USER, "green")

    def test_new_round_carries_stake(self, roulette):
        settled = roulette.spin(USER, 250, color="black")

        first = roulette.new_round(USER)
        second = roulette.new_round(USER)

        assert first.stage == "idle"
        assert first.stake == 250
        assert first.id != settled.id
        assert second.id == first.id

    def test_history_newest_first(self, roulette):
        first = roulette.spin(USER, 100, color="red")
        second = roulette.spin(USER, 200, color="black")

        history = roulette.history(USER)

        assert [h.id for h in history] == [second.id, first.id]
        assert roulette.history(USER, 1)[0].stake == 200

    def test_verify_replays_wheel(self, roulette):
        view = roulette.spin(USER, 100, color="red")

        verification = roulette.verify(USER, view.id)

        assert verification.matches
        assert verification.replayed["result_section"] == view.table["result_section"]

    def test_verify_rejects_foreign_round(self, roulette):
        view = roulette.spin(USER, 100, color="red")

        with pytest.raises(NotFoundError):
            roulette.verify("someone-else", view.id)

    def test_verify_rejects_unsettled_round(self, roulette):
        idle = roulette.select_color(USER, "red")

        with pytest.raises(RoundStateError):
            roulette.verify(USER, idle.id)

    def test_interrupted_spin_settles_before_next_bet(self, roulette):
        spin = RouletteSpin(rotation=1080.0, section=0, color="red")
        with patch("casinoapi.games.roulette.spin_wheel", return_value=spin):
            with patch.object(RouletteService, "_resolve_spin", side_effect=PersistenceError()):
                with pytest.raises(PersistenceError):
                    roulette.spin(USER, 500, color="red")

            view = roulette.new_round(USER)

        assert view.stage == "idle"
        assert roulette.history(USER)[0].outcome == "win"
        assert roulette.ledger.get_balance(USER) == 401500

    def test_unsaved_close_is_reported_on_the_view(self, roulette):
        run_atomic = LedgerService.run_atomic

        def failing_close(self, operation, label="ledger operation"):
            if label.endswith(" close"):
                raise PersistenceError()
            return run_atomic(self, operation, label)

        spin = RouletteSpin(rotation=1080.0, section=0, color="red")
        with patch("casinoapi.games.roulette.spin_wheel", return_value=spin):
            with patch.object(LedgerService, "run_atomic", failing_close):
                view = roulette.spin(USER, 500, color="red")

        assert view.outcome == "win"
        assert view.error == "Round result saved; history will update shortly."
        assert roulette.ledger.get_balance(USER) == 401500

        view = roulette.get_round(USER)

        assert view.stage == "complete"
        assert view.error is None
        assert roulette.ledger.get_balance(USER) == 401500
