"""High-Low table: idle -> waiting-choice -> round-over."""

import logging
from typing import Any, Dict, Optional

from casinoapi.games import high_low
from casinoapi.games.cards import HIGH_LOW_VALUES, Card, cards_from_state, cards_to_state, shuffled_deck
from casinoapi.models.game_round import GameRound, GameType
from casinoapi.schemas.games import HighLowTable, RoundView
from casinoapi.services.round_service import RoundService, require_choice

logger = logging.getLogger(__name__)

WAITING_CHOICE = "waiting-choice"
ROUND_OVER = "round-over"

TIMEOUT_NOTE = "Round timed out: bet returned"


def _card(state: Dict[str, Any], key: str) -> Optional[Card]:
    data = state.get(key)
    return Card.from_dict(data) if data else None


def _code(card: Optional[Card]) -> Optional[str]:
    return card.code if card is not None else None


class HighLowService(RoundService):
    game_type = GameType.HIGH_LOW.value
    display_name = "High-Low"
    active_stages = (WAITING_CHOICE,)
    terminal_stage = ROUND_OVER
    bet_description = "High-Low bet"

    @property
    def multiplier(self):
        return self.settings.HIGH_LOW_PAYOUT_MULTIPLIER

    def place_bet(self, user_id: str, amount) -> RoundView:
        def _deal(round_: GameRound) -> None:
            deck = shuffled_deck(HIGH_LOW_VALUES, round_.rng_seed)
            first = deck.pop()
            round_.state = {
                "deck": cards_to_state(deck),
                "first_card": first.to_dict(),
                "second_card": None,
                "direction": None,
            }
            round_.stage = WAITING_CHOICE

        return self.view(self._open_round(user_id, amount, _deal))

    def choose(self, user_id: str, direction: str) -> RoundView:
        direction = require_choice(
            direction, high_low.DIRECTIONS, "Choose higher or lower."
        )
        round_ = self._require_stage(self.current_round(user_id), WAITING_CHOICE)

        state = dict(round_.state or {})
        deck = cards_from_state(state.get("deck", []))
        first = _card(state, "first_card")
        second = deck.pop()

        result = high_low.resolve(first, second, direction, round_.stake, self.multiplier)
        new_state = {
            **state,
            "deck": cards_to_state(deck),
            "second_card": second.to_dict(),
            "direction": direction,
        }
        round_ = self._settle(
            round_,
            result.outcome,
            result.payout,
            result.note,
            f"High-Low {result.outcome}",
            state=new_state,
        )
        return self.view(round_)

    def _expire(self, round_: GameRound) -> GameRound:
        state = {**(round_.state or {}), "timed_out": True}
        return self._settle(
            round_,
            high_low.PUSH,
            round_.stake,
            TIMEOUT_NOTE,
            f"High-Low {high_low.PUSH}",
            state=state,
        )

    def _table(self, round_: GameRound) -> Dict[str, Any]:
        state = round_.state or {}
        return HighLowTable(
            first_card=state.get("first_card"),
            second_card=state.get("second_card"),
            direction=state.get("direction"),
        ).model_dump()

    def _empty_table(self) -> Dict[str, Any]:
        return HighLowTable().model_dump()

    def _session_details(self, round_: GameRound) -> Dict[str, Any]:
        state = round_.state or {}
        return {
            "first_card": _code(_card(state, "first_card")),
            "second_card": _code(_card(state, "second_card")),
            "direction": state.get("direction"),
            "timed_out": bool(state.get("timed_out")),
        }

    def _recorded(self, round_: GameRound) -> Dict[str, Any]:
        state = round_.state or {}
        return {
            "first_card": _code(_card(state, "first_card")),
            "second_card": _code(_card(state, "second_card")),
            "outcome": round_.outcome,
            "payout": round_.payout,
        }

    def _replay(self, round_: GameRound) -> Dict[str, Any]:
        state = round_.state or {}
        deck = shuffled_deck(HIGH_LOW_VALUES, round_.rng_seed)
        first = deck.pop()
        direction = state.get("direction")

        if direction is None:
            # Timed out before a choice: refunded without drawing.
            return {
                "first_card": first.code,
                "second_card": None,
                "outcome": high_low.PUSH,
                "payout": round_.stake,
            }

        second = deck.pop()
        result = high_low.resolve(first, second, direction, round_.stake, self.multiplier)
        return {
            "first_card": first.code,
            "second_card": second.code,
            "outcome": result.outcome,
            "payout": result.payout,
        }
