"""
Blackjack table.

Stages: idle -> player-turn -> dealer-turn -> round-over

The deck is shuffled from the round seed at bet time and kept in the round
state; cards are drawn from the end. Deal order is player, player, dealer,
dealer. The dealer's second card stays hidden while the player acts.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from casinoapi.games import blackjack
from casinoapi.games.cards import (
    BLACKJACK_VALUES,
    Card,
    cards_from_state,
    cards_to_state,
    shuffled_deck,
)
from casinoapi.models.game_round import GameRound, GameType
from casinoapi.schemas.games import BlackjackTable, RoundView
from casinoapi.services.round_service import RoundService

logger = logging.getLogger(__name__)

PLAYER_TURN = "player-turn"
DEALER_TURN = "dealer-turn"
ROUND_OVER = "round-over"

PAYOUT_DESCRIPTIONS = {
    blackjack.WIN: "Blackjack win",
    blackjack.BLACKJACK: "Blackjack win (natural)",
    blackjack.PUSH: "Blackjack push refund",
}

Hands = Tuple[List[Card], List[Card], List[Card]]


def _state(deck: List[Card], player: List[Card], dealer: List[Card]) -> Dict[str, Any]:
    return {
        "deck": cards_to_state(deck),
        "player_hand": cards_to_state(player),
        "dealer_hand": cards_to_state(dealer),
    }


def _hands(round_: GameRound) -> Hands:
    state = round_.state or {}
    return (
        cards_from_state(state.get("player_hand", [])),
        cards_from_state(state.get("dealer_hand", [])),
        cards_from_state(state.get("deck", [])),
    )


def deal(seed: int) -> Hands:
    deck = shuffled_deck(BLACKJACK_VALUES, seed)
    player = [deck.pop(), deck.pop()]
    dealer = [deck.pop(), deck.pop()]
    return player, dealer, deck


class BlackjackService(RoundService):
    game_type = GameType.BLACKJACK.value
    display_name = "Blackjack"
    active_stages = (PLAYER_TURN, DEALER_TURN)
    terminal_stage = ROUND_OVER
    bet_description = "Blackjack bet"

    def place_bet(self, user_id: str, amount) -> RoundView:
        def _deal(round_: GameRound) -> None:
            player, dealer, deck = deal(round_.rng_seed)
            round_.state = _state(deck, player, dealer)
            round_.stage = PLAYER_TURN
            natural = blackjack.resolve_natural(player, dealer, round_.stake)
            if natural is not None:
                # Committed with the stake debit, so the hand is never playable.
                self._record_outcome(
                    round_,
                    natural.outcome,
                    natural.payout,
                    natural.note,
                    PAYOUT_DESCRIPTIONS.get(natural.outcome, ""),
                )

        round_ = self._open_round(user_id, amount, _deal)
        if round_.outcome is not None:
            round_ = self._finalize(round_)
        return self.view(round_)

    def hit(self, user_id: str) -> RoundView:
        round_ = self._require_stage(self.current_round(user_id), PLAYER_TURN)
        player, dealer, deck = _hands(round_)
        player.append(deck.pop())

        if blackjack.is_bust(player):
            result = blackjack.settle(player, dealer, round_.stake)
            round_ = self._settle_outcome(round_, result, _state(deck, player, dealer))
        elif blackjack.hand_value(player) == blackjack.BLACKJACK_TARGET:
            round_ = self._dealer_plays(round_, player, dealer, deck)
        else:
            new_state = _state(deck, player, dealer)
            self.ledger.run_atomic(
                lambda: self.rounds.update(round_, state=new_state), "Blackjack hit"
            )
        return self.view(round_)

    def stand(self, user_id: str) -> RoundView:
        round_ = self._require_stage(self.current_round(user_id), PLAYER_TURN)
        player, dealer, deck = _hands(round_)
        return self.view(self._dealer_plays(round_, player, dealer, deck))

    def _dealer_plays(
        self,
        round_: GameRound,
        player: List[Card],
        dealer: List[Card],
        deck: List[Card],
        note_prefix: str = "",
    ) -> GameRound:
        dealer, deck = blackjack.play_dealer(dealer, deck)
        result = blackjack.settle(player, dealer, round_.stake)
        if note_prefix:
            result.note = f"{note_prefix}{result.note}"
        return self._settle_outcome(round_, result, _state(deck, player, dealer), DEALER_TURN)

    def _settle_outcome(
        self,
        round_: GameRound,
        result: blackjack.BlackjackOutcome,
        state: Optional[Dict[str, Any]] = None,
        stage: Optional[str] = None,
    ) -> GameRound:
        return self._settle(
            round_,
            result.outcome,
            result.payout,
            result.note,
            PAYOUT_DESCRIPTIONS.get(result.outcome, ""),
            state=state,
            stage=stage,
        )

    def _expire(self, round_: GameRound) -> GameRound:
        player, dealer, deck = _hands(round_)
        return self._dealer_plays(
            round_, player, dealer, deck, note_prefix="Round timed out: auto-stand. "
        )

    def _table(self, round_: GameRound) -> Dict[str, Any]:
        player, dealer, _ = _hands(round_)
        hide_hole = round_.stage == PLAYER_TURN
        visible_dealer = dealer[:1] if hide_hole else dealer
        return BlackjackTable(
            player_hand=[card.to_dict() for card in player],
            dealer_hand=[card.to_dict() for card in visible_dealer],
            player_total=blackjack.hand_value(player),
            dealer_total=None if hide_hole else blackjack.hand_value(dealer),
            hide_dealer_hole=hide_hole,
        ).model_dump()

    def _empty_table(self) -> Dict[str, Any]:
        return BlackjackTable().model_dump()

    def _session_details(self, round_: GameRound) -> Dict[str, Any]:
        player, dealer, _ = _hands(round_)
        return {
            "player_hand": [card.code for card in player],
            "dealer_hand": [card.code for card in dealer],
            "player_total": blackjack.hand_value(player),
            "dealer_total": blackjack.hand_value(dealer),
        }

    def _recorded(self, round_: GameRound) -> Dict[str, Any]:
        player, dealer, _ = _hands(round_)
        return {
            "player_hand": [card.code for card in player],
            "dealer_hand": [card.code for card in dealer],
            "outcome": round_.outcome,
            "payout": round_.payout,
        }

    def _replay(self, round_: GameRound) -> Dict[str, Any]:
        """Re-deal from the seed, replaying the player's recorded number of hits."""
        recorded_player, _, _ = _hands(round_)
        player, dealer, deck = deal(round_.rng_seed)

        result = blackjack.resolve_natural(player, dealer, round_.stake)
        if result is None:
            for _ in range(max(0, len(recorded_player) - 2)):
                player.append(deck.pop())
            if not blackjack.is_bust(player):
                dealer, deck = blackjack.play_dealer(dealer, deck)
            result = blackjack.settle(player, dealer, round_.stake)

        return {
            "player_hand": [card.code for card in player],
            "dealer_hand": [card.code for card in dealer],
            "outcome": result.outcome,
            "payout": result.payout,
        }
