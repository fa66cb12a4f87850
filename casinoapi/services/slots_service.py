"""Slots Mini: idle -> spinning -> settled."""

import logging
from typing import Any, Dict, List, Tuple

from casinoapi.core.exceptions import InvalidAmountError
from casinoapi.games import slots
from casinoapi.models.game_round import GameRound, GameType
from casinoapi.schemas.games import RoundView, SlotsTable
from casinoapi.services.round_service import RoundService

logger = logging.getLogger(__name__)

SPINNING = "spinning"
SETTLED = "settled"

JACKPOT = "jackpot"
WIN = "win"
LOSS = "loss"


def outcome_for(evaluation: slots.SpinEvaluation) -> str:
    if evaluation.total_payout <= 0:
        return LOSS
    return JACKPOT if evaluation.is_jackpot else WIN


def describe(evaluation: slots.SpinEvaluation) -> str:
    if evaluation.is_jackpot:
        return f"JACKPOT! {evaluation.total_payout:,} tokens on {len(evaluation.line_wins)} line(s)."
    if evaluation.total_payout > 0:
        return f"Winner! {evaluation.total_payout:,} tokens on {len(evaluation.line_wins)} line(s)."
    return "No winning lines. Spin again!"


class SlotsService(RoundService):
    game_type = GameType.SLOTS.value
    display_name = "Slots Mini"
    active_stages = (SPINNING,)
    terminal_stage = SETTLED
    bet_description = "Slots Mini wager"
    resolves_on_read = True

    def spin(self, user_id: str, amount) -> RoundView:
        options = self.settings.SLOTS_BET_OPTIONS
        if amount not in options:
            raise InvalidAmountError(
                f"Choose one of the available bets: {', '.join(str(o) for o in options)}.",
                details={"amount": amount, "options": options},
            )

        def _start(round_: GameRound) -> None:
            round_.state = {"bet": round_.stake}
            round_.stage = SPINNING

        round_ = self._open_round(user_id, amount, _start)
        return self.view(self._resolve_spin(round_))

    def _evaluate(self, round_: GameRound) -> Tuple[slots.Grid, slots.SpinEvaluation]:
        reels = slots.spin_reels(round_.rng_seed)
        return reels, slots.evaluate_spin(
            reels, round_.stake, self.settings.SLOTS_JACKPOT_MULTIPLIER
        )

    def _resolve_spin(self, round_: GameRound) -> GameRound:
        reels, evaluation = self._evaluate(round_)
        outcome = outcome_for(evaluation)
        state = {
            "bet": round_.stake,
            "reels": slots.grid_to_state(reels),
            "line_wins": [
                {
                    "line_id": win.line_id,
                    "label": win.label,
                    "symbol": win.symbol.id,
                    "payout": win.payout,
                }
                for win in evaluation.line_wins
            ],
            "winning_positions": sorted([list(p) for p in evaluation.winning_positions]),
            "is_jackpot": evaluation.is_jackpot,
        }
        return self._settle(
            round_,
            outcome,
            evaluation.total_payout,
            describe(evaluation),
            "Slots Mini jackpot" if evaluation.is_jackpot else "Slots Mini win",
            state=state,
        )

    def _expire(self, round_: GameRound) -> GameRound:
        return self._resolve_spin(round_)

    def bet_options(self) -> List[int]:
        return list(self.settings.SLOTS_BET_OPTIONS)

    def _table(self, round_: GameRound) -> Dict[str, Any]:
        state = round_.state or {}
        if "reels" not in state:
            return self._empty_table()
        return SlotsTable(
            reels=state["reels"],
            line_wins=state.get("line_wins", []),
            winning_positions=state.get("winning_positions", []),
            is_jackpot=state.get("is_jackpot", False),
        ).model_dump()

    def _empty_table(self) -> Dict[str, Any]:
        return SlotsTable(reels=slots.grid_to_state(slots.empty_grid())).model_dump()

    def _session_details(self, round_: GameRound) -> Dict[str, Any]:
        state = round_.state or {}
        return {
            "bet": round_.stake,
            "line_wins": [
                {"line_id": w["line_id"], "symbol": w["symbol"], "payout": w["payout"]}
                for w in state.get("line_wins", [])
            ],
            "reels": state.get("reels", []),
        }

    def _recorded(self, round_: GameRound) -> Dict[str, Any]:
        state = round_.state or {}
        return {
            "reels": state.get("reels"),
            "outcome": round_.outcome,
            "payout": round_.payout,
        }

    def _replay(self, round_: GameRound) -> Dict[str, Any]:
        reels, evaluation = self._evaluate(round_)
        return {
            "reels": slots.grid_to_state(reels),
            "outcome": outcome_for(evaluation),
            "payout": evaluation.total_payout,
        }
