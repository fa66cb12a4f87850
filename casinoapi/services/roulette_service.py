"""
Roulette-Lite table: idle -> spinning -> complete.

The colour is picked on the idle round before betting (or passed with the
spin). The wheel angle comes from the round seed and the result section is
derived from that angle, so replaying the seed reproduces both.
"""

import logging
from typing import Any, Dict, Optional

from casinoapi.games import roulette
from casinoapi.games.rng import RandomnessSource
from casinoapi.models.game_round import IDLE_STAGE, GameRound, GameType
from casinoapi.schemas.games import RouletteTable, RoundView
from casinoapi.services.round_service import RoundService, require_choice

logger = logging.getLogger(__name__)

SPINNING = "spinning"
COMPLETE = "complete"

COLOR_MESSAGE = "Please select red or black first."


class RouletteService(RoundService):
    game_type = GameType.ROULETTE.value
    display_name = "Roulette"
    active_stages = (SPINNING,)
    terminal_stage = COMPLETE
    bet_description = "Roulette bet"
    resolves_on_read = True

    def select_color(self, user_id: str, color: str) -> RoundView:
        color = require_choice(color, roulette.COLORS, COLOR_MESSAGE)
        current = self.current_round(user_id)
        self._ensure_not_active(current)

        def _select() -> GameRound:
            if current is not None and current.stage == IDLE_STAGE:
                state = {**(current.state or {}), "selected_color": color}
                return self.rounds.update(current, state=state)
            last_stake = current.stake if current is not None else 0
            return self._create_idle(user_id, last_stake, {"selected_color": color})

        round_ = self.ledger.run_atomic(_select, "Roulette select colour")
        return self.view(round_)

    def spin(self, user_id: str, amount, color: Optional[str] = None) -> RoundView:
        if color is None:
            current = self.current_round(user_id)
            self._ensure_not_active(current)
            if current is not None and current.stage == IDLE_STAGE:
                color = (current.state or {}).get("selected_color")
        color = require_choice(color, roulette.COLORS, COLOR_MESSAGE)

        def _start(round_: GameRound) -> None:
            round_.state = {"selected_color": color}
            round_.stage = SPINNING

        round_ = self._open_round(user_id, amount, _start)
        return self.view(self._resolve_spin(round_))

    @staticmethod
    def _wheel(round_: GameRound) -> roulette.RouletteSpin:
        return roulette.spin_wheel(RandomnessSource(round_.rng_seed))

    def _resolve_spin(self, round_: GameRound) -> GameRound:
        selected = (round_.state or {}).get("selected_color")
        wheel = self._wheel(round_)
        result = roulette.resolve(selected, wheel, round_.stake)
        state = {
            "selected_color": selected,
            "result_color": wheel.color,
            "result_section": wheel.section,
            "wheel_rotation": wheel.rotation,
        }
        return self._settle(
            round_, result.outcome, result.payout, result.note, "Roulette win", state=state
        )

    def _expire(self, round_: GameRound) -> GameRound:
        return self._resolve_spin(round_)

    def _table(self, round_: GameRound) -> Dict[str, Any]:
        state = round_.state or {}
        return RouletteTable(
            selected_color=state.get("selected_color"),
            result_color=state.get("result_color"),
            result_section=state.get("result_section"),
            wheel_rotation=state.get("wheel_rotation"),
        ).model_dump()

    def _empty_table(self) -> Dict[str, Any]:
        return RouletteTable().model_dump()

    def _session_details(self, round_: GameRound) -> Dict[str, Any]:
        state = round_.state or {}
        return {
            "selected_color": state.get("selected_color"),
            "result_color": state.get("result_color"),
            "section": state.get("result_section"),
            "rotation": state.get("wheel_rotation"),
        }

    def _recorded(self, round_: GameRound) -> Dict[str, Any]:
        state = round_.state or {}
        return {
            "result_section": state.get("result_section"),
            "result_color": state.get("result_color"),
            "outcome": round_.outcome,
            "payout": round_.payout,
        }

    def _replay(self, round_: GameRound) -> Dict[str, Any]:
        wheel = self._wheel(round_)
        selected = (round_.state or {}).get("selected_color")
        result = roulette.resolve(selected, wheel, round_.stake)
        return {
            "result_section": wheel.section,
            "result_color": wheel.color,
            "outcome": result.outcome,
            "payout": result.payout,
        }
