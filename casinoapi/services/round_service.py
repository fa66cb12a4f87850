"""
Round controller shared by every game.

Lifecycle of one round (one `game_rounds` row):

    idle -> <active stages> -> <terminal stage>

1. open:   stake debit + round row + deal, one unit of work. The seed is
           drawn before the unit so a retried unit deals the same cards.
2. play:   game-specific actions move the round between active stages.
3. settle: outcome and owed payout are committed first (payout as a
           pending_payouts row), then the payout is credited, then the
           round is marked terminal and a GameSession audit row is written.

A bet is only accepted while the current round is idle or terminal. A round
left in an active stage past ROUND_TIMEOUT_MINUTES is force-settled the next
time it is read. Games with no player decision after the bet (`resolves_on_read`)
are settled from their seed on the first read that finds them unsettled.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from casinoapi.config import Settings
from casinoapi.config import settings as default_settings
from casinoapi.core.exceptions import (
    InvalidAmountError,
    NotFoundError,
    PersistenceError,
    RoundStateError,
    ValidationError,
)
from casinoapi.games.rng import generate_seed
from casinoapi.logging_config import RECONCILIATION_LOGGER
from casinoapi.models.game_round import IDLE_STAGE, TERMINAL_STAGES, VOID_STAGE, GameRound
from casinoapi.repositories.game_round_repository import GameRoundRepository
from casinoapi.repositories.game_session_repository import GameSessionRepository
from casinoapi.schemas.games import HistoryEntry, RoundVerification, RoundView
from casinoapi.services.ledger_service import LedgerService, validate_amount
from casinoapi.services.payout_service import PayoutService
from casinoapi.utils.timezone_utils import as_utc, utc_now

logger = logging.getLogger(__name__)
reconciliation_logger = logging.getLogger(RECONCILIATION_LOGGER)


def stake_ref(round_id: str) -> str:
    return f"{round_id}:stake"


class RoundService(ABC):
    """Base class for per-game round controllers."""

    game_type: str
    display_name: str
    active_stages: Sequence[str]
    terminal_stage: str
    bet_description: str
    resolves_on_read = False

    def __init__(self, db: Session, settings: Settings = default_settings):
        self.db = db
        self.settings = settings
        self.ledger = LedgerService(db, settings)
        self.payouts = PayoutService(db, settings, ledger=self.ledger)
        self.rounds = GameRoundRepository(db)
        self.sessions = GameSessionRepository(db)
        # round_id -> message, for rounds whose close could not be saved
        self._unsaved_errors: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _table(self, round_: GameRound) -> Dict[str, Any]:
        """Public table state. Must never include undealt cards."""

    @abstractmethod
    def _expire(self, round_: GameRound) -> GameRound:
        """Force-settle a round that sat in an active stage too long."""

    @abstractmethod
    def _replay(self, round_: GameRound) -> Dict[str, Any]:
        """Recompute the round's result from its seed and recorded inputs."""

    @abstractmethod
    def _recorded(self, round_: GameRound) -> Dict[str, Any]:
        """The same facts as `_replay`, read from the stored round."""

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def current_round(self, user_id: str) -> Optional[GameRound]:
        round_ = self.rounds.current(user_id, self.game_type)
        if round_ is None or round_.stage in TERMINAL_STAGES or round_.stage == IDLE_STAGE:
            return round_
        if round_.outcome is not None:
            # Outcome committed but the round never reached its terminal stage.
            return self._finalize(round_)
        if self.resolves_on_read:
            logger.info(f"Resuming unsettled {self.display_name} round {round_.id}")
            return self._expire(round_)
        if self._is_timed_out(round_):
            logger.warning(
                f"{self.display_name} round {round_.id} timed out in stage "
                f"{round_.stage}; force-settling"
            )
            return self._expire(round_)
        return round_

    def get_round(self, user_id: str) -> RoundView:
        return self.view(self.current_round(user_id))

    def view(self, round_: Optional[GameRound]) -> RoundView:
        if round_ is None:
            return RoundView(game_type=self.game_type, stage=IDLE_STAGE, table=self._empty_table())

        revealed = round_.stage in TERMINAL_STAGES and round_.stage != VOID_STAGE
        return RoundView(
            id=round_.id,
            game_type=round_.game_type,
            stage=round_.stage,
            stake=round_.stake,
            outcome=round_.outcome,
            payout=round_.payout,
            note=round_.note,
            error=round_.error or self._unsaved_errors.get(round_.id),
            rng_seed=round_.rng_seed if revealed else None,
            started_at=as_utc(round_.started_at),
            settled_at=as_utc(round_.settled_at),
            table=self._table(round_),
        )

    def _empty_table(self) -> Dict[str, Any]:
        return {}

    def history(self, user_id: str, limit: Optional[int] = None) -> List[HistoryEntry]:
        cap = self.settings.ROUND_HISTORY_LIMIT
        limit = cap if limit is None else max(0, min(limit, cap))
        if limit == 0:
            return []
        settled = self.rounds.settled_history(
            user_id, self.game_type, [self.terminal_stage], limit
        )
        return [
            HistoryEntry(
                id=r.id,
                outcome=r.outcome,
                stake=r.stake,
                payout=r.payout,
                note=r.note,
                timestamp=as_utc(r.settled_at),
            )
            for r in settled
        ]

    def verify(self, user_id: str, round_id: str) -> RoundVerification:
        round_ = self.rounds.get_by_id(round_id)
        if round_ is None or round_.user_id != user_id or round_.game_type != self.game_type:
            raise NotFoundError(f"Round {round_id} not found")
        if round_.stage != self.terminal_stage or round_.rng_seed is None:
            raise RoundStateError("Only settled rounds can be verified")

        recorded = self._recorded(round_)
        replayed = self._replay(round_)
        matches = recorded == replayed
        if not matches:
            reconciliation_logger.error(f"Replay mismatch for {self.display_name} round {round_id}")
        return RoundVerification(
            round_id=round_.id,
            game_type=round_.game_type,
            rng_seed=round_.rng_seed,
            recorded=recorded,
            replayed=replayed,
            matches=matches,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def new_round(self, user_id: str) -> RoundView:
        """Return the table to idle, carrying the last stake as the default."""
        current = self.current_round(user_id)
        if current is not None and current.stage == IDLE_STAGE:
            return self.view(current)
        self._ensure_not_active(current)

        last_stake = current.stake if current is not None else 0
        round_ = self.ledger.run_atomic(
            lambda: self._create_idle(user_id, last_stake), f"{self.display_name} new round"
        )
        return self.view(round_)

    def _create_idle(
        self, user_id: str, stake: int = 0, state: Optional[Dict[str, Any]] = None
    ) -> GameRound:
        now = utc_now()
        return self.rounds.create(
            id=str(uuid.uuid4()),
            user_id=user_id,
            game_type=self.game_type,
            stage=IDLE_STAGE,
            stake=stake,
            payout=0,
            state=state or {},
            created_at=now,
        )

    def _ensure_not_active(self, round_: Optional[GameRound]) -> None:
        if round_ is not None and round_.stage in self.active_stages:
            raise RoundStateError(
                f"Finish the current {self.display_name} round first.",
                details={"round_id": round_.id, "stage": round_.stage},
            )

    def _require_stage(self, round_: Optional[GameRound], *stages: str) -> GameRound:
        if round_ is None or round_.stage not in stages or round_.outcome is not None:
            raise RoundStateError(
                "That action is not available right now.",
                details={"stage": round_.stage if round_ is not None else IDLE_STAGE},
            )
        return round_

    def _validate_stake(self, amount) -> int:
        stake = validate_amount(amount)
        if stake < self.settings.MIN_BET:
            raise InvalidAmountError(
                f"Minimum bet is {self.settings.MIN_BET} tokens.",
                details={"amount": stake, "min_bet": self.settings.MIN_BET},
            )
        return stake

    def _open_round(
        self,
        user_id: str,
        amount,
        deal: Callable[[GameRound], None],
        description: Optional[str] = None,
    ) -> GameRound:
        """Debit the stake and deal, atomically. Returns the round in its first active stage."""
        stake = self._validate_stake(amount)
        self.payouts.reconcile(user_id)

        current = self.current_round(user_id)
        self._ensure_not_active(current)
        idle = current if current is not None and current.stage == IDLE_STAGE else None
        idle_id = idle.id if idle is not None else None
        idle_state = dict(idle.state or {}) if idle is not None else {}
        seed = generate_seed()

        def _open() -> GameRound:
            round_ = self.rounds.get_by_id(idle_id) if idle_id else None
            if round_ is None:
                round_ = self._create_idle(user_id, stake, idle_state)

            self.ledger.apply_debit(
                user_id,
                stake,
                description or self.bet_description,
                game_id=round_.id,
                ref_id=stake_ref(round_.id),
            )
            now = utc_now()
            self.rounds.update(
                round_,
                stake=stake,
                rng_seed=seed,
                outcome=None,
                payout=0,
                note=None,
                error=None,
                started_at=now,
                settled_at=None,
            )
            deal(round_)
            self.db.flush()
            return round_

        round_ = self.ledger.run_atomic(_open, f"{self.display_name} bet")
        logger.info(
            f"Opened {self.display_name} round {round_.id} for user {user_id} "
            f"with stake {stake}"
        )
        return round_

    def _settle(
        self,
        round_: GameRound,
        outcome: str,
        payout: int,
        note: str,
        payout_description: str,
        state: Optional[Dict[str, Any]] = None,
        stage: Optional[str] = None,
    ) -> GameRound:
        """Commit the outcome, credit any payout, then close the round."""
        self.ledger.run_atomic(
            lambda: self._record_outcome(
                round_, outcome, payout, note, payout_description, state, stage
            ),
            f"{self.display_name} settle",
        )
        return self._finalize(round_)

    def _record_outcome(
        self,
        round_: GameRound,
        outcome: str,
        payout: int,
        note: str,
        payout_description: str,
        state: Optional[Dict[str, Any]] = None,
        stage: Optional[str] = None,
    ) -> GameRound:
        """Staged; run inside a unit of work. Stores the outcome and queues the payout."""
        changes = {"outcome": outcome, "payout": payout, "note": note}
        if state is not None:
            changes["state"] = state
        if stage is not None:
            changes["stage"] = stage
        self.rounds.update(round_, **changes)
        if payout > 0:
            self.payouts.enqueue(round_.id, round_.user_id, payout, payout_description)
        return round_

    def _finalize(self, round_: GameRound) -> GameRound:
        error = None
        if round_.payout > 0:
            try:
                self.payouts.apply(round_.id)
            except PersistenceError as e:
                error = f"Payout of {round_.payout} tokens is pending: {e.message}"

        def _close() -> GameRound:
            self.rounds.update(
                round_,
                stage=self.terminal_stage,
                settled_at=utc_now(),
                error=error,
            )
            self.ledger.record_game_played(round_.user_id)
            self.sessions.record(
                user_id=round_.user_id,
                round_id=round_.id,
                game_type=round_.game_type,
                bet_amount=round_.stake,
                payout_amount=round_.payout,
                result=round_.outcome,
                details=self._session_details(round_),
                rng_seed=round_.rng_seed,
            )
            return round_

        try:
            self.ledger.run_atomic(_close, f"{self.display_name} close")
        except PersistenceError:
            # Outcome and payout are already durable; the round closes on next read.
            logger.warning(f"Could not close {self.display_name} round {round_.id}")
            self._unsaved_errors[round_.id] = (
                error or "Round result saved; history will update shortly."
            )
            return round_
        self._unsaved_errors.pop(round_.id, None)
        return round_

    def _session_details(self, round_: GameRound) -> Dict[str, Any]:
        return self._table(round_)

    def _is_timed_out(self, round_: GameRound) -> bool:
        started = as_utc(round_.started_at)
        if started is None:
            return False
        limit = timedelta(minutes=self.settings.ROUND_TIMEOUT_MINUTES)
        return utc_now() - started > limit


def require_choice(value: Optional[str], choices: Sequence[str], message: str) -> str:
    if value not in choices:
        raise ValidationError(message, details={"allowed": list(choices)})
    return value
