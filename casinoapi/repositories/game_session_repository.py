from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from casinoapi.models.game_session import GameSession
from casinoapi.repositories.base import BaseRepository


class GameSessionRepository(BaseRepository[GameSession]):
    def __init__(self, db: Session):
        super().__init__(GameSession, db)

    def record(
        self,
        user_id: str,
        round_id: str,
        game_type: str,
        bet_amount: int,
        payout_amount: int,
        result: str,
        details: Dict[str, Any],
        rng_seed: Optional[int],
    ) -> GameSession:
        return self.create(
            user_id=user_id,
            round_id=round_id,
            game_type=game_type,
            bet_amount=bet_amount,
            payout_amount=payout_amount,
            result=result,
            details=details,
            rng_seed=rng_seed,
        )

    def for_round(self, round_id: str) -> Optional[GameSession]:
        return self.get_by_field("round_id", round_id)
