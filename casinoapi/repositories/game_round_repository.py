from typing import List, Optional, Sequence

from sqlalchemy import desc
from sqlalchemy.orm import Session

from casinoapi.models.game_round import GameRound
from casinoapi.repositories.base import BaseRepository


class GameRoundRepository(BaseRepository[GameRound]):
    def __init__(self, db: Session):
        super().__init__(GameRound, db)

    def _for_game(self, user_id: str, game_type: str):
        return self.db.query(self.model_class).filter(
            self.model_class.user_id == user_id,
            self.model_class.game_type == game_type,
        )

    def current(self, user_id: str, game_type: str) -> Optional[GameRound]:
        """Latest round for the user at this table, if any."""
        return (
            self._for_game(user_id, game_type)
            .order_by(desc(self.model_class.created_at))
            .first()
        )

    def settled_history(
        self, user_id: str, game_type: str, terminal_stages: Sequence[str], limit: int
    ) -> List[GameRound]:
        return (
            self._for_game(user_id, game_type)
            .filter(
                self.model_class.stage.in_(list(terminal_stages)),
                self.model_class.outcome.isnot(None),
            )
            .order_by(desc(self.model_class.settled_at))
            .limit(limit)
            .all()
        )

    def open_rounds(self, user_id: str, terminal_stages: Sequence[str]) -> List[GameRound]:
        return (
            self.db.query(self.model_class)
            .filter(
                self.model_class.user_id == user_id,
                self.model_class.stage.notin_(list(terminal_stages)),
            )
            .all()
        )
