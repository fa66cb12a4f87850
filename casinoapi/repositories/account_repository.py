from typing import Optional

from sqlalchemy.orm import Session

from casinoapi.models.account import Account
from casinoapi.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    def __init__(self, db: Session):
        super().__init__(Account, db)

    def get(self, user_id: str) -> Optional[Account]:
        return self.get_by_id(user_id)

    def create_account(self, user_id: str, balance: int) -> Account:
        return self.create(
            user_id=user_id,
            balance=balance,
            total_wagered=0,
            total_won=0,
            games_played=0,
        )

    def increment_games_played(self, account: Account) -> Account:
        return self.update(account, games_played=account.games_played + 1)
