from abc import ABC
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Session

T = TypeVar("T")


class BaseRepository(Generic[T], ABC):
    """Base class for all repositories.

    Repositories stage changes on the session and flush; committing is left to
    the caller so several writes can share one atomic unit.
    """

    def __init__(self, model_class: Type[T], db: Session):
        self.model_class = model_class
        self.db = db

    def get_by_id(self, id: Any) -> Optional[T]:
        return self.db.get(self.model_class, id)

    def get_by_field(self, field_name: str, value: Any) -> Optional[T]:
        return (
            self.db.query(self.model_class)
            .filter(getattr(self.model_class, field_name) == value)
            .first()
        )

    def create(self, **kwargs) -> T:
        instance = self.model_class(**kwargs)
        self.db.add(instance)
        self.db.flush()
        return instance

    def update(self, instance: T, **kwargs) -> T:
        for key, value in kwargs.items():
            if hasattr(instance, key):
                setattr(instance, key, value)
        self.db.add(instance)
        self.db.flush()
        return instance
