from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from sports_sync.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    def __init__(self, session: Session, model: type[ModelT]) -> None:
        self.session = session
        self.model = model

    def add(self, obj: ModelT, *, flush: bool = True) -> ModelT:
        self.session.add(obj)
        if flush:
            self.session.flush()  # assigns PKs, etc.
        return obj

    def get(self, id_: Any) -> ModelT | None:
        return self.session.get(self.model, id_)

    def first_where(self, *predicates: ColumnElement[bool]) -> ModelT | None:
        stmt = select(self.model).where(*predicates).limit(1)
        return self.session.execute(stmt).scalars().first()

    def all_where(self, *predicates: ColumnElement[bool]) -> list[ModelT]:
        stmt = select(self.model).where(*predicates)
        return list(self.session.execute(stmt).scalars().all())

    def all(self) -> list[ModelT]:
        return list(self.session.execute(select(self.model)).scalars().all())

    def patch(self, obj: ModelT, changes: Mapping[str, Any], *, flush: bool = True) -> ModelT:
        for k, v in changes.items():
            if v is None:
                continue
            setattr(obj, k, v)
        if flush:
            self.session.flush()
        return obj
