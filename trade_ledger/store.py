"""Ledger store — key/value style persistence over SQLModel tables.

Every call opens its own session and commits before returning, so callers
never hold a transaction across an await or an RPC round-trip. Numeric
increments are issued as a single ``UPDATE ... SET col = col + :delta``
statement and stay correct with several writers on the same row.
"""

import logging
from typing import Any, TypeVar

from sqlalchemy import update as sa_update
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, select

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


class LedgerStore:
    """Thin put/get/scan/update/delete layer bound to one engine."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def put(self, item: ModelT) -> ModelT:
        """Upsert by primary key."""
        with Session(self.engine) as session:
            merged = session.merge(item)
            session.commit()
            session.refresh(merged)
            return merged

    def get(self, model: type[ModelT], key: Any) -> ModelT | None:
        with Session(self.engine) as session:
            return session.get(model, key)

    def scan(self, model: type[ModelT], *conditions) -> list[ModelT]:
        stmt = select(model)
        for condition in conditions:
            stmt = stmt.where(condition)
        with Session(self.engine) as session:
            return list(session.exec(stmt).all())

    def update(self, model: type[ModelT], key: Any, **values) -> ModelT | None:
        """Overwrite the given columns. Returns None when the key is missing."""
        with Session(self.engine) as session:
            row = session.get(model, key)
            if row is None:
                return None
            for name, value in values.items():
                setattr(row, name, value)
            session.add(row)
            session.commit()
            session.refresh(row)
            return row

    def increment(self, model: type[ModelT], key: Any, **deltas: float) -> ModelT | None:
        """Atomically add ``deltas`` to numeric columns in one statement."""
        pk = _primary_key_column(model)
        values = {name: getattr(model, name) + delta for name, delta in deltas.items()}
        stmt = sa_update(model).where(pk == key).values(**values)
        with Session(self.engine) as session:
            result = session.exec(stmt)
            if result.rowcount == 0:
                session.rollback()
                return None
            session.commit()
            return session.get(model, key)

    def delete(self, model: type[ModelT], key: Any) -> bool:
        with Session(self.engine) as session:
            row = session.get(model, key)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True


def _primary_key_column(model: type[SQLModel]):
    columns = list(model.__table__.primary_key.columns)
    if len(columns) != 1:
        raise ValueError(f"{model.__name__} must have a single-column primary key")
    return getattr(model, columns[0].name)
