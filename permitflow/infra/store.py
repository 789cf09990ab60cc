from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import Any, TypeVar

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from permitflow.domain.errors import NotFoundError, StoreError
from permitflow.domain.models import SequenceCounter
from permitflow.infra.db import get_engine

M = TypeVar("M", bound=SQLModel)


class EntityStore:
    """One unit of work over a SQLModel session.

    Nothing is cached between units of work; every read goes to the database.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    @classmethod
    @contextmanager
    def open(cls) -> Iterator[EntityStore]:
        with Session(get_engine(), expire_on_commit=False) as session:
            yield cls(session)

    def create(self, record: M) -> M:
        self._session.add(record)
        return record

    def save(self, record: M) -> M:
        self._session.add(record)
        return record

    def delete(self, record: SQLModel) -> None:
        self._session.delete(record)

    def get(
        self,
        model: type[M],
        record_id: str,
        *,
        for_update: bool = False,
        label: str | None = None,
    ) -> M:
        statement = select(model).where(getattr(model, "id") == record_id)
        if for_update:
            statement = statement.with_for_update()
        try:
            row = self._session.exec(statement).first()
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to load {label or model.__name__.lower()}") from exc
        if row is None:
            raise NotFoundError(f"{label or model.__name__.lower()} not found")
        return row

    def find_many(
        self,
        model: type[M],
        *criteria: Any,
        order_by: Any | None = None,
        offset: int | None = None,
        limit: int | None = None,
    ) -> list[M]:
        statement = select(model)
        for criterion in criteria:
            statement = statement.where(criterion)
        if order_by is not None:
            statement = statement.order_by(order_by)
        if offset:
            statement = statement.offset(offset)
        if limit is not None:
            statement = statement.limit(limit)
        try:
            return list(self._session.exec(statement).all())
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to query {model.__name__.lower()}") from exc

    def count(self, model: type[SQLModel], *criteria: Any) -> int:
        statement = select(func.count()).select_from(model)
        for criterion in criteria:
            statement = statement.where(criterion)
        try:
            return int(self._session.exec(statement).one())
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to count {model.__name__.lower()}") from exc

    def update_many(self, model: type[SQLModel], criteria: Sequence[Any], values: dict[str, Any]) -> int:
        statement = update(model).values(**values)
        for criterion in criteria:
            statement = statement.where(criterion)
        try:
            result = self._session.connection().execute(statement)
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to update {model.__name__.lower()}") from exc
        return int(result.rowcount or 0)

    def next_number(self, prefix: str, now: datetime) -> str:
        return f"{prefix}{now.year}{self._increment(prefix):06d}"

    def _increment(self, name: str) -> int:
        # The row lock taken by UPDATE serialises concurrent callers until commit.
        try:
            result = self._session.connection().execute(
                update(SequenceCounter)
                .where(SequenceCounter.name == name)  # type: ignore[arg-type]
                .values(value=SequenceCounter.value + 1)
            )
            if not result.rowcount:
                self._session.add(SequenceCounter(name=name, value=1))
                self._session.flush()
                return 1
            value = self._session.exec(
                select(SequenceCounter.value).where(SequenceCounter.name == name)
            ).one()
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to allocate {name} number") from exc
        return int(value)

    def commit(self) -> None:
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StoreError("failed to persist changes") from exc
