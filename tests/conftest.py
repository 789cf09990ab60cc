from __future__ import annotations

from collections.abc import Callable, Generator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

from permitflow.domain.models import User, UserRole
from permitflow.infra import db, events
from permitflow.infra.clock import FixedClock
from permitflow.infra.settings import WorkflowSettings
from permitflow.infra.store import EntityStore


class RecordingDispatcher:
    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.sent: list[tuple[str, str, dict[str, Any]]] = []
        self.fail_on = fail_on or set()

    def notify(self, recipient_id: str, event_kind: str, payload: dict[str, Any]) -> None:
        if event_kind in self.fail_on:
            raise RuntimeError(f"transport down for {event_kind}")
        self.sent.append((recipient_id, event_kind, payload))

    def kinds(self) -> list[str]:
        return [kind for _, kind, _ in self.sent]


@pytest.fixture()
def test_engine(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[Engine, None, None]:
    db_path = tmp_path / "permitflow_test.db"
    engine = db.build_engine(f"sqlite:///{db_path}")

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection: object, _connection_record: object) -> None:
        cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    SQLModel.metadata.create_all(engine)
    monkeypatch.setattr(db, "engine", engine)
    monkeypatch.setattr(events, "engine", engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(datetime(2025, 1, 1, 12, 0, tzinfo=UTC))


@pytest.fixture()
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture()
def settings() -> WorkflowSettings:
    return WorkflowSettings()


def _create_user(
    name: str,
    role: UserRole,
    *,
    is_active: bool = True,
    created_at: datetime | None = None,
) -> User:
    user = User(
        name=name,
        email=f"{name.lower().replace(' ', '.')}@example.org",
        role=role,
        is_active=is_active,
    )
    if created_at is not None:
        user.created_at = created_at
    with EntityStore.open() as store:
        store.create(user)
        store.commit()
    return user


@pytest.fixture()
def make_user(test_engine: Engine) -> Callable[..., User]:
    return _create_user
