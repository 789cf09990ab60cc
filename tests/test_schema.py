from __future__ import annotations

import importlib.util
from pathlib import Path
from types import ModuleType

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import DateTime, inspect
from sqlmodel import SQLModel, create_engine

import permitflow.domain.models  # noqa: F401

VERSIONS_DIR = Path(__file__).resolve().parents[1] / "infra" / "migrations" / "versions"


def _load_revision(filename: str) -> ModuleType:
    spec = importlib.util.spec_from_file_location(filename.removesuffix(".py"), VERSIONS_DIR / filename)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_model_datetime_columns_are_timezone_aware() -> None:
    naive = [
        f"{table.name}.{column.name}"
        for table in SQLModel.metadata.sorted_tables
        for column in table.columns
        if isinstance(column.type, DateTime) and not column.type.timezone
    ]

    assert naive == []


def test_initial_migration_matches_model_tables() -> None:
    revision = _load_revision("202610010001_init_permit_workflow.py")
    engine = create_engine("sqlite:///:memory:")

    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            revision.upgrade()
        inspector = inspect(conn)
        migrated = {
            name: {column["name"] for column in inspector.get_columns(name)}
            for name in inspector.get_table_names()
        }

    modelled = {table.name: {column.name for column in table.columns} for table in SQLModel.metadata.sorted_tables}
    assert migrated == modelled
