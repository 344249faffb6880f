from __future__ import annotations

from pathlib import Path

import pytest

from scanner_shared.config import DatabaseKind
from scanner_shared.database.executor import QueryExecutor
from scanner_shared.settings_store import SettingsStore

from tests.support import SqliteConnector, make_settings, seed_database


@pytest.fixture
def database(tmp_path: Path) -> Path:
    return seed_database(tmp_path / "shop.sqlite")


@pytest.fixture
def connector(database: Path) -> SqliteConnector:
    return SqliteConnector(database)


@pytest.fixture(params=["postgres", "mssql"])
def db_type(request) -> str:
    return request.param


@pytest.fixture
def store(db_type: str) -> SettingsStore:
    return SettingsStore(initial=make_settings(db_type))


@pytest.fixture
def executor(store: SettingsStore, connector: SqliteConnector) -> QueryExecutor:
    return QueryExecutor(
        store,
        connectors={DatabaseKind.POSTGRES: connector, DatabaseKind.SQL_SERVER: connector},
    )
