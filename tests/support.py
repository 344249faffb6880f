"""Builders and driver stand-ins shared by the test modules."""
from __future__ import annotations

import re
import sqlite3
from pathlib import Path
from typing import Any

from scanner_shared.config import AppConfig, ConnectionSettings, SchemaMapping, Settings

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 8

_PYFORMAT_RE = re.compile(r"%\((\w+)\)s")


def make_connection_settings(db_type: str = "postgres", **overrides: Any) -> ConnectionSettings:
    values = dict(
        db_type=db_type,
        server="db.local",
        port=None,
        database="shop",
        user="scanner",
        password="s3cret",
        ssl=False,
        encrypt=False,
        trust_server_certificate=False,
        timeout=10.0,
    )
    values.update(overrides)
    return ConnectionSettings(**values)


def make_mapping(**overrides: Any) -> SchemaMapping:
    values = dict(
        barcode_table="barcodes",
        barcode_column="barcode",
        product_code_column="product_code",
        products_table="products",
        products_code_column="product_code",
        products_name_column="product_name",
        products_image_column="product_image",
        products_price1_column="price1",
        products_price2_column="price2",
        products_price3_column="price3",
    )
    values.update(overrides)
    return SchemaMapping(**values)


def make_settings(db_type: str = "postgres", **mapping: Any) -> Settings:
    return Settings(connection=make_connection_settings(db_type), mapping=make_mapping(**mapping))


def make_app_config(**overrides: Any) -> AppConfig:
    values = dict(
        host="127.0.0.1",
        port=5000,
        debug=False,
        environment="development",
        secret_key="test-secret",
        cors_origins=["http://localhost:3000"],
        api_base_url="/api",
        settings_file=None,
    )
    values.update(overrides)
    return AppConfig(**values)


class RecordingCursor:
    def __init__(self, cursor: sqlite3.Cursor, connector: "SqliteConnector") -> None:
        self._cursor = cursor
        self._connector = connector

    @property
    def description(self):
        return self._cursor.description

    def execute(self, sql: str, parameters: Any) -> None:
        self._connector.statements.append((sql, parameters))
        if self._connector.on_execute is not None:
            self._connector.on_execute(len(self._connector.statements))
        if isinstance(parameters, dict):
            # psycopg2 pyformat -> sqlite named style
            sql = _PYFORMAT_RE.sub(r":\1", sql).replace("%%", "%")
        self._cursor.execute(sql, parameters)

    def fetchall(self):
        return self._cursor.fetchall()

    def close(self) -> None:
        self._cursor.close()


class RecordingConnection:
    def __init__(self, conn: sqlite3.Connection, connector: "SqliteConnector") -> None:
        self._conn = conn
        self._connector = connector

    def cursor(self) -> RecordingCursor:
        return RecordingCursor(self._conn.cursor(), self._connector)

    def close(self) -> None:
        self._connector.closed += 1
        self._conn.close()


class SqliteConnector:
    """Driver stand-in: every call opens a fresh sqlite connection to the seeded file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.descriptors: list = []
        self.statements: list = []
        self.closed = 0
        self.on_execute = None

    def __call__(self, descriptor):
        self.descriptors.append(descriptor)
        return RecordingConnection(sqlite3.connect(str(self.path)), self)


class FailingConnector:
    """Connector whose connection opens fine but whose statements fail."""

    def __init__(self, error: Exception, fail_on_connect: bool = False) -> None:
        self.error = error
        self.fail_on_connect = fail_on_connect
        self.calls = 0
        self.closed = 0

    def __call__(self, descriptor):
        self.calls += 1
        if self.fail_on_connect:
            raise self.error
        connector = self

        class _Cursor:
            description = None

            def execute(self, sql, parameters):
                raise connector.error

            def close(self):
                pass

        class _Connection:
            def cursor(self):
                return _Cursor()

            def close(self):
                connector.closed += 1

        return _Connection()


def seed_database(path: Path) -> Path:
    conn = sqlite3.connect(str(path))
    conn.executescript(
        """
        CREATE TABLE barcodes (barcode TEXT, product_code TEXT);
        CREATE TABLE products (
            product_code TEXT,
            product_name TEXT,
            product_image BLOB,
            price1 INTEGER,
            price2 INTEGER,
            price3 INTEGER
        );
        INSERT INTO barcodes VALUES ('012345', 'SKU1');
        INSERT INTO barcodes VALUES ('099999', 'SKU404');
        INSERT INTO products VALUES ('SKU1', 'Widget', NULL, 1000, NULL, NULL);
        """
    )
    conn.execute(
        "INSERT INTO products VALUES (?, ?, ?, ?, ?, ?)",
        ("SKU2", "Gadget", PNG_BYTES, 2500, 2300, 2100),
    )
    conn.commit()
    conn.close()
    return path
