"""
Query executor - one connection per call, always released.
"""
import time
from contextlib import closing
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from scanner_shared.config import DatabaseKind, Settings
from scanner_shared.database import postgresql, sql_server
from scanner_shared.database.connection import ConnectionDescriptor, resolve
from scanner_shared.database.dialects import BoundQuery, DialectAdapter, get_dialect
from scanner_shared.exceptions import DatabaseError, ScannerError
from scanner_shared.logging import get_logger

logger = get_logger(__name__)

Connector = Callable[[ConnectionDescriptor], Any]


def default_connectors() -> Dict[DatabaseKind, Connector]:
    return {
        DatabaseKind.POSTGRES: postgresql.get_connection,
        DatabaseKind.SQL_SERVER: sql_server.get_connection,
    }


def rows_to_dicts(cursor) -> List[Dict[str, Any]]:
    """Fetch every row eagerly and key it by the column names the driver reports."""
    if cursor.description is None:
        return []
    columns = [col[0] for col in cursor.description]
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


class QueryExecutor:
    """Executes canonical ``$N`` queries against the configured database.

    Every call resolves its own connection settings, opens its own connection
    and closes it on success, error or early return. Nothing is retried.
    """

    def __init__(self, settings_store=None,
                 connectors: Optional[Mapping[DatabaseKind, Connector]] = None):
        self.settings_store = settings_store
        self._connectors = dict(connectors) if connectors is not None else None

    def _connector(self, kind: DatabaseKind) -> Connector:
        connectors = self._connectors if self._connectors is not None else default_connectors()
        return connectors[kind]

    def execute(self, sql_template: str, params: Sequence[Any] = (),
                config_override: Optional[Mapping[str, Any]] = None,
                settings: Optional[Settings] = None) -> List[Dict[str, Any]]:
        """Run one query and return its rows as dicts.

        ``settings`` pins the snapshot to use; callers that issue several
        queries for one request pass the same snapshot to each call.
        """
        if config_override is None and settings is None and self.settings_store is not None:
            settings = self.settings_store.read()
        descriptor = resolve(settings.connection if settings is not None else None, config_override)
        dialect = get_dialect(descriptor.kind)
        bound = dialect.translate(sql_template, params)
        return self.run(descriptor, dialect, bound)

    def run(self, descriptor: ConnectionDescriptor, dialect: DialectAdapter,
            bound: BoundQuery) -> List[Dict[str, Any]]:
        logger.debug(f"Executing {dialect.name} query: {' '.join(bound.sql.split())}")
        logger.debug(f"Query parameters: {list(bound.bindings)}")
        started = time.monotonic()
        try:
            with closing(self._connector(descriptor.kind)(descriptor)) as conn:
                with closing(conn.cursor()) as cursor:
                    cursor.execute(bound.sql, bound.parameters)
                    rows = rows_to_dicts(cursor)
        except ScannerError:
            raise
        except Exception as e:
            logger.error(f"{dialect.name} query failed on {descriptor.host}: {e}")
            raise DatabaseError(dialect.name, str(e)) from e

        elapsed = (time.monotonic() - started) * 1000
        logger.info(f"{dialect.name} query returned {len(rows)} row(s) in {elapsed:.0f}ms")
        return rows

    def test_connection(self, config_override: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """Run the dialect's probe query against an explicit connection."""
        descriptor = resolve(override=config_override)
        logger.info(f"Testing connection: {descriptor.masked()}")
        dialect = get_dialect(descriptor.kind)
        return self.run(descriptor, dialect, dialect.translate(dialect.probe_query))
