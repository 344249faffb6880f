from .connection import ConnectionDescriptor, resolve
from .dialects import BoundQuery, DialectAdapter, PostgresDialect, SqlServerDialect, get_dialect
from .executor import QueryExecutor

__all__ = [
    'ConnectionDescriptor', 'resolve',
    'BoundQuery', 'DialectAdapter', 'PostgresDialect', 'SqlServerDialect', 'get_dialect',
    'QueryExecutor',
]
