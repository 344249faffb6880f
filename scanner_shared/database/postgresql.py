"""PostgreSQL connections using the psycopg2 driver.

One connection per call; nothing is pooled across requests.
"""
import psycopg2

from scanner_shared.database.connection import ConnectionDescriptor


def connect_kwargs(descriptor: ConnectionDescriptor) -> dict:
    """Keyword arguments for ``psycopg2.connect``.

    The timeout bounds both the TCP/login phase and each statement.
    """
    timeout = max(1, int(round(descriptor.timeout)))
    return {
        'host': descriptor.host,
        'port': descriptor.port,
        'dbname': descriptor.database or None,
        'user': descriptor.user or None,
        'password': descriptor.password or None,
        'sslmode': 'require' if descriptor.ssl else 'disable',
        'connect_timeout': timeout,
        'options': f"-c statement_timeout={int(descriptor.timeout * 1000)}",
    }


def get_connection(descriptor: ConnectionDescriptor):
    """Open a new psycopg2 connection.

    Usage::

        with closing(get_connection(descriptor)) as conn:
            with closing(conn.cursor()) as cursor:
                cursor.execute(...)
    """
    return psycopg2.connect(**connect_kwargs(descriptor))
