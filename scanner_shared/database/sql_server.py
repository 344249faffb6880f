"""SQL Server / Azure SQL connections using the mssql-python driver.

Uses SQL authentication (user/password) built from a ``ConnectionDescriptor``.
"""
from scanner_shared.database.connection import ConnectionDescriptor


def _escape(value: str) -> str:
    """Brace-quote a connection string value that contains ';' or '}'."""
    if value and (';' in value or '}' in value or value != value.strip()):
        return '{' + value.replace('}', '}}') + '}'
    return value


def get_connection_string(descriptor: ConnectionDescriptor) -> str:
    """Build the connection string for mssql-python with SQL authentication."""
    parts = [
        f"Server={_escape(descriptor.host)},{descriptor.port}",
    ]
    if descriptor.database:
        parts.append(f"Database={_escape(descriptor.database)}")
    if descriptor.user:
        parts.append(f"UID={_escape(descriptor.user)}")
    if descriptor.password:
        parts.append(f"PWD={_escape(descriptor.password)}")
    parts.append(f"Encrypt={'yes' if descriptor.encrypt else 'no'}")
    parts.append(f"TrustServerCertificate={'yes' if descriptor.trust_server_certificate else 'no'}")
    return ';'.join(parts) + ';'


def get_connection(descriptor: ConnectionDescriptor):
    """
    Open a new mssql-python connection.

    Usage:
        with closing(get_connection(descriptor)) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT [sku] FROM [products] WHERE [sku] = ?", ('A1',))
            rows = cursor.fetchall()
    """
    from mssql_python import connect
    return connect(get_connection_string(descriptor), timeout=max(1, int(round(descriptor.timeout))))
