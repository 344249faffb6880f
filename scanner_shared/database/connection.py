"""
Connection config resolver.

Builds a ``ConnectionDescriptor`` either from a settings snapshot or from an
explicit override (the test-connection form). Pure: nothing here opens a
socket, so invalid input fails before any network I/O.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from scanner_shared.config import DEFAULT_TIMEOUT, ConnectionSettings, DatabaseKind
from scanner_shared.exceptions import ConfigurationError
from scanner_shared.logging import MASK, get_logger
from scanner_shared.validators import (
    parse_bool,
    parse_port,
    parse_timeout,
    validate_non_empty_string,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConnectionDescriptor:
    """Everything a driver needs to open one connection."""
    kind: DatabaseKind
    host: str
    port: int
    database: str = ''
    user: str = ''
    password: str = field(default='', repr=False)
    ssl: bool = False
    encrypt: bool = False
    trust_server_certificate: bool = False
    timeout: float = DEFAULT_TIMEOUT

    def masked(self) -> Dict[str, Any]:
        """Loggable view with the password replaced."""
        view = {
            'kind': self.kind.value,
            'host': self.host,
            'port': self.port,
            'database': self.database,
            'user': self.user,
            'password': MASK if self.password else '',
            'timeout': self.timeout,
        }
        if self.kind is DatabaseKind.SQL_SERVER:
            view['encrypt'] = self.encrypt
            view['trust_server_certificate'] = self.trust_server_certificate
        else:
            view['ssl'] = self.ssl
        return view


def _require_host(value) -> str:
    if not validate_non_empty_string(value):
        raise ConfigurationError(
            "The database server (host) is required and must be a non-empty string."
        )
    return value.strip()


def _port(value, kind: DatabaseKind) -> int:
    return parse_port(value) or kind.default_port


def descriptor_from_override(override: Mapping[str, Any]) -> ConnectionDescriptor:
    """Validate an explicit connection payload.

    Accepts the client field names (``dbServer``, ``dbPort``, ...) and the bare
    ``server`` spelling; the two host fields are coalesced. Database and user
    may be empty here because a connection test only needs to reach the server.
    """
    kind = DatabaseKind.parse(override.get('dbType') or 'postgres')
    host = override.get('dbServer') or override.get('server')
    descriptor = ConnectionDescriptor(
        kind=kind,
        host=_require_host(host),
        port=_port(override.get('dbPort'), kind),
        database=str(override.get('dbName') or ''),
        user=str(override.get('dbUser') or ''),
        password=str(override.get('dbPassword') or ''),
        ssl=parse_bool(override.get('dbSsl')),
        encrypt=parse_bool(override.get('dbEncrypt')),
        trust_server_certificate=parse_bool(override.get('dbTrustServerCert')),
        timeout=parse_timeout(override.get('dbTimeout'), DEFAULT_TIMEOUT),
    )
    logger.debug(f"Resolved override connection: {descriptor.masked()}")
    return descriptor


def descriptor_from_settings(settings: ConnectionSettings) -> ConnectionDescriptor:
    """Build a descriptor from stored settings, applying dialect defaults."""
    kind = DatabaseKind.parse(settings.db_type or 'postgres')
    host = _require_host(settings.server)
    missing = [label for label, value in (('database', settings.database), ('user', settings.user))
               if not validate_non_empty_string(value)]
    if missing:
        raise ConfigurationError(f"Database {' and '.join(missing)} must be configured")

    descriptor = ConnectionDescriptor(
        kind=kind,
        host=host,
        port=_port(settings.port, kind),
        database=settings.database,
        user=settings.user,
        password=settings.password or '',
        ssl=settings.ssl,
        encrypt=settings.encrypt,
        trust_server_certificate=settings.trust_server_certificate,
        timeout=parse_timeout(settings.timeout, DEFAULT_TIMEOUT),
    )
    logger.debug(f"Resolved {kind.value} connection: {descriptor.masked()}")
    return descriptor


def resolve(settings: Optional[ConnectionSettings] = None,
            override: Optional[Mapping[str, Any]] = None) -> ConnectionDescriptor:
    """Resolve the connection for one call. An override always wins."""
    if override is not None:
        return descriptor_from_override(override)
    if settings is None:
        raise ConfigurationError("No database connection settings available")
    return descriptor_from_settings(settings)
