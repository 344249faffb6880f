import re

from scanner_shared.exceptions import ConfigurationError

IDENTIFIER_RE = re.compile(r'^[A-Za-z0-9_]+$')

_TRUE_VALUES = {'true', '1', 'yes', 'on'}


def validate_non_empty_string(value):
    return isinstance(value, str) and bool(value.strip())


def validate_identifier(value):
    return isinstance(value, str) and IDENTIFIER_RE.match(value) is not None


def parse_bool(value, default=False):
    """Accept JSON booleans and the usual env-style strings."""
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def parse_int(value, default=None):
    if value is None or value == '':
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_port(value):
    """TCP port or None when unset; anything else is a ConfigurationError."""
    if value is None or value == '':
        return None
    port = None if isinstance(value, bool) else parse_int(value)
    if port is None or not 0 < port < 65536:
        raise ConfigurationError(f"Invalid database port: {value!r}")
    return port


def parse_timeout(value, default):
    """Positive number of seconds; unset falls back to ``default``."""
    if value is None or value == '':
        return default
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid database timeout: {value!r}")
    if not timeout > 0:
        raise ConfigurationError("Database timeout must be positive")
    return timeout
