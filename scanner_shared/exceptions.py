"""Project-wide exceptions for the scanner service."""

from __future__ import annotations


class ScannerError(Exception):
    """Base exception for the barcode scanner service."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(ScannerError):
    """Raised when a connection or identifier setting is missing or invalid.

    Always detected before any network I/O.
    """

    status_code = 400


class DatabaseError(ScannerError):
    """Raised when the driver fails to connect or execute a statement."""

    status_code = 500

    def __init__(self, dialect: str, message: str):
        super().__init__(f"{dialect} error: {message}")
        self.dialect = dialect
        self.driver_message = message
