"""
Settings Service - server-side mirror of the settings page
"""
from typing import Any, Dict, Mapping, Optional

from scanner_shared.database.executor import QueryExecutor
from scanner_shared.exceptions import ConfigurationError
from scanner_shared.logging import get_logger, mask_secrets

logger = get_logger(__name__)


class SettingsService:
    """Read/save operator settings and test ad-hoc connections."""

    def __init__(self, settings_store, executor: Optional[QueryExecutor] = None):
        self.settings_store = settings_store
        self.executor = executor or QueryExecutor(settings_store)

    def summary(self) -> Dict[str, Any]:
        """Non-secret view of the current connection target."""
        connection = self.settings_store.read().connection
        logger.info(
            f"Current database settings: {connection.database or 'Not configured'} "
            f"on {connection.server or 'Not configured'}"
        )
        return {
            'dbType': connection.db_type or 'postgres',
            'dbName': connection.database,
        }

    def save(self, payload: Mapping[str, Any]) -> None:
        if not isinstance(payload, Mapping):
            raise ConfigurationError("Settings must be a JSON object")
        self.settings_store.write(payload)
        logger.info("Settings saved")

    def test_connection(self, payload: Mapping[str, Any]) -> None:
        """Raise ConfigurationError or DatabaseError when the connection fails."""
        if not isinstance(payload, Mapping):
            raise ConfigurationError("Connection fields must be a JSON object")
        logger.info(f"Connection test parameters: {mask_secrets(payload)}")
        self.executor.test_connection(payload)
        logger.info("Database connection test successful")
