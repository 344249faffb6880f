"""
Process-wide settings store.

Holds one immutable ``Settings`` snapshot. Readers take the snapshot once per
request; writers merge a partial camelCase payload and swap the snapshot under
a lock, so a request never sees half of an update.
"""
import json
import os
import tempfile
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from scanner_shared.config import (
    CONNECTION_PAYLOAD_KEYS,
    MAPPING_PAYLOAD_KEYS,
    DatabaseKind,
    Settings,
)
from scanner_shared.exceptions import ConfigurationError
from scanner_shared.logging import get_logger, mask_secrets
from scanner_shared.validators import parse_bool, parse_port, parse_timeout, validate_identifier

logger = get_logger(__name__)

_BOOL_FIELDS = {'ssl', 'encrypt', 'trust_server_certificate'}


def _connection_changes(current, partial: Mapping[str, Any]) -> Dict[str, Any]:
    changes = {}
    for key, attr in CONNECTION_PAYLOAD_KEYS.items():
        if key not in partial:
            continue
        value = partial[key]
        if attr in _BOOL_FIELDS:
            changes[attr] = parse_bool(value)
        elif attr == 'port':
            changes[attr] = parse_port(value)
        elif attr == 'timeout':
            changes[attr] = parse_timeout(value, current.timeout)
        elif attr == 'db_type':
            changes[attr] = DatabaseKind.parse(value or 'postgres').value
        else:
            changes[attr] = '' if value is None else str(value).strip()

    # Switching dialect without an explicit port falls back to the new default
    if 'db_type' in changes and changes['db_type'] != current.db_type and 'port' not in changes:
        changes['port'] = None
    return changes


def _mapping_changes(partial: Mapping[str, Any]) -> Dict[str, Any]:
    changes = {}
    for key, attr in MAPPING_PAYLOAD_KEYS.items():
        if key not in partial:
            continue
        value = partial[key]
        value = str(value).strip() if value is not None else ''
        if value and not validate_identifier(value):
            raise ConfigurationError(
                f"Invalid name for {key}: {value!r} (only letters, digits and '_' are allowed)"
            )
        changes[attr] = value or None
    return changes


def merge_settings(current: Settings, partial: Mapping[str, Any]) -> Settings:
    """Return a new snapshot with ``partial`` merged over ``current``."""
    return Settings(
        connection=replace(current.connection, **_connection_changes(current.connection, partial)),
        mapping=replace(current.mapping, **_mapping_changes(partial)),
    )


class SettingsStore:
    """Thread-safe holder of the current settings snapshot.

    When ``path`` is given, saved settings are loaded on start (over the
    environment defaults) and rewritten after every successful write.
    """

    def __init__(self, initial: Optional[Settings] = None, path: Optional[str] = None):
        self._lock = threading.Lock()
        self._path = Path(path) if path else None
        settings = initial if initial is not None else Settings()
        if self._path is not None and self._path.exists():
            settings = merge_settings(settings, self._load_file())
            logger.info(f"Loaded saved settings from {self._path}")
        self._settings = settings

    def read(self) -> Settings:
        """Return the current snapshot. Snapshots are immutable."""
        with self._lock:
            return self._settings

    def write(self, partial: Mapping[str, Any]) -> Settings:
        """Merge ``partial`` into the current settings and persist the result."""
        logger.info(f"Saving settings: {mask_secrets(partial)}")
        with self._lock:
            updated = merge_settings(self._settings, partial)
            if self._path is not None:
                self._save_file(updated)
            self._settings = updated
        return updated

    def _load_file(self) -> Dict[str, Any]:
        try:
            with open(self._path, 'r', encoding='utf-8') as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Could not read settings file {self._path}: {e}")
        if not isinstance(data, dict):
            raise ConfigurationError(f"Settings file {self._path} must contain a JSON object")
        return data

    def _save_file(self, settings: Settings) -> None:
        payload = settings.to_payload(include_password=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(self._path.parent), prefix='.settings-')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                json.dump(payload, fh, indent=2)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self._path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
