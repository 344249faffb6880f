"""
Shared configuration module - reads from environment variables
Supports PostgreSQL and SQL Server connections with runtime table/column mapping
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from dotenv import load_dotenv

from scanner_shared.exceptions import ConfigurationError
from scanner_shared.validators import parse_bool, parse_int, parse_port, parse_timeout

load_dotenv()


class DatabaseKind(str, Enum):
    """Supported database dialect families."""

    POSTGRES = 'postgres'
    SQL_SERVER = 'mssql'

    @property
    def default_port(self) -> int:
        return 1433 if self is DatabaseKind.SQL_SERVER else 5432

    @classmethod
    def parse(cls, value) -> 'DatabaseKind':
        if isinstance(value, cls):
            return value
        key = str(value or '').strip().lower()
        kind = _KIND_ALIASES.get(key)
        if kind is None:
            raise ConfigurationError(f"Unsupported database type: {value!r}")
        return kind


_KIND_ALIASES = {
    'postgres': DatabaseKind.POSTGRES,
    'postgresql': DatabaseKind.POSTGRES,
    'pg': DatabaseKind.POSTGRES,
    'mssql': DatabaseKind.SQL_SERVER,
    'sqlserver': DatabaseKind.SQL_SERVER,
    'azuresql': DatabaseKind.SQL_SERVER,
}

DEFAULT_TIMEOUT = 10.0


def _env(name: str, default: str = '') -> str:
    return os.getenv(name, default)


def _env_optional(name: str) -> Optional[str]:
    return os.getenv(name) or None


@dataclass(frozen=True)
class ConnectionSettings:
    """
    Database connection fields as configured by the operator.
    The password is excluded from repr so it never leaks into logs.
    """
    db_type: str = field(default_factory=lambda: _env('DB_TYPE', 'postgres'))
    server: str = field(default_factory=lambda: _env('DB_SERVER'))
    port: Optional[int] = field(default_factory=lambda: _env_optional('DB_PORT'))
    database: str = field(default_factory=lambda: _env('DB_NAME'))
    user: str = field(default_factory=lambda: _env('DB_USER'))
    password: str = field(default_factory=lambda: _env('DB_PASSWORD'), repr=False)
    # PostgreSQL
    ssl: bool = field(default_factory=lambda: parse_bool(os.getenv('DB_SSL')))
    # SQL Server
    encrypt: bool = field(default_factory=lambda: parse_bool(os.getenv('DB_ENCRYPT')))
    trust_server_certificate: bool = field(
        default_factory=lambda: parse_bool(os.getenv('DB_TRUST_SERVER_CERT'))
    )
    timeout: float = field(default_factory=lambda: _env_optional('DB_TIMEOUT'))

    def __post_init__(self):
        # Env values and saved payloads arrive as strings; store them parsed
        object.__setattr__(self, 'db_type', DatabaseKind.parse(self.db_type or 'postgres').value)
        object.__setattr__(self, 'port', parse_port(self.port))
        object.__setattr__(self, 'timeout', parse_timeout(self.timeout, DEFAULT_TIMEOUT))


@dataclass(frozen=True)
class SchemaMapping:
    """Operator-configured table and column names used by the product lookup."""
    barcode_table: Optional[str] = field(default_factory=lambda: _env_optional('BARCODE_TABLE'))
    barcode_column: Optional[str] = field(default_factory=lambda: _env_optional('BARCODE_COLUMN'))
    product_code_column: Optional[str] = field(
        default_factory=lambda: _env_optional('PRODUCT_CODE_COLUMN')
    )
    products_table: Optional[str] = field(default_factory=lambda: _env_optional('PRODUCTS_TABLE'))
    products_code_column: Optional[str] = field(
        default_factory=lambda: _env_optional('PRODUCTS_CODE_COLUMN')
    )
    products_name_column: Optional[str] = field(
        default_factory=lambda: _env_optional('PRODUCTS_NAME_COLUMN')
    )
    products_image_column: Optional[str] = field(
        default_factory=lambda: _env_optional('PRODUCTS_IMAGE_COLUMN')
    )
    products_price1_column: Optional[str] = field(
        default_factory=lambda: _env_optional('PRODUCTS_PRICE1_COLUMN')
    )
    products_price2_column: Optional[str] = field(
        default_factory=lambda: _env_optional('PRODUCTS_PRICE2_COLUMN')
    )
    products_price3_column: Optional[str] = field(
        default_factory=lambda: _env_optional('PRODUCTS_PRICE3_COLUMN')
    )

    REQUIRED = (
        'products_table',
        'products_code_column',
        'products_name_column',
        'products_price1_column',
    )

    @property
    def has_barcode_table(self) -> bool:
        return bool(self.barcode_table and self.barcode_column and self.product_code_column)

    def missing_required(self) -> List[str]:
        return [name for name in self.REQUIRED if not getattr(self, name)]


# camelCase keys used by the browser client and the JSON API
CONNECTION_PAYLOAD_KEYS: Dict[str, str] = {
    'dbType': 'db_type',
    'dbServer': 'server',
    'dbPort': 'port',
    'dbName': 'database',
    'dbUser': 'user',
    'dbPassword': 'password',
    'dbSsl': 'ssl',
    'dbEncrypt': 'encrypt',
    'dbTrustServerCert': 'trust_server_certificate',
    'dbTimeout': 'timeout',
}

MAPPING_PAYLOAD_KEYS: Dict[str, str] = {
    'barcodeTable': 'barcode_table',
    'barcodeColumn': 'barcode_column',
    'productCodeColumn': 'product_code_column',
    'productsTable': 'products_table',
    'productsCodeColumn': 'products_code_column',
    'productsNameColumn': 'products_name_column',
    'productsImageColumn': 'products_image_column',
    'productsPrice1Column': 'products_price1_column',
    'productsPrice2Column': 'products_price2_column',
    'productsPrice3Column': 'products_price3_column',
}


@dataclass(frozen=True)
class Settings:
    """Immutable snapshot of everything the query layer reads per request."""
    connection: ConnectionSettings = field(default_factory=ConnectionSettings)
    mapping: SchemaMapping = field(default_factory=SchemaMapping)

    def to_payload(self, include_password: bool = False) -> dict:
        payload = {}
        for key, attr in CONNECTION_PAYLOAD_KEYS.items():
            if attr == 'password' and not include_password:
                continue
            payload[key] = getattr(self.connection, attr)
        for key, attr in MAPPING_PAYLOAD_KEYS.items():
            payload[key] = getattr(self.mapping, attr)
        return payload


@dataclass
class AppConfig:
    """Flask application settings."""
    host: str = field(default_factory=lambda: _env('HOST', '0.0.0.0'))
    port: int = field(default_factory=lambda: parse_int(os.getenv('PORT'), 5000))
    debug: bool = field(default_factory=lambda: parse_bool(os.getenv('FLASK_DEBUG')))
    environment: str = field(default_factory=lambda: _env('ENVIRONMENT', 'development').lower())
    secret_key: str = field(default_factory=lambda: _env('SECRET_KEY', 'dev-secret-key-scanner'))
    cors_origins: List[str] = field(default_factory=lambda: [
        origin.strip()
        for origin in _env('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000').split(',')
        if origin.strip()
    ])
    # Scheme and host the pages use to reach the API; relative by default
    api_base_url: str = field(default_factory=lambda: _env('API_BASE_URL', '/api'))
    settings_file: Optional[str] = field(default_factory=lambda: _env_optional('SETTINGS_FILE'))

    @property
    def is_production(self) -> bool:
        return self.environment == 'production'
