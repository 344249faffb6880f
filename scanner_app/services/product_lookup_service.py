"""
Product Lookup Service - resolves a scanned barcode to a product record
Works on any schema through the operator-configured table/column mapping
"""
from typing import List, Optional, Tuple

from scanner_shared.config import SchemaMapping, Settings
from scanner_shared.database.dialects import DialectAdapter, get_dialect
from scanner_shared.database.executor import QueryExecutor
from scanner_shared.exceptions import ConfigurationError
from scanner_shared.logging import get_logger
from scanner_app.models.product import ProductRecord

logger = get_logger(__name__)


class ProductLookupService:
    """Barcode -> product code -> product record, in two sequential queries."""

    def __init__(self, settings_store, executor: Optional[QueryExecutor] = None):
        self.settings_store = settings_store
        self.executor = executor or QueryExecutor(settings_store)

    def _barcode_query(self, dialect: DialectAdapter, mapping: SchemaMapping) -> str:
        return (
            f"SELECT {dialect.bracket_identifier(mapping.product_code_column)} "
            f"FROM {dialect.bracket_identifier(mapping.barcode_table)} "
            f"WHERE {dialect.bracket_identifier(mapping.barcode_column)} = $1"
        )

    def _projection(self, dialect: DialectAdapter, mapping: SchemaMapping) -> List[Tuple[str, str]]:
        columns = [
            (mapping.products_code_column, 'productCode'),
            (mapping.products_name_column, 'productName'),
            (mapping.products_image_column, 'productImage'),
            (mapping.products_price1_column, 'price1'),
            (mapping.products_price2_column, 'price2'),
            (mapping.products_price3_column, 'price3'),
        ]
        return [(dialect.bracket_identifier(column), alias) for column, alias in columns if column]

    def _product_query(self, dialect: DialectAdapter, mapping: SchemaMapping) -> str:
        missing = mapping.missing_required()
        if missing:
            raise ConfigurationError(
                f"Product lookup is not configured; missing: {', '.join(missing)}"
            )
        select_list = ', '.join(
            f"{column} AS {dialect.quote_alias(alias)}"
            for column, alias in self._projection(dialect, mapping)
        )
        return (
            f"SELECT {select_list} "
            f"FROM {dialect.bracket_identifier(mapping.products_table)} "
            f"WHERE {dialect.bracket_identifier(mapping.products_code_column)} = $1"
        )

    def resolve_product_code(self, barcode: str, settings: Settings) -> str:
        """Product code for ``barcode``; the barcode itself when no mapping row exists."""
        mapping = settings.mapping
        if not mapping.has_barcode_table:
            logger.info("Barcode table not configured, skipping barcode lookup")
            return barcode

        dialect = get_dialect(settings.connection.db_type)
        rows = self.executor.execute(
            self._barcode_query(dialect, mapping), [barcode], settings=settings
        )
        if rows:
            product_code = rows[0].get(dialect.result_key(mapping.product_code_column))
            if product_code is not None and product_code != '':
                logger.info(f"Found product code in {mapping.barcode_table}: {product_code}")
                return product_code

        logger.info(f"Barcode {barcode} not found in {mapping.barcode_table}, using it as product code")
        return barcode

    def lookup_by_barcode(self, barcode: str) -> Optional[ProductRecord]:
        """Return the product for ``barcode`` or None when no product matches."""
        # One snapshot for both queries so a concurrent save cannot mix mappings
        settings = self.settings_store.read()
        dialect = get_dialect(settings.connection.db_type)
        product_query = self._product_query(dialect, settings.mapping)

        product_code = self.resolve_product_code(barcode, settings)
        rows = self.executor.execute(product_query, [product_code], settings=settings)
        if not rows:
            logger.info(f"Product not found with code: {product_code}")
            return None

        product = ProductRecord.from_row(rows[0])
        logger.info(f"Product found: {product!r}")
        return product
