"""
Product record returned by a barcode lookup (data class representation)
Built from a row whose columns carry the canonical aliases
"""
import base64
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

CANONICAL_ALIASES = ('productCode', 'productName', 'productImage', 'price1', 'price2', 'price3')

_IMAGE_SIGNATURES = (
    (b'\x89PNG\r\n\x1a\n', 'image/png'),
    (b'\xff\xd8\xff', 'image/jpeg'),
    (b'GIF87a', 'image/gif'),
    (b'GIF89a', 'image/gif'),
)


def _image_mime(data: bytes) -> str:
    for signature, mime in _IMAGE_SIGNATURES:
        if data.startswith(signature):
            return mime
    if data[:4] == b'RIFF' and data[8:12] == b'WEBP':
        return 'image/webp'
    return 'application/octet-stream'


def serialize_value(value: Any) -> Any:
    """Serialize database values to JSON-compatible format."""
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, memoryview):
        value = value.tobytes()
    if isinstance(value, (bytes, bytearray)):
        data = bytes(value)
        return f"data:{_image_mime(data)};base64,{base64.b64encode(data).decode('ascii')}"
    return value


@dataclass
class ProductRecord:
    """Product data class representing one lookup result."""

    product_code: Any
    product_name: Optional[str] = None
    product_image: Any = None
    price1: Any = None
    price2: Any = None
    price3: Any = None

    def price(self, tier: int = 1) -> Any:
        """Price for tier 1, 2 or 3; unknown tiers fall back to tier 1."""
        return {1: self.price1, 2: self.price2, 3: self.price3}.get(tier, self.price1)

    def to_dict(self) -> dict:
        """Convert to the JSON shape the scanner page expects."""
        return {
            'productCode': serialize_value(self.product_code),
            'productName': serialize_value(self.product_name),
            'productImage': serialize_value(self.product_image),
            'price1': serialize_value(self.price1),
            'price2': serialize_value(self.price2),
            'price3': serialize_value(self.price3),
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'ProductRecord':
        """Create a ProductRecord from a row keyed by the canonical aliases."""
        return cls(
            product_code=row.get('productCode'),
            product_name=row.get('productName'),
            product_image=row.get('productImage'),
            price1=row.get('price1'),
            price2=row.get('price2'),
            price3=row.get('price3'),
        )

    def __repr__(self):
        return f"<ProductRecord(code={self.product_code}, name={self.product_name})>"
