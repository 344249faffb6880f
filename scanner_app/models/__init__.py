from .product import CANONICAL_ALIASES, ProductRecord

__all__ = ['CANONICAL_ALIASES', 'ProductRecord']
