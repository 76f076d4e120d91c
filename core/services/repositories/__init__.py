"""
Repository Pattern for Database Operations

- ProductRepository: product catalog, reviews, stock, aggregate reports
"""
from .product_repo import ProductRepository

__all__ = [
    "ProductRepository",
]
