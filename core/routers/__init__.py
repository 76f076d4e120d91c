"""
FastAPI Routers Package

All routers are included in api/index.py.
"""

from core.routers.products import router as products_router

__all__ = [
    "products_router",
]
