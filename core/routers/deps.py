"""
Shared Dependencies for Routers

The repository is created by the application lifespan and kept on
``app.state``; handlers receive it through ``Depends``.
"""

from fastapi import Request

from core.errors import StoreUnavailableError
from core.services.repositories import ProductRepository


def get_product_repository(request: Request) -> ProductRepository:
    """Get the ProductRepository bound to this application."""
    repo = getattr(request.app.state, "product_repository", None)
    if repo is None:
        raise StoreUnavailableError()
    return repo
