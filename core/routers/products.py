"""
Products API Router

Catalog endpoints: creation, listing, details with rating, reviews,
atomic purchase and aggregate reports.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from core.routers.deps import get_product_repository
from core.services.models import ProductCreate, PurchaseRequest, ReviewCreate
from core.services.repositories import ProductRepository

router = APIRouter(prefix="/products", tags=["products"])


# ==================== CATALOG ====================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    request: ProductCreate,
    repo: ProductRepository = Depends(get_product_repository),
):
    """Create a product"""
    product = await repo.create(request)
    return product.to_public()


@router.get("")
async def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    repo: ProductRepository = Depends(get_product_repository),
):
    """List products with optional category, full-text search and pagination"""
    products = await repo.search(category=category, search_text=search, page=page, limit=limit)
    return [p.to_public() for p in products]


# ==================== ANALYTICS ====================
# Registered before /{product_id} routes so "analytics" is never read as an id.

@router.get("/analytics/category-stats")
async def category_stats(repo: ProductRepository = Depends(get_product_repository)):
    """Product count per category"""
    stats = await repo.category_stats()
    return [s.to_public() for s in stats]


# ==================== SINGLE PRODUCT ====================

@router.get("/{product_id}")
async def get_product(
    product_id: str,
    repo: ProductRepository = Depends(get_product_repository),
):
    """Get product details with average rating and review count"""
    details = await repo.get_by_id(product_id)
    return details.to_public()


@router.post("/{product_id}/reviews", status_code=status.HTTP_201_CREATED)
async def add_review(
    product_id: str,
    request: ReviewCreate,
    repo: ProductRepository = Depends(get_product_repository),
):
    """Add an embedded review"""
    review = await repo.add_review(product_id, request)
    return {"message": "Review added", "review": review.to_public()}


@router.post("/{product_id}/purchase")
async def purchase(
    product_id: str,
    request: PurchaseRequest,
    repo: ProductRepository = Depends(get_product_repository),
):
    """Decrement variant stock if available (atomic)"""
    product = await repo.purchase(product_id, request.sku, request.qty)
    return {"message": "Purchase successful", "product": product.to_public()}


@router.get("/{product_id}/avg-rating")
async def average_rating(
    product_id: str,
    repo: ProductRepository = Depends(get_product_repository),
):
    """Average rating computed by the store"""
    summary = await repo.average_rating(product_id)
    return summary.to_public()
