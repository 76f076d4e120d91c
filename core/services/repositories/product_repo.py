"""Product Repository - Catalog operations against the products collection."""
import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import AutoReconnect
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core.config import Settings
from core.errors import InsufficientStockError, NotFoundError
from core.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging
from core.services.models import (
    CategoryCount,
    Product,
    ProductCreate,
    ProductDetails,
    RatingSummary,
    Review,
    ReviewCreate,
)
from core.services.validation import (
    parse_object_id,
    try_parse_object_id,
    validate_paging,
    validate_product_input,
    validate_purchase,
    validate_review_input,
)

from .base import BaseRepository

logger = get_logger(__name__)

READ_RETRY_ATTEMPTS = 3

# Idempotent reads only; writes are never retried.
retry_read = retry(
    retry=retry_if_exception_type(AutoReconnect),
    stop=stop_after_attempt(READ_RETRY_ATTEMPTS),
    wait=wait_exponential(multiplier=0.1, max=2),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ProductRepository(BaseRepository):
    """Product database operations."""

    def __init__(
        self,
        collection,
        max_page_limit: Optional[int] = None,
        default_page_limit: int = Settings.default_page_limit,
    ) -> None:
        super().__init__(collection)
        self.max_page_limit = max_page_limit
        self.default_page_limit = default_page_limit

    async def create(self, data: ProductCreate | Mapping[str, Any]) -> Product:
        """Validate and insert a new product."""
        payload = validate_product_input(data)

        skus = [v.sku for v in payload.variants]
        if len(skus) != len(set(skus)):
            logger.warning(
                f"Product {sanitize_string_for_logging(payload.name)} created with duplicate SKUs"
            )

        doc = {
            "name": payload.name,
            "description": payload.description,
            "categories": list(payload.categories),
            "variants": [v.model_dump() for v in payload.variants],
            "reviews": [],
            "createdAt": _now(),
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id

        logger.info(f"Created product {sanitize_id_for_logging(result.inserted_id)}")
        return Product.model_validate(doc)

    @retry_read
    async def search(
        self,
        category: Optional[str] = None,
        search_text: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> list[Product]:
        """Filter by category and/or full-text search, one page at a time."""
        if limit is None:
            limit = self.default_page_limit
        page, limit = validate_paging(page, limit, self.max_page_limit)

        query: dict[str, Any] = {}
        if category:
            query["categories"] = category
        if search_text:
            query["$text"] = {"$search": search_text}

        cursor = self.collection.find(query).skip((page - 1) * limit).limit(limit)
        docs = await cursor.to_list(length=None)
        return [Product.model_validate(d) for d in docs]

    @retry_read
    async def get_by_id(self, product_id: str) -> ProductDetails:
        """Get product by ID with average rating and review count."""
        oid = parse_object_id(product_id)
        doc = await self.collection.find_one({"_id": oid})
        if not doc:
            raise NotFoundError()

        product = Product.model_validate(doc)
        return ProductDetails(
            product=product,
            avg_rating=product.avg_rating,
            reviews_count=product.reviews_count,
        )

    async def add_review(self, product_id: str, data: ReviewCreate | Mapping[str, Any]) -> Review:
        """Append a review to the product and bump updatedAt."""
        oid = parse_object_id(product_id)
        payload = validate_review_input(data)

        now = _now()
        review_doc = {
            "_id": ObjectId(),
            "user": ObjectId(payload.user) if payload.user else None,
            "name": payload.name or "Anonymous",
            "rating": payload.rating,
            "comment": payload.comment,
            "createdAt": now,
        }
        result = await self.collection.update_one(
            {"_id": oid},
            {"$push": {"reviews": review_doc}, "$set": {"updatedAt": now}},
        )
        if result.matched_count == 0:
            raise NotFoundError()

        logger.info(f"Review added to product {sanitize_id_for_logging(oid)}")
        return Review.model_validate(review_doc)

    async def purchase(self, product_id: str, sku: str, qty: int = 1) -> Product:
        """Atomically decrement a variant's stock if enough is available.

        The SKU match, the stock check and the decrement happen in one
        conditional update, so concurrent purchases can never oversell.
        """
        request = validate_purchase(sku, qty)
        oid = try_parse_object_id(product_id)
        if oid is None:
            raise InsufficientStockError()

        doc = await self.collection.find_one_and_update(
            {
                "_id": oid,
                "variants": {"$elemMatch": {"sku": request.sku, "stock": {"$gte": request.qty}}},
            },
            {
                "$inc": {"variants.$.stock": -request.qty},
                "$set": {"updatedAt": _now()},
            },
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            logger.info(
                f"Purchase rejected: product={sanitize_id_for_logging(oid)} "
                f"sku={sanitize_string_for_logging(request.sku)} qty={request.qty}"
            )
            raise InsufficientStockError()

        logger.info(
            f"Purchase ok: product={sanitize_id_for_logging(oid)} "
            f"sku={sanitize_string_for_logging(request.sku)} qty={request.qty}"
        )
        return Product.model_validate(doc)

    @retry_read
    async def average_rating(self, product_id: str) -> RatingSummary:
        """Average rating over one product's reviews.

        A missing product and a product without reviews both give
        ``avg_rating=None, count=0``.
        """
        oid = parse_object_id(product_id)
        pipeline = [
            {"$match": {"_id": oid}},
            {
                "$project": {
                    "avgRating": {"$avg": "$reviews.rating"},
                    "count": {"$size": {"$ifNull": ["$reviews", []]}},
                }
            },
        ]
        cursor = await self.collection.aggregate(pipeline)
        rows = await cursor.to_list(length=None)
        if not rows:
            return RatingSummary()
        row = rows[0]
        return RatingSummary(avg_rating=row.get("avgRating"), count=row.get("count", 0))

    @retry_read
    async def category_stats(self) -> list[CategoryCount]:
        """Product count per category, most populated first."""
        pipeline = [
            {"$unwind": "$categories"},
            {"$group": {"_id": "$categories", "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}},
        ]
        cursor = await self.collection.aggregate(pipeline)
        rows = await cursor.to_list(length=None)
        return [CategoryCount(category=r["_id"], count=r["count"]) for r in rows]
