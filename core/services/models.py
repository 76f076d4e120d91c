"""Catalog Models - Pydantic models for stored documents and request payloads."""
from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# Largest integer BSON can store (signed 64-bit)
MAX_BSON_INT = 2**63 - 1


def _stringify_object_id(v: Any) -> Any:
    return str(v) if isinstance(v, ObjectId) else v


class _Document(BaseModel):
    """Documents are stored with camelCase keys and serialized the same way."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",  # Ignore unknown fields from DB (e.g. text score)
    )

    def to_public(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# ==================== STORED DOCUMENTS ====================

class Variant(_Document):
    """Purchasable configuration of a product (embedded, no id)."""
    sku: str
    color: Optional[str] = None
    size: Optional[str] = None
    price: float
    stock: int = 0


class Review(_Document):
    """Embedded review with its own id."""
    id: str = Field(validation_alias=AliasChoices("_id", "id"), serialization_alias="id")
    user: Optional[str] = None
    name: str = "Anonymous"
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("id", "user", mode="before")
    @classmethod
    def convert_object_id(cls, v):
        return _stringify_object_id(v)


class Product(_Document):
    """Product document."""
    id: str = Field(validation_alias=AliasChoices("_id", "id"), serialization_alias="id")
    name: str
    description: Optional[str] = None
    categories: list[str] = []
    variants: list[Variant] = []
    reviews: list[Review] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def convert_object_id(cls, v):
        return _stringify_object_id(v)

    @property
    def reviews_count(self) -> int:
        return len(self.reviews)

    @property
    def avg_rating(self) -> Optional[float]:
        if not self.reviews:
            return None
        return sum(r.rating for r in self.reviews) / len(self.reviews)


class ProductDetails(BaseModel):
    """Product plus its computed rating summary."""
    product: Product
    avg_rating: Optional[float] = None
    reviews_count: int = 0

    def to_public(self) -> dict:
        return {
            "product": self.product.to_public(),
            "avgRating": self.avg_rating,
            "reviewsCount": self.reviews_count,
        }


class RatingSummary(BaseModel):
    avg_rating: Optional[float] = None
    count: int = 0

    def to_public(self) -> dict:
        return {"avgRating": self.avg_rating, "count": self.count}


class CategoryCount(BaseModel):
    """One row of the category report; ``_id`` is the category label."""
    category: str
    count: int

    def to_public(self) -> dict:
        return {"_id": self.category, "count": self.count}


# ==================== REQUEST PAYLOADS ====================

class VariantInput(BaseModel):
    sku: str = Field(min_length=1)
    color: Optional[str] = None
    size: Optional[str] = None
    price: float = Field(ge=0)
    stock: int = Field(0, ge=0, le=MAX_BSON_INT)


class ProductCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    description: Optional[str] = None
    categories: list[str] = []
    variants: list[VariantInput] = []

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v


class ReviewCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    rating: int = Field(ge=1, le=5, strict=True)
    comment: Optional[str] = None
    user: Optional[str] = None

    @field_validator("user")
    @classmethod
    def user_is_object_id(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not ObjectId.is_valid(v):
            raise ValueError("user must be a valid id")
        return v


class PurchaseRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sku: str = Field(min_length=1)
    qty: int = Field(1, ge=1, le=MAX_BSON_INT, strict=True)
