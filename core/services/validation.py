"""
Input validation run before every repository write.

Each function accepts either an already-parsed request model or a raw
mapping and returns the parsed model, raising ``core.errors.ValidationError``
with a readable message instead of pydantic's error list.
"""
from typing import Any, Mapping, Optional, Type, TypeVar

from bson import ObjectId
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.errors import InvalidIdError, ValidationError
from core.services.models import ProductCreate, PurchaseRequest, ReviewCreate

ModelT = TypeVar("ModelT", bound=BaseModel)


def format_errors(errors: list[dict[str, Any]]) -> str:
    """Flatten pydantic/FastAPI error dicts into one message."""
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid request"


def _parse(model: Type[ModelT], data: ModelT | Mapping[str, Any]) -> ModelT:
    if isinstance(data, model):
        return data
    if not isinstance(data, Mapping):
        raise ValidationError(f"Expected an object, got {type(data).__name__}")
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(format_errors(e.errors()))


def parse_object_id(value: Any) -> ObjectId:
    """Convert a path/body identifier to ObjectId or raise InvalidIdError."""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise InvalidIdError()
    return ObjectId(value)


def try_parse_object_id(value: Any) -> Optional[ObjectId]:
    try:
        return parse_object_id(value)
    except InvalidIdError:
        return None


def validate_product_input(data: ProductCreate | Mapping[str, Any]) -> ProductCreate:
    return _parse(ProductCreate, data)


def validate_review_input(data: ReviewCreate | Mapping[str, Any]) -> ReviewCreate:
    return _parse(ReviewCreate, data)


def validate_purchase(sku: Any, qty: Any = 1) -> PurchaseRequest:
    return _parse(PurchaseRequest, {"sku": sku, "qty": qty})


def validate_paging(page: Any, limit: Any, cap: Optional[int] = None) -> tuple[int, int]:
    """Check page/limit are positive integers; clamp limit to ``cap`` if given."""
    for name, value in (("page", page), ("limit", limit)):
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValidationError(f"{name} must be a positive integer")
    if cap is not None and limit > cap:
        limit = cap
    return page, limit
