"""
Catalog Errors

Centralized error messages and the exception taxonomy raised by the
repository layer. Each exception carries the HTTP status it maps to;
api/index.py turns them into ``{"error": message}`` responses.
"""

# Product errors
ERROR_PRODUCT_NOT_FOUND = "Not found"
ERROR_INVALID_ID = "Invalid id"
ERROR_INSUFFICIENT_STOCK = "Insufficient stock or invalid SKU"

# Generic errors
ERROR_INVALID_REQUEST = "Invalid request"
ERROR_DOCUMENT_VALIDATION = "Document failed validation"
ERROR_STORE_UNAVAILABLE = "Product store unavailable"
ERROR_INTERNAL = "Internal server error"
ERROR_TIMEOUT = "Request timed out"


class CatalogError(Exception):
    """Base class for all catalog failures."""

    status_code: int = 500
    default_message: str = ERROR_INTERNAL

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CatalogError):
    """Malformed or missing input."""

    status_code = 400
    default_message = ERROR_INVALID_REQUEST


class InvalidIdError(ValidationError):
    """Identifier is not a well-formed ObjectId."""

    default_message = ERROR_INVALID_ID


class NotFoundError(CatalogError):
    status_code = 404
    default_message = ERROR_PRODUCT_NOT_FOUND


class InsufficientStockError(CatalogError):
    """Conditional purchase did not match.

    Raised for an unknown product, an unknown SKU or too little stock alike;
    callers cannot tell which precondition failed.
    """

    status_code = 400
    default_message = ERROR_INSUFFICIENT_STOCK


class StoreUnavailableError(CatalogError):
    status_code = 500
    default_message = ERROR_STORE_UNAVAILABLE


__all__ = [
    "ERROR_PRODUCT_NOT_FOUND",
    "ERROR_INVALID_ID",
    "ERROR_INSUFFICIENT_STOCK",
    "ERROR_INVALID_REQUEST",
    "ERROR_DOCUMENT_VALIDATION",
    "ERROR_STORE_UNAVAILABLE",
    "ERROR_INTERNAL",
    "ERROR_TIMEOUT",
    "CatalogError",
    "ValidationError",
    "InvalidIdError",
    "NotFoundError",
    "InsufficientStockError",
    "StoreUnavailableError",
]
