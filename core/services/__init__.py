# Services Module
from .repositories import ProductRepository

__all__ = ["ProductRepository"]
