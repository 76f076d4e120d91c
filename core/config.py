"""Service configuration loaded from the environment (and an optional .env)."""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the catalog service."""

    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db: str = "catalog"
    mongodb_collection: str = "products"
    mongodb_timeout_ms: int = 5000
    api_prefix: str = ""
    default_page_limit: int = 12
    # 0 disables the cap
    max_page_limit: int = 0
    request_timeout_seconds: float = 10.0

    @property
    def page_limit_cap(self) -> Optional[int]:
        return self.max_page_limit if self.max_page_limit > 0 else None

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Build settings from environment variables."""
        if dotenv:
            load_dotenv()

        prefix = os.environ.get("CATALOG_API_PREFIX", "").rstrip("/")
        if prefix and not prefix.startswith("/"):
            prefix = "/" + prefix

        default_page_limit = _env_int("CATALOG_DEFAULT_PAGE_LIMIT", cls.default_page_limit)
        if default_page_limit < 1:
            raise ValueError(f"CATALOG_DEFAULT_PAGE_LIMIT must be at least 1, got {default_page_limit}")

        return cls(
            mongodb_url=os.environ.get("MONGODB_URL", cls.mongodb_url),
            mongodb_db=os.environ.get("MONGODB_DB", cls.mongodb_db),
            mongodb_collection=os.environ.get("MONGODB_COLLECTION", cls.mongodb_collection),
            mongodb_timeout_ms=_env_int("MONGODB_TIMEOUT_MS", cls.mongodb_timeout_ms),
            api_prefix=prefix,
            default_page_limit=default_page_limit,
            max_page_limit=_env_int("CATALOG_MAX_PAGE_LIMIT", cls.max_page_limit),
            request_timeout_seconds=_env_float("REQUEST_TIMEOUT_SECONDS", cls.request_timeout_seconds),
        )
