"""
Database Module - MongoDB client and product collection setup

Provides:
- Async MongoDB client construction (owned by the application lifespan)
- $jsonSchema validator mirroring the product document constraints
- Index creation for category filters and full-text search
"""

from pymongo import ASCENDING, TEXT, AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import CollectionInvalid

from core.config import Settings
from core.logging import get_logger

logger = get_logger(__name__)

# Server error code for a write rejected by the collection validator
DOCUMENT_VALIDATION_FAILURE = 121


PRODUCT_VALIDATOR = {
    "$jsonSchema": {
        "bsonType": "object",
        "required": ["name", "createdAt"],
        "properties": {
            "name": {"bsonType": "string", "minLength": 1},
            "description": {"bsonType": ["string", "null"]},
            "categories": {"bsonType": "array", "items": {"bsonType": "string"}},
            "variants": {
                "bsonType": "array",
                "items": {
                    "bsonType": "object",
                    "required": ["sku", "price"],
                    "properties": {
                        "sku": {"bsonType": "string", "minLength": 1},
                        "price": {"bsonType": ["double", "int", "long", "decimal"], "minimum": 0},
                        "stock": {"bsonType": ["int", "long"], "minimum": 0},
                    },
                },
            },
            "reviews": {
                "bsonType": "array",
                "items": {
                    "bsonType": "object",
                    "required": ["rating"],
                    "properties": {
                        "rating": {"bsonType": ["int", "long"], "minimum": 1, "maximum": 5},
                    },
                },
            },
            "createdAt": {"bsonType": "date"},
            "updatedAt": {"bsonType": "date"},
        },
    }
}


def create_mongo_client(settings: Settings) -> AsyncMongoClient:
    """Create the async MongoDB client. Connection is lazy until first use."""
    return AsyncMongoClient(
        settings.mongodb_url,
        serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
        timeoutMS=settings.mongodb_timeout_ms,
        tz_aware=True,
    )


def get_products_collection(client: AsyncMongoClient, settings: Settings) -> AsyncCollection:
    return client[settings.mongodb_db][settings.mongodb_collection]


async def ensure_collection(database: AsyncDatabase, name: str) -> None:
    """Create the products collection with its validator, or refresh the validator."""
    try:
        await database.create_collection(name, validator=PRODUCT_VALIDATOR)
        logger.info(f"Created collection {name} with schema validator")
    except CollectionInvalid:
        await database.command("collMod", name, validator=PRODUCT_VALIDATOR)


async def ensure_indexes(collection: AsyncCollection) -> None:
    """Indexes for category filters and the name/categories text search."""
    await collection.create_index([("name", ASCENDING)])
    await collection.create_index([("categories", ASCENDING)])
    await collection.create_index(
        [("name", TEXT), ("categories", TEXT)],
        name="name_text_categories_text",
    )


async def init_store(client: AsyncMongoClient, settings: Settings) -> AsyncCollection:
    """Prepare the products collection and return it."""
    database = client[settings.mongodb_db]
    await ensure_collection(database, settings.mongodb_collection)
    collection = database[settings.mongodb_collection]
    await ensure_indexes(collection)
    return collection
