"""Pytest configuration and fixtures"""
import asyncio
import copy
import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import pytest
from bson import ObjectId

# Set test environment variables
os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("MONGODB_DB", "catalog_test")
os.environ.setdefault("LOG_LEVEL", "WARNING")


# ==================== IN-MEMORY COLLECTION ====================

def _get(doc, path):
    cur = doc
    for part in path.split("."):
        if isinstance(cur, list):
            cur = [item.get(part) for item in cur if isinstance(item, dict)]
        elif isinstance(cur, dict):
            cur = cur.get(part)
        else:
            return None
    return cur


def _match_value(value, cond):
    if isinstance(cond, dict) and any(k.startswith("$") for k in cond):
        for op, arg in cond.items():
            if op == "$gte" and not (value is not None and value >= arg):
                return False
            if op == "$elemMatch" and not any(_matches(item, arg) for item in value or []):
                return False
        return True
    if isinstance(value, list):
        return cond in value
    return value == cond


def _text_match(doc, search):
    words = [doc.get("name", "")] + list(doc.get("categories", []))
    haystack = " ".join(words).lower().split()
    return any(term.lower() in haystack for term in search.split())


def _matches(doc, query):
    for key, cond in query.items():
        if key == "$text":
            if not _text_match(doc, cond["$search"]):
                return False
        elif not _match_value(_get(doc, key), cond):
            return False
    return True


def _eval(doc, expr):
    if isinstance(expr, str) and expr.startswith("$"):
        return _get(doc, expr[1:])
    if isinstance(expr, dict):
        (op, arg), = expr.items()
        if op == "$avg":
            values = _eval(doc, arg)
            values = values if isinstance(values, list) else [values]
            values = [v for v in values if isinstance(v, (int, float))]
            return sum(values) / len(values) if values else None
        if op == "$size":
            return len(_eval(doc, arg))
        if op == "$ifNull":
            value = _eval(doc, arg[0])
            return value if value is not None else _eval(doc, arg[1])
    return expr


def _run_pipeline(docs, pipeline):
    rows = [copy.deepcopy(d) for d in docs]
    for stage in pipeline:
        (name, args), = stage.items()
        if name == "$match":
            rows = [r for r in rows if _matches(r, args)]
        elif name == "$project":
            rows = [{"_id": r["_id"], **{k: _eval(r, e) for k, e in args.items()}} for r in rows]
        elif name == "$unwind":
            field = args[1:]
            rows = [{**r, field: item} for r in rows for item in r.get(field) or []]
        elif name == "$group":
            groups = {}
            for r in rows:
                key = _eval(r, args["_id"])
                group = groups.setdefault(key, {"_id": key, **{k: 0 for k in args if k != "_id"}})
                for field, acc in args.items():
                    if field != "_id":
                        group[field] += _eval(r, acc["$sum"])
            rows = list(groups.values())
        elif name == "$sort":
            for field, direction in reversed(list(args.items())):
                rows.sort(key=lambda r: r[field], reverse=direction < 0)
        else:
            raise NotImplementedError(name)
    return rows


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs
        self._skip = 0
        self._limit = 0

    def skip(self, n):
        self._skip = n
        return self

    def limit(self, n):
        self._limit = n
        return self

    async def to_list(self, length=None):
        docs = self._docs[self._skip:]
        if self._limit:
            docs = docs[:self._limit]
        return [copy.deepcopy(d) for d in docs]


class FakeCollection:
    """In-memory stand-in for the parts of AsyncCollection the repository uses.

    Each write yields to the event loop first and then matches and mutates
    without awaiting, so it is atomic with respect to other tasks.
    """

    def __init__(self):
        self.docs = []

    def _first(self, query):
        return next((d for d in self.docs if _matches(d, query)), None)

    @staticmethod
    def _apply(doc, update, query):
        for path, value in update.get("$set", {}).items():
            doc[path] = value
        for path, value in update.get("$push", {}).items():
            doc.setdefault(path, []).append(copy.deepcopy(value))
        for path, delta in update.get("$inc", {}).items():
            array, _, field = path.split(".")
            elem_match = query[array]["$elemMatch"]
            target = next(item for item in doc[array] if _matches(item, elem_match))
            target[field] += delta

    async def insert_one(self, doc):
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return Mock(inserted_id=doc["_id"])

    def find(self, query=None):
        return FakeCursor([d for d in self.docs if _matches(d, query or {})])

    async def find_one(self, query):
        doc = self._first(query)
        return copy.deepcopy(doc) if doc else None

    async def update_one(self, query, update):
        await asyncio.sleep(0)
        doc = self._first(query)
        if doc is None:
            return Mock(matched_count=0, modified_count=0)
        self._apply(doc, update, query)
        return Mock(matched_count=1, modified_count=1)

    async def find_one_and_update(self, query, update, return_document=None):
        await asyncio.sleep(0)
        doc = self._first(query)
        if doc is None:
            return None
        self._apply(doc, update, query)
        return copy.deepcopy(doc)

    async def aggregate(self, pipeline):
        return FakeCursor(_run_pipeline(self.docs, pipeline))


# ==================== FIXTURES ====================

@pytest.fixture
def fake_collection():
    """In-memory products collection"""
    return FakeCollection()


@pytest.fixture
def mock_collection():
    """Mock AsyncCollection"""
    collection = Mock()

    cursor = Mock()
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=[])

    agg_cursor = Mock()
    agg_cursor.to_list = AsyncMock(return_value=[])

    collection.find.return_value = cursor
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock(return_value=Mock(inserted_id=ObjectId()))
    collection.update_one = AsyncMock(return_value=Mock(matched_count=1))
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.aggregate = AsyncMock(return_value=agg_cursor)

    collection.cursor = cursor
    collection.agg_cursor = agg_cursor
    return collection


@pytest.fixture
def product_id():
    return ObjectId("65a1f0c2e4b0a1b2c3d4e5f6")


@pytest.fixture
def sample_product(product_id):
    """Sample product document as stored"""
    return {
        "_id": product_id,
        "name": "Tee",
        "description": "Cotton t-shirt",
        "categories": ["Shirts", "Sale"],
        "variants": [
            {"sku": "T1", "color": "black", "size": "M", "price": 10.0, "stock": 2},
            {"sku": "T2", "color": "white", "size": "L", "price": 12.5, "stock": 0},
        ],
        "reviews": [],
        "createdAt": datetime(2025, 1, 1, tzinfo=timezone.utc),
    }


@pytest.fixture
def sample_review():
    return {
        "_id": ObjectId(),
        "user": None,
        "name": "Anna",
        "rating": 4,
        "comment": "Fits well",
        "createdAt": datetime(2025, 1, 2, tzinfo=timezone.utc),
    }
