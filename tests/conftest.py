from __future__ import annotations

import copy
import pathlib
import sys
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import analytics_main  # noqa: E402
import main  # noqa: E402
from services.expenses_service import ExpenseStore  # noqa: E402
from utils.settings import Settings  # noqa: E402


def _matches(doc: dict, query: dict) -> bool:
    for key, condition in query.items():
        value = doc.get(key)
        if isinstance(condition, dict) and any(op.startswith("$") for op in condition):
            for op, operand in condition.items():
                if value is None:
                    return False
                if op == "$gte" and not value >= operand:
                    return False
                if op == "$lte" and not value <= operand:
                    return False
                if op not in ("$gte", "$lte"):
                    raise NotImplementedError(op)
        elif value != condition:
            return False
    return True


class FakeCursor:
    def __init__(self, docs: list[dict]):
        self._docs = docs

    def sort(self, keys):
        # successive stable sorts, least significant key first
        for key, direction in reversed(keys):
            self._docs.sort(key=lambda doc: doc[key], reverse=direction < 0)
        return self

    def __aiter__(self):
        self._iter = iter(self._docs)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    """In-memory stand-in for the subset of the Motor collection API the store uses."""

    name = "expenses"

    def __init__(self):
        self.docs: list[dict] = []
        self.queries: list[dict] = []
        self.indexes: list = []

    async def create_index(self, keys, **kwargs):
        self.indexes.append(keys)

    def find(self, query=None):
        query = query or {}
        self.queries.append(query)
        return FakeCursor([copy.deepcopy(doc) for doc in self.docs if _matches(doc, query)])

    async def find_one(self, query):
        self.queries.append(query)
        for doc in self.docs:
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    async def insert_one(self, doc):
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one_and_update(self, query, update, return_document=None):
        for doc in self.docs:
            if _matches(doc, query):
                doc.update(copy.deepcopy(update["$set"]))
                return copy.deepcopy(doc)
        return None

    async def find_one_and_delete(self, query):
        for index, doc in enumerate(self.docs):
            if _matches(doc, query):
                return self.docs.pop(index)
        return None

    async def delete_many(self, query):
        kept = [doc for doc in self.docs if not _matches(doc, query)]
        deleted = len(self.docs) - len(kept)
        self.docs = kept
        return SimpleNamespace(deleted_count=deleted)


class FakeHandle:
    """Handle double: ``available=False`` simulates an unreachable server."""

    def __init__(self, collection: FakeCollection, available: bool = True, opened: bool = False):
        self._collection = collection
        self.available = available
        self.opened = opened
        self.closed = False

    @property
    def collection(self):
        if self.opened and self.available:
            return self._collection
        return None

    @property
    def is_open(self) -> bool:
        return self.collection is not None

    async def open(self):
        self.opened = True
        if self.available:
            await self._collection.create_index([("date", -1)])

    def close(self):
        self.closed = True
        self.opened = False


class TickingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture()
def collection():
    return FakeCollection()


@pytest.fixture()
def store(collection):
    return ExpenseStore(FakeHandle(collection, opened=True), clock=TickingClock())


@pytest.fixture()
def settings():
    return Settings(expenses_service_url="http://expenses.test", log_level="WARNING")


@pytest.fixture()
def expenses_app(collection, settings):
    return main.create_app(settings, handle=FakeHandle(collection))


@pytest.fixture()
def client(expenses_app):
    with TestClient(expenses_app) as test_client:
        yield test_client


@pytest.fixture()
def make_analytics_client(settings):
    """Factory running the analytics app against a given httpx transport."""
    clients = []

    def factory(transport, **overrides):
        app_settings = Settings(**{**settings.__dict__, **overrides})
        test_client = TestClient(analytics_main.create_app(app_settings, transport=transport))
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield factory
    for test_client in clients:
        test_client.__exit__(None, None, None)


@pytest.fixture()
def sample_payload():
    return {
        "title": "Grocery Shopping",
        "amount": 125.5,
        "category": "Food",
        "date": "2024-02-10",
        "notes": "Weekly groceries",
    }
