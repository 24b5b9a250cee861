from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import AutoReconnect

from database import MemoryOrderStore, MongoOrderStore
from errors import NotificationError
from main import create_app
from notifier import EmailNotifier
from settings import Settings


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs

    def sort(self, keys):
        for key, direction in reversed(keys):
            self.docs.sort(key=lambda d: d[key], reverse=direction < 0)
        return self

    async def _iter(self):
        for d in self.docs:
            yield d

    def __aiter__(self):
        return self._iter()


class FakeCollection:
    """Just enough of a Motor collection for the order store."""

    def __init__(self):
        self.docs = []
        self.fail = False

    async def insert_one(self, doc):
        if self.fail:
            raise AutoReconnect("connection closed")
        doc["_id"] = ObjectId()
        self.docs.append(dict(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    def find(self, filter_dict):
        if self.fail:
            raise AutoReconnect("connection closed")
        return FakeCursor([dict(d) for d in self.docs])


class RecordingNotifier(EmailNotifier):
    def __init__(self, settings, fail=False):
        super().__init__(settings)
        self.sent = []
        self.fail = fail

    def send(self, order):
        if self.fail:
            raise NotificationError("smtp login refused")
        self.sent.append(order)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        MONGO_URL=None,
        ORDER_EMAIL_USER="orders@anvistea.example",
        ORDER_EMAIL_PASS="app-password",
    )


@pytest.fixture
def memory_store():
    return MemoryOrderStore()


@pytest.fixture
def fake_collection():
    return FakeCollection()


@pytest.fixture
def mongo_store(fake_collection):
    return MongoOrderStore(fake_collection)


@pytest.fixture
def notifier(settings):
    return RecordingNotifier(settings)


@pytest.fixture
def client(settings, memory_store, notifier):
    app = create_app(settings=settings, store=memory_store, notifier=notifier)
    return TestClient(app)


@pytest.fixture
def order_payload():
    return {
        "name": "A",
        "phone": "123",
        "address": "X",
        "cart": [{"id": "1", "name": "Himalayan Dawn Green", "price": 650, "qty": 2}],
    }
