from __future__ import annotations
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional
from urllib.parse import urlsplit
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pydantic import ValidationError
from pymongo import uri_parser
from pymongo.errors import ConfigurationError, PyMongoError

from errors import StartupConnectivityError, StoreError
from schemas import CartLine, Order, OrderIn, utcnow
from settings import Settings

logger = logging.getLogger(__name__)

ORDER_COLLECTION = "order"
LOOPBACK_HOSTS = ("127.0.0.1", "localhost", "::1")


class OrderStore(ABC):
    """Persistence for submitted orders.

    Orders are created once and never updated or deleted.
    """

    kind: str = ""

    @abstractmethod
    async def create(self, order: OrderIn, created_at: Optional[datetime] = None) -> Order:
        ...

    @abstractmethod
    async def list_all(self) -> list[Order]:
        """Return every order, newest first."""

    async def close(self) -> None:
        pass


def order_document(order: OrderIn, created_at: datetime) -> dict[str, Any]:
    return {
        "name": order.name,
        "phone": order.phone,
        "address": order.address,
        "cart": [line.model_dump() if isinstance(line, CartLine) else line for line in order.cart or []],
        "createdAt": created_at,
    }


def order_from_document(doc: dict[str, Any]) -> Order:
    d = dict(doc)
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    return Order.model_validate(d)


class MongoOrderStore(OrderStore):
    kind = "mongodb"

    def __init__(self, collection: AsyncIOMotorCollection, client: Optional[AsyncIOMotorClient] = None):
        self.collection = collection
        self._client = client

    async def create(self, order: OrderIn, created_at: Optional[datetime] = None) -> Order:
        doc = order_document(order, created_at or utcnow())
        try:
            result = await self.collection.insert_one(doc)
        except PyMongoError as e:
            raise StoreError(f"Could not save order: {e}") from e
        doc["_id"] = result.inserted_id
        try:
            return order_from_document(doc)
        except ValidationError as e:
            raise StoreError(f"Saved order could not be read back: {e}") from e

    async def list_all(self) -> list[Order]:
        try:
            cursor = self.collection.find({}).sort([("createdAt", -1), ("_id", -1)])
            return [order_from_document(d) async for d in cursor]
        except (PyMongoError, ValidationError) as e:
            raise StoreError(f"Could not read orders: {e}") from e

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()


class MemoryOrderStore(OrderStore):
    """Process-lifetime order list used when no MongoDB is reachable."""

    kind = "memory"

    def __init__(self) -> None:
        self._orders: list[tuple[int, Order]] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    async def create(self, order: OrderIn, created_at: Optional[datetime] = None) -> Order:
        with self._lock:
            seq = next(self._ids)
            saved = Order(
                id=str(seq),
                name=order.name,
                phone=order.phone,
                address=order.address,
                cart=list(order.cart or []),
                createdAt=created_at or utcnow(),
            )
            self._orders.append((seq, saved))
        return saved

    async def list_all(self) -> list[Order]:
        with self._lock:
            snapshot = list(self._orders)
        snapshot.sort(key=lambda item: (item[1].createdAt, item[0]), reverse=True)
        return [o for _, o in snapshot]


def mongo_hosts(url: str) -> list[str]:
    # +srv hosts are resolved through DNS; only the seed name is checked
    if url.startswith("mongodb+srv://"):
        host = urlsplit(url).hostname
        return [host] if host else []
    try:
        nodes = uri_parser.parse_uri(url)["nodelist"]
    except (ConfigurationError, ValueError):
        return []
    return [host.lower() for host, _ in nodes]


def uses_remote_mongo(url: Optional[str]) -> bool:
    if not url:
        return False
    hosts = mongo_hosts(url)
    return bool(hosts) and not all(host in LOOPBACK_HOSTS for host in hosts)


async def connect_mongo(settings: Settings) -> MongoOrderStore:
    client = AsyncIOMotorClient(
        settings.MONGO_URL,
        serverSelectionTimeoutMS=settings.MONGO_CONNECT_TIMEOUT_MS,
        tz_aware=True,
    )
    try:
        await client.admin.command("ping")
    except PyMongoError as e:
        client.close()
        raise StartupConnectivityError(f"MongoDB connection error: {e}") from e
    db = client.get_default_database(default=settings.DATABASE_NAME)
    return MongoOrderStore(db[ORDER_COLLECTION], client=client)


async def open_order_store(settings: Settings) -> OrderStore:
    """Pick the order store once, at startup."""
    if not uses_remote_mongo(settings.MONGO_URL):
        logger.info("No remote Mongo configured; using in-memory orders on this server.")
        return MemoryOrderStore()
    try:
        store = await connect_mongo(settings)
    except StartupConnectivityError:
        logger.exception("MongoDB connection failed; falling back to in-memory orders")
        return MemoryOrderStore()
    logger.info("Connected to MongoDB")
    return store
