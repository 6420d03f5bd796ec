"""
Durable key/value storage for serialized carts.

A CartStore only needs `get(key)` and `set(key, value)`. Several stores (e.g.
browser tabs of the same profile) may share one backend and one key: there is
no locking and the last write wins.
"""

import logging
from typing import Protocol

import redis

import config
from exceptions.cart import CartStorageException


class CartStorage(Protocol):
    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class InMemoryCartStorage:
    """Process-local storage. Pass the same `data` dict to simulate shared storage."""

    def __init__(self, data: dict[str, str] | None = None):
        self.data = data if data is not None else {}

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class RedisCartStorage:
    """
    Redis-backed storage using the synchronous client, so a cart flush never
    suspends the caller.
    """

    def __init__(self, client: redis.Redis, namespace: str = "cart-storage"):
        self.client = client
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> str | None:
        try:
            value = self.client.get(self._key(key))
        except redis.RedisError as e:
            raise CartStorageException(key, str(e)) from e
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def set(self, key: str, value: str) -> None:
        try:
            self.client.set(self._key(key), value)
        except redis.RedisError as e:
            raise CartStorageException(key, str(e)) from e


def create_cart_storage() -> CartStorage:
    """Build the storage backend selected by config.CART_STORAGE_BACKEND."""
    backend = config.CART_STORAGE_BACKEND
    if backend == "redis":
        client = redis.Redis(
            host=config.REDIS_HOST,
            port=config.REDIS_PORT,
            password=config.REDIS_PASSWORD,
            decode_responses=True
        )
        logging.info(f"Cart storage: redis at {config.REDIS_HOST}:{config.REDIS_PORT}")
        return RedisCartStorage(client)
    if backend != "memory":
        logging.warning(f"Unknown CART_STORAGE_BACKEND '{backend}' - falling back to in-memory storage")
    return InMemoryCartStorage()
