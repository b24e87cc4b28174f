"""
Cart persistence.

The whole line-item collection is written under one fixed key on every
mutation and read back once at startup. Totals are never stored.

Stored layout (version 1):
    {"version": 1, "items": [{"product": {...}, "quantity": 2}, ...]}

A bare JSON array of {"product", "quantity"} entries is the older,
un-versioned layout and is migrated on load.
"""
import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol

from storefront import config
from storefront.db import RedisKeys, get_redis_sync
from storefront.logging import get_logger, sanitize_string_for_logging

from .models import CartItem

logger = get_logger(__name__)

SCHEMA_VERSION = 1


class CartStorage(Protocol):
    """Key-value slot the cart is persisted into."""

    def read(self, key: str) -> Optional[str]: ...

    def write(self, key: str, value: str) -> None: ...


class MemoryCartStorage:
    """Dict-backed storage for tests and throwaway sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def write(self, key: str, value: str) -> None:
        self.data[key] = value


class FileCartStorage:
    """One JSON text file per key under a directory (the local storage slot)."""

    def __init__(self, directory: str | Path = config.CART_STORAGE_DIR):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe_key = "".join(c if c.isalnum() or c in "-_." else "_" for c in key)
        return self.directory / f"{safe_key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        # Write to a temp file and swap so a crash never leaves half a cart
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class RedisCartStorage:
    """Upstash Redis storage for deployments without a durable disk."""

    def __init__(self, redis=None):
        self._redis = redis  # Lazy initialization

    @property
    def redis(self):
        if self._redis is None:
            self._redis = get_redis_sync()
        return self._redis

    def read(self, key: str) -> Optional[str]:
        value = self.redis.get(RedisKeys.cart_key(key))
        if value is None:
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else str(value)

    def write(self, key: str, value: str) -> None:
        self.redis.set(RedisKeys.cart_key(key), value)


def get_cart_storage(backend: Optional[str] = None) -> CartStorage:
    """
    Build the storage backend named by CART_STORAGE_BACKEND.

    Raises:
        ValueError: For an unknown backend name
    """
    backend = (backend or config.CART_STORAGE_BACKEND).lower()
    if backend == "file":
        return FileCartStorage(config.CART_STORAGE_DIR)
    if backend == "memory":
        return MemoryCartStorage()
    if backend == "redis":
        return RedisCartStorage()
    raise ValueError(f"Unknown cart storage backend: {backend}")


def serialize_items(items: list[CartItem]) -> str:
    """Serialize line items into the versioned document."""
    return json.dumps(
        {"version": SCHEMA_VERSION, "items": [item.to_dict() for item in items]},
        ensure_ascii=False,
    )


def _migrate(document) -> list:
    """Return the raw item list of any known layout."""
    if isinstance(document, list):
        # Version 0: bare array
        return document
    if isinstance(document, dict):
        version = document.get("version")
        if version == SCHEMA_VERSION and isinstance(document.get("items"), list):
            return document["items"]
        raise ValueError(f"unsupported cart schema version: {version!r}")
    raise ValueError("cart document must be an object or an array")


def deserialize_items(text: str) -> list[CartItem]:
    """
    Parse a stored document into line items.

    Entries with quantity below 1 are dropped and repeated product ids are
    merged, so the result always satisfies the cart invariants.

    Raises:
        ValueError: If the document is malformed (json.JSONDecodeError included)
    """
    raw_items = _migrate(json.loads(text))

    merged: dict[str, CartItem] = {}
    for raw in raw_items:
        item = CartItem.from_dict(raw)
        if item.quantity < 1:
            continue
        existing = merged.get(item.product_id)
        if existing is not None:
            item = CartItem(product=existing.product, quantity=existing.quantity + item.quantity)
        merged[item.product_id] = item
    return list(merged.values())


class CartPersistence:
    """Saves and loads the cart's line items under a single key."""

    def __init__(self, storage: CartStorage, key: str = config.CART_STORAGE_KEY):
        self.storage = storage
        self.key = key

    def save(self, items: list[CartItem]) -> None:
        """Overwrite the stored collection. Storage errors propagate."""
        self.storage.write(self.key, serialize_items(items))

    def load(self) -> list[CartItem]:
        """
        Read the stored collection.

        Fails open: a missing key, unreadable storage or malformed data (bad
        JSON, pathological nesting, unknown version, bad entries) all yield an
        empty list. The failure is logged, never raised.
        """
        try:
            text = self.storage.read(self.key)
        except Exception as e:
            logger.warning(f"Failed to read stored cart '{self.key}': {e}")
            return []

        if not text:
            return []

        try:
            return deserialize_items(text)
        except Exception as e:
            logger.warning(
                f"Discarding corrupted cart data '{self.key}': {e} "
                f"(payload: {sanitize_string_for_logging(text)})"
            )
            return []
