"""
Process-wide cache used by the catalog read paths.

``CacheStore`` is a plain key/value map of serialised snapshots. It is
created once when the application starts and shared by every request
handler; sync FastAPI handlers run on a thread pool, so each operation
takes the store lock. There is no expiry or eviction: entries only go
away when they are invalidated or overwritten.

``CacheCodec`` sits between the catalog service and the store. It
encodes typed values (lists of products, a single product, a list of
category names) to JSON bytes and validates them back on read.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import TypeAdapter

LATEST_PRODUCTS_KEY = "latest-products"
CATEGORIES_KEY = "categories"
ALL_PRODUCTS_KEY = "all-products"

T = TypeVar("T")


def product_key(product_id: Any) -> str:
    return f"product-{product_id}"


class CacheStore:
    def __init__(self) -> None:
        self._data: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        """Remove ``key``; absent keys are ignored."""
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class CacheCodec(Generic[T]):
    """JSON codec for one cached value shape."""

    def __init__(self, type_: Any):
        self._adapter: TypeAdapter = TypeAdapter(type_)

    def encode(self, value: T) -> bytes:
        return self._adapter.dump_json(value)

    def decode(self, raw: bytes) -> T:
        return self._adapter.validate_json(raw)
