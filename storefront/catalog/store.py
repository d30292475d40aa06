"""
Product store used by the catalogue.

``ProductStore`` describes what the catalog service needs from the
persistent document collection: lookups by id, filtered/sorted/paged
finds, distinct values and the three mutations. ``InMemoryProductStore``
implements it over a dict so the service can run without a database;
swap in another implementation (PostgreSQL, MongoDB, etc.) by passing
it to ``CatalogService``.

Filters use a small document-store dialect: a mapping of field name to
either a literal (equality) or an operator dict. Supported operators
are ``$regex`` (with ``$options: "i"`` for case-insensitive matching),
``$lt``, ``$lte``, ``$gt`` and ``$gte``.
"""

from __future__ import annotations

import re
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from typing_extensions import Protocol

from ..errors import NotFoundError
from .schemas import Product

_COMPARISONS = {
    "$lt": lambda value, bound: value < bound,
    "$lte": lambda value, bound: value <= bound,
    "$gt": lambda value, bound: value > bound,
    "$gte": lambda value, bound: value >= bound,
}

# Fields the store owns; callers cannot overwrite them through update().
_PROTECTED_FIELDS = {"id", "created_at"}


class ProductStore(Protocol):
    def find_by_id(self, product_id: str) -> Optional[Product]:
        ...

    def find(
        self,
        filter: Mapping[str, Any],
        sort: Optional[List[Tuple[str, int]]] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> List[Product]:
        ...

    def count(self, filter: Mapping[str, Any]) -> int:
        ...

    def distinct(self, field: str) -> List[Any]:
        ...

    def create(self, fields: Mapping[str, Any]) -> Product:
        ...

    def update(self, product_id: str, fields: Mapping[str, Any]) -> Product:
        ...

    def delete(self, product_id: str) -> None:
        ...


def _match_condition(value: Any, condition: Any) -> bool:
    if not isinstance(condition, Mapping):
        return value == condition
    for op, operand in condition.items():
        if op == "$options":
            continue
        if op == "$regex":
            flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
            if value is None or not re.search(operand, str(value), flags):
                return False
        elif op in _COMPARISONS:
            if value is None or not _COMPARISONS[op](value, operand):
                return False
        else:
            raise ValueError(f"Unsupported filter operator: {op}")
    return True


def matches(product: Product, filter: Mapping[str, Any]) -> bool:
    """Return True when ``product`` satisfies every predicate of ``filter``."""
    data = product.model_dump()
    return all(_match_condition(data.get(name), cond) for name, cond in filter.items())


def _sorted(products: Iterable[Product], sort: List[Tuple[str, int]]) -> List[Product]:
    items = list(products)
    # Apply keys last-to-first so the first key has priority.
    for field_name, direction in reversed(sort):
        items.sort(key=lambda p: getattr(p, field_name), reverse=direction < 0)
    return items


class InMemoryProductStore:
    """Dict-backed ``ProductStore``.

    Products are returned as copies so callers can never mutate the
    stored documents behind the store's back. ``created_at`` values are
    kept strictly increasing so "newest first" ordering is stable even
    when several products are created within the same clock tick.
    """

    def __init__(self, products: Optional[Iterable[Product]] = None):
        self._products: Dict[str, Product] = {}
        self._lock = threading.Lock()
        self._last_created: Optional[datetime] = None
        for product in products or []:
            self._products[product.id] = product.model_copy(deep=True)

    def _next_created_at(self) -> datetime:
        now = datetime.now(timezone.utc)
        if self._last_created is not None and now <= self._last_created:
            now = self._last_created + timedelta(microseconds=1)
        self._last_created = now
        return now

    def find_by_id(self, product_id: str) -> Optional[Product]:
        with self._lock:
            product = self._products.get(str(product_id))
            return product.model_copy(deep=True) if product else None

    def find(
        self,
        filter: Mapping[str, Any],
        sort: Optional[List[Tuple[str, int]]] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> List[Product]:
        with self._lock:
            items = [p for p in self._products.values() if matches(p, filter)]
            if sort:
                items = _sorted(items, sort)
            start = skip or 0
            end = start + limit if limit else None
            return [p.model_copy(deep=True) for p in items[start:end]]

    def count(self, filter: Mapping[str, Any]) -> int:
        with self._lock:
            return sum(1 for p in self._products.values() if matches(p, filter))

    def distinct(self, field: str) -> List[Any]:
        with self._lock:
            values: List[Any] = []
            for product in self._products.values():
                value = getattr(product, field)
                if value not in values:
                    values.append(value)
            return values

    def create(self, fields: Mapping[str, Any]) -> Product:
        with self._lock:
            data = {k: v for k, v in fields.items() if k not in _PROTECTED_FIELDS}
            product = Product(
                id=uuid.uuid4().hex,
                created_at=self._next_created_at(),
                **data,
            )
            self._products[product.id] = product
            return product.model_copy(deep=True)

    def update(self, product_id: str, fields: Mapping[str, Any]) -> Product:
        with self._lock:
            current = self._products.get(str(product_id))
            if current is None:
                raise NotFoundError()
            data = current.model_dump()
            data.update({k: v for k, v in fields.items() if k not in _PROTECTED_FIELDS})
            product = Product.model_validate(data)
            self._products[product.id] = product
            return product.model_copy(deep=True)

    def delete(self, product_id: str) -> None:
        with self._lock:
            if self._products.pop(str(product_id), None) is None:
                raise NotFoundError()
