"""
Pydantic schema definitions for the catalog module.

``Product`` is the canonical shape of a catalogue entry as returned by
the product store. The cache only ever holds serialised snapshots of
these models, never the canonical copy. ``ProductPage`` bundles one
page of search results with the number of pages available, and
``InvalidationRequest`` describes which cached views a write has made
stale.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(BaseModel):
    """A single product entry.

    ``id`` is opaque to everything but the store and is always handled
    in its canonical string form (it is also what cache keys are built
    from). ``category`` is stored lowercased. ``photo`` holds the
    durable URL handed back by the blob store.
    """

    id: str
    name: str
    category: str
    price: float = Field(ge=0)
    stock: int = Field(ge=0)
    photo: str = ""
    created_at: datetime = Field(default_factory=_utcnow)


class ProductPage(BaseModel):
    """One page of ``/all`` search results."""

    products: List[Product]
    page: int
    page_size: int
    total: int
    total_page: int


class InvalidationRequest(BaseModel):
    """Cache namespaces affected by a single write.

    ``product`` covers the storefront lists (latest products and the
    category set), ``admin`` covers the unfiltered admin list and
    ``product_id`` names a single product whose own entry must go.
    """

    product: bool = False
    admin: bool = False
    product_id: Optional[str] = None


class OrderItem(BaseModel):
    product_id: str
    quantity: int = Field(gt=0)
