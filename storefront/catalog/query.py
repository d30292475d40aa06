"""
Translate optional search parameters into a product store query.

``build_query()`` is a pure function: it never raises, and any
parameter that is absent (``None`` or an empty string) or cannot be
parsed simply contributes nothing to the resulting filter. The filter
uses the small document-store dialect understood by ``ProductStore``
implementations::

    {"name": {"$regex": "...", "$options": "i"},
     "price": {"$lte": 500.0},
     "category": "shirts"}
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

DEFAULT_PAGE_SIZE = 8

SortSpec = List[Tuple[str, int]]


@dataclass(frozen=True)
class ProductQuery:
    filter: Dict[str, Any] = field(default_factory=dict)
    sort: Optional[SortSpec] = None
    skip: int = 0
    limit: int = DEFAULT_PAGE_SIZE
    page: int = 1


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_page(page: Any) -> int:
    if _blank(page):
        return 1
    try:
        number = int(page)
    except (TypeError, ValueError):
        return 1
    return number if number > 0 else 1


def _parse_price(price: Any) -> Optional[float]:
    if _blank(price):
        return None
    try:
        value = float(price)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def _parse_page_size(page_size: Any) -> int:
    try:
        size = int(page_size)
    except (TypeError, ValueError):
        return DEFAULT_PAGE_SIZE
    return size if size > 0 else DEFAULT_PAGE_SIZE


def build_query(
    search: Optional[str] = None,
    price: Any = None,
    category: Optional[str] = None,
    sort: Optional[str] = None,
    page: Any = None,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> ProductQuery:
    """Build the filter, sort and paging window for a product search.

    Parameters
    ----------
    search : Optional[str]
        Free text matched against the product name, case-insensitively,
        anywhere in the name. The text is escaped so it is always
        matched literally.
    price : Any
        Maximum price (inclusive). Non-numeric values are ignored.
    category : Optional[str]
        Exact category to match.
    sort : Optional[str]
        ``"asc"`` or ``"desc"`` to order by price; anything else keeps
        the store's default order.
    page : Any
        1-indexed page number. Missing, non-numeric or non-positive
        values fall back to the first page.
    page_size : int
        Number of products per page.

    Returns
    -------
    ProductQuery
        The store filter along with ``sort``, ``skip`` and ``limit``.
    """
    filter_: Dict[str, Any] = {}

    if not _blank(search):
        filter_["name"] = {"$regex": re.escape(str(search)), "$options": "i"}

    max_price = _parse_price(price)
    if max_price is not None:
        filter_["price"] = {"$lte": max_price}

    if not _blank(category):
        filter_["category"] = category

    sort_spec: Optional[SortSpec] = None
    if sort == "asc":
        sort_spec = [("price", 1)]
    elif sort == "desc":
        sort_spec = [("price", -1)]

    limit = _parse_page_size(page_size)
    current = _parse_page(page)
    return ProductQuery(
        filter=filter_,
        sort=sort_spec,
        skip=(current - 1) * limit,
        limit=limit,
        page=current,
    )


def total_pages(matching: int, page_size: int) -> int:
    """Number of pages needed to show ``matching`` products."""
    return math.ceil(matching / page_size) if matching > 0 else 0
