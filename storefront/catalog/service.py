"""
Catalog service: cache-aside reads and invalidating writes.

Read paths consult the process cache first and fall back to the
product store on a miss, populating the cache before returning. The
cache is strictly a performance layer: any failure talking to it, or
decoding what it holds, is logged and treated as a miss.

Write paths run in a fixed order: upload the photo (if any), mutate
the store, then invalidate every cached view that depends on the
product. Invalidation always finishes before the write returns, which
narrows (but cannot close) the window in which a concurrent read could
repopulate the cache with pre-write data.
"""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from ..errors import NotFoundError, ValidationError
from .blobs import BlobStore
from .cache import (
    ALL_PRODUCTS_KEY,
    CATEGORIES_KEY,
    LATEST_PRODUCTS_KEY,
    CacheCodec,
    CacheStore,
    product_key,
)
from .query import DEFAULT_PAGE_SIZE, build_query, total_pages
from .schemas import InvalidationRequest, OrderItem, Product, ProductPage
from .store import ProductStore

logger = logging.getLogger(__name__)

LATEST_LIMIT = 5

PathLike = Union[str, Path]


def discard_staged_file(path: PathLike) -> None:
    """Remove a locally staged upload, logging instead of raising."""
    try:
        Path(path).unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Could not remove staged file %s: %s", path, exc)
    else:
        logger.debug("Removed staged file %s", path)


def _check_amounts(stock: Optional[int] = None, price: Optional[float] = None) -> None:
    if stock is not None and stock < 0:
        raise ValidationError("Stock cannot be negative")
    if price is not None and price < 0:
        raise ValidationError("Price cannot be negative")


@contextlib.contextmanager
def staged_upload(path: Optional[PathLike]) -> Iterator[Optional[PathLike]]:
    """Yield ``path`` and remove the staged file however the block exits."""
    try:
        yield path
    finally:
        if path:
            discard_staged_file(path)


class CatalogService:
    def __init__(
        self,
        store: ProductStore,
        blobs: BlobStore,
        cache: CacheStore,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.store = store
        self.blobs = blobs
        self.cache = cache
        self.page_size = page_size
        self._products_codec: CacheCodec[List[Product]] = CacheCodec(List[Product])
        self._product_codec: CacheCodec[Product] = CacheCodec(Product)
        self._categories_codec: CacheCodec[List[str]] = CacheCodec(List[str])

    # ------------------------------------------------------------------
    # Cache helpers (fail open)

    def _cache_read(self, key: str, codec: CacheCodec) -> Any:
        try:
            raw = self.cache.get(key)
            if raw is None:
                logger.debug("Cache miss for %s", key)
                return None
            value = codec.decode(raw)
        except Exception as exc:
            logger.warning("Cache read for %s failed, falling back to store: %s", key, exc)
            return None
        logger.debug("Cache hit for %s", key)
        return value

    def _cache_write(self, key: str, codec: CacheCodec, value: Any) -> None:
        try:
            self.cache.set(key, codec.encode(value))
        except Exception as exc:
            logger.warning("Cache write for %s failed: %s", key, exc)

    def _cache_delete(self, key: str) -> None:
        try:
            self.cache.delete(key)
        except Exception as exc:
            logger.error("Cache invalidation for %s failed: %s", key, exc)

    def _cached(self, key: str, codec: CacheCodec, loader: Callable[[], Any]) -> Any:
        value = self._cache_read(key, codec)
        if value is not None:
            return value
        # Loader errors propagate before anything is written for this key.
        value = loader()
        self._cache_write(key, codec, value)
        return value

    # ------------------------------------------------------------------
    # Read paths

    def latest_products(self) -> List[Product]:
        return self._cached(
            LATEST_PRODUCTS_KEY,
            self._products_codec,
            lambda: self.store.find({}, sort=[("created_at", -1)], limit=LATEST_LIMIT),
        )

    def categories(self) -> List[str]:
        return self._cached(
            CATEGORIES_KEY,
            self._categories_codec,
            lambda: self.store.distinct("category"),
        )

    def admin_products(self) -> List[Product]:
        return self._cached(ALL_PRODUCTS_KEY, self._products_codec, lambda: self.store.find({}))

    def get_product(self, product_id: str) -> Product:
        """Return one product; unknown ids raise ``NotFoundError`` and are never cached."""

        def load() -> Product:
            product = self.store.find_by_id(product_id)
            if product is None:
                raise NotFoundError()
            return product

        return self._cached(product_key(product_id), self._product_codec, load)

    def search_products(
        self,
        search: Optional[str] = None,
        price: Any = None,
        category: Optional[str] = None,
        sort: Optional[str] = None,
        page: Any = None,
    ) -> ProductPage:
        query = build_query(
            search=search,
            price=price,
            category=category,
            sort=sort,
            page=page,
            page_size=self.page_size,
        )
        products = self.store.find(query.filter, sort=query.sort, limit=query.limit, skip=query.skip)
        matching = self.store.count(query.filter)
        return ProductPage(
            products=products,
            page=query.page,
            page_size=query.limit,
            total=matching,
            total_page=total_pages(matching, query.limit),
        )

    # ------------------------------------------------------------------
    # Write paths

    def _release_photo(self, ref: Optional[str]) -> None:
        if not ref:
            return
        try:
            self.blobs.delete(ref)
        except Exception as exc:
            logger.error("Releasing photo %s failed: %s", ref, exc)

    def create_product(
        self,
        name: Optional[str] = None,
        category: Optional[str] = None,
        stock: Optional[int] = None,
        price: Optional[float] = None,
        photo_path: Optional[PathLike] = None,
    ) -> Product:
        if not photo_path:
            raise ValidationError("Please add photo")

        with staged_upload(photo_path):
            # Zero is a valid stock or price; only missing values are rejected.
            if not name or not category or stock is None or price is None:
                raise ValidationError("Please add all fields")
            _check_amounts(stock=stock, price=price)

            photo_url = self.blobs.upload(photo_path)
            try:
                product = self.store.create(
                    {
                        "name": name,
                        "category": category.lower(),
                        "price": price,
                        "stock": stock,
                        "photo": photo_url,
                    }
                )
            except Exception:
                self._release_photo(photo_url)
                raise

        logger.info("Created product %s", product.id)
        self.invalidate(InvalidationRequest(product=True, admin=True))
        return product

    def update_product(
        self,
        product_id: str,
        name: Optional[str] = None,
        category: Optional[str] = None,
        stock: Optional[int] = None,
        price: Optional[float] = None,
        photo_path: Optional[PathLike] = None,
    ) -> Product:
        """Overwrite only the supplied fields of an existing product.

        Empty strings count as not supplied; ``stock`` and ``price`` are
        applied whenever they are not ``None`` so stock can be set to 0.
        """
        with staged_upload(photo_path):
            current = self.store.find_by_id(product_id)
            if current is None:
                raise NotFoundError()
            _check_amounts(stock=stock, price=price)

            fields: Dict[str, Any] = {}
            if photo_path:
                fields["photo"] = self.blobs.upload(photo_path)
            if name:
                fields["name"] = name
            if price is not None:
                fields["price"] = price
            if stock is not None:
                fields["stock"] = stock
            if category:
                fields["category"] = category.lower()

            try:
                product = self.store.update(current.id, fields) if fields else current
            except Exception:
                if fields.get("photo") != current.photo:
                    self._release_photo(fields.get("photo"))
                raise

        # The old photo goes only once the product points at its replacement.
        if "photo" in fields and current.photo != product.photo:
            self._release_photo(current.photo)

        logger.info("Updated product %s (%s)", product.id, ", ".join(sorted(fields)) or "no changes")
        self.invalidate(InvalidationRequest(product=True, admin=True, product_id=product.id))
        return product

    def delete_product(self, product_id: str) -> None:
        product = self.store.find_by_id(product_id)
        if product is None:
            raise NotFoundError()

        self._release_photo(product.photo)
        self.store.delete(product.id)
        logger.info("Deleted product %s", product.id)
        self.invalidate(InvalidationRequest(product=True, admin=True, product_id=product.id))

    def reduce_stock(self, items: List[OrderItem]) -> List[Product]:
        """Take ordered quantities out of stock after an order is placed.

        Every product is checked before anything is written; stock never
        drops below zero.
        """
        current: Dict[str, Product] = {}
        for item in items:
            product = current.get(item.product_id) or self.store.find_by_id(item.product_id)
            if product is None:
                raise NotFoundError(f"Product {item.product_id} Not Found")
            current[item.product_id] = product

        remaining: Dict[str, int] = {pid: p.stock for pid, p in current.items()}
        for item in items:
            remaining[item.product_id] = max(0, remaining[item.product_id] - item.quantity)

        updated: List[Product] = []
        for product_id, stock in remaining.items():
            product = self.store.update(current[product_id].id, {"stock": stock})
            self.invalidate(InvalidationRequest(product=True, admin=True, product_id=product.id))
            updated.append(product)
        return updated

    # ------------------------------------------------------------------
    # Invalidation

    def invalidate(self, request: InvalidationRequest) -> None:
        """Drop every cached view named by ``request``.

        Safe to call from any write path, including ones outside the
        catalogue: absent keys are ignored and cache failures are logged.
        """
        keys: List[str] = []
        if request.product:
            keys.extend([LATEST_PRODUCTS_KEY, CATEGORIES_KEY])
        if request.admin:
            keys.append(ALL_PRODUCTS_KEY)
        if request.product_id:
            keys.append(product_key(request.product_id))

        for key in keys:
            self._cache_delete(key)
        if keys:
            logger.info("Invalidated cache keys: %s", ", ".join(keys))
