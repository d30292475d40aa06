"""
Unit tests for the catalog cache store and codecs.
"""

from typing import List

import pytest
from pydantic import ValidationError as PydanticValidationError

from storefront.catalog.cache import (
    ALL_PRODUCTS_KEY,
    CATEGORIES_KEY,
    LATEST_PRODUCTS_KEY,
    CacheCodec,
    CacheStore,
    product_key,
)
from storefront.catalog.schemas import Product


class TestCacheStore:
    """Test cases for CacheStore."""

    def test_set_get_has(self):
        cache = CacheStore()
        cache.set("k", b"v")

        assert cache.has("k")
        assert cache.get("k") == b"v"

    def test_get_missing_returns_none(self):
        cache = CacheStore()
        assert cache.get("missing") is None
        assert not cache.has("missing")

    def test_set_overwrites(self):
        cache = CacheStore()
        cache.set("k", b"one")
        cache.set("k", b"two")
        assert cache.get("k") == b"two"

    def test_delete_absent_key_is_noop(self):
        """Test that deleting a key twice never errors."""
        cache = CacheStore()
        cache.set("k", b"v")

        cache.delete("k")
        cache.delete("k")

        assert not cache.has("k")

    def test_clear(self):
        cache = CacheStore()
        cache.set("a", b"1")
        cache.set("b", b"2")
        assert sorted(cache.keys()) == ["a", "b"]

        cache.clear()
        assert cache.keys() == []


class TestCacheKeys:
    """Test that key names stay exactly as clients expect."""

    def test_fixed_keys(self):
        assert LATEST_PRODUCTS_KEY == "latest-products"
        assert CATEGORIES_KEY == "categories"
        assert ALL_PRODUCTS_KEY == "all-products"

    def test_product_key(self):
        assert product_key("64b7f0c2") == "product-64b7f0c2"


class TestCacheCodec:
    """Test cases for CacheCodec."""

    def test_product_list(self):
        codec = CacheCodec(List[Product])
        products = [
            Product(id="1", name="Shirt", category="clothes", price=20, stock=3, photo="/media/a.jpg"),
            Product(id="2", name="Hat", category="clothes", price=5.5, stock=0, photo="/media/b.jpg"),
        ]

        decoded = codec.decode(codec.encode(products))

        assert decoded == products
        assert isinstance(decoded[0], Product)

    def test_empty_list_survives(self):
        codec = CacheCodec(List[str])
        assert codec.decode(codec.encode([])) == []

    def test_decode_rejects_wrong_shape(self):
        """Test that a single-product codec refuses a cached list."""
        codec = CacheCodec(Product)
        with pytest.raises(PydanticValidationError):
            codec.decode(b'["clothes"]')
