"""
Shared fixtures for the storefront test suite.
"""

from pathlib import Path

import pytest

from storefront.catalog.blobs import LocalBlobStore
from storefront.catalog.cache import CacheStore
from storefront.catalog.service import CatalogService
from storefront.catalog.store import InMemoryProductStore


@pytest.fixture
def upload_dir(tmp_path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def media_dir(tmp_path) -> Path:
    return tmp_path / "media"


@pytest.fixture
def store():
    return InMemoryProductStore()


@pytest.fixture
def blobs(media_dir):
    return LocalBlobStore(media_dir, "/media")


@pytest.fixture
def cache():
    return CacheStore()


@pytest.fixture
def service(store, blobs, cache):
    return CatalogService(store=store, blobs=blobs, cache=cache, page_size=8)


@pytest.fixture
def make_photo(upload_dir):
    """Stage a fake photo in the upload directory and return its path."""

    def _make(name: str = "photo.jpg", content: bytes = b"\xff\xd8fake-jpeg") -> Path:
        path = upload_dir / name
        path.write_bytes(content)
        return path

    return _make


@pytest.fixture
def seed(store):
    """Insert products straight into the store, bypassing the service."""

    def _seed(count: int, **overrides):
        products = []
        for i in range(count):
            fields = {
                "name": f"Product {i}",
                "category": "misc",
                "price": float(10 + i),
                "stock": 5,
                "photo": f"/media/p{i}.jpg",
            }
            fields.update(overrides)
            products.append(store.create(fields))
        return products

    return _seed
