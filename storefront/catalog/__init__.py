"""
Catalog package for the storefront API.

This package holds the product catalogue: the pydantic schemas, the
product and blob stores, the process-local read cache, the query
builder for product search and the ``CatalogService`` tying them
together. ``router`` exposes the service over HTTP; the application
in ``storefront.main`` wires a single ``CatalogService`` instance into
it at startup.
"""

from .router import router as catalog_router  # noqa: F401
