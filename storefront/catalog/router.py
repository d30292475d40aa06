"""
Route definitions for the product API.

Endpoints under /api/v1/product:
- GET    /latest          : five newest products (cached)
- GET    /categories      : distinct categories (cached)
- GET    /admin-products  : every product, unfiltered (cached)
- GET    /all             : search/filter/sort/page products (not cached)
- GET    /{product_id}    : one product (cached)
- POST   /new             : create a product (multipart, photo required)
- PUT    /{product_id}    : partial update (multipart, all fields optional)
- DELETE /{product_id}    : delete a product and its photo
"""

from __future__ import annotations

import shutil
import uuid
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile

from ..config import Settings
from .service import CatalogService

router = APIRouter(prefix="/api/v1/product", tags=["product"])


def get_catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalog


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _stage_upload(photo: Optional[UploadFile], upload_dir: Path) -> Optional[Path]:
    """Write an uploaded photo to the staging directory.

    The file gets a short random prefix so concurrent uploads of the
    same filename do not clobber each other. The catalog service owns
    the staged file from here on and removes it once it is done.
    """
    if photo is None or not photo.filename:
        return None
    upload_dir.mkdir(parents=True, exist_ok=True)
    target = upload_dir / f"{uuid.uuid4().hex[:8]}-{Path(photo.filename).name}"
    with target.open("wb") as out:
        shutil.copyfileobj(photo.file, out)
    return target


@router.get("/latest")
def get_latest_products(service: CatalogService = Depends(get_catalog_service)):
    return {"success": True, "products": service.latest_products()}


@router.get("/categories")
def get_categories(service: CatalogService = Depends(get_catalog_service)):
    return {"success": True, "categories": service.categories()}


@router.get("/admin-products")
def get_admin_products(service: CatalogService = Depends(get_catalog_service)):
    return {"success": True, "products": service.admin_products()}


@router.get("/all")
def get_all_products(
    search: Optional[str] = Query(default=None, description="Search in product names"),
    price: Optional[str] = Query(default=None, description="Maximum price"),
    category: Optional[str] = Query(default=None, description="Exact category"),
    sort: Optional[str] = Query(default=None, description="'asc' or 'desc' by price"),
    page: Optional[str] = Query(default=None, description="Page number (1-indexed)"),
    service: CatalogService = Depends(get_catalog_service),
):
    # Malformed numbers are tolerated here and normalised by the query builder.
    result = service.search_products(
        search=search, price=price, category=category, sort=sort, page=page
    )
    return {"success": True, "products": result.products, "totalPage": result.total_page}


@router.get("/{product_id}")
def get_single_product(product_id: str, service: CatalogService = Depends(get_catalog_service)):
    return {"success": True, "product": service.get_product(product_id)}


@router.post("/new", status_code=201)
def new_product(
    name: Optional[str] = Form(default=None),
    category: Optional[str] = Form(default=None),
    stock: Optional[int] = Form(default=None),
    price: Optional[float] = Form(default=None),
    photo: Optional[UploadFile] = File(default=None),
    service: CatalogService = Depends(get_catalog_service),
    settings: Settings = Depends(get_app_settings),
):
    staged = _stage_upload(photo, settings.upload_dir)
    product = service.create_product(
        name=name, category=category, stock=stock, price=price, photo_path=staged
    )
    return {
        "success": True,
        "message": "Product Created Successfully",
        "product": product,
        "photoUrl": product.photo,
    }


@router.put("/{product_id}")
def update_product(
    product_id: str,
    name: Optional[str] = Form(default=None),
    category: Optional[str] = Form(default=None),
    stock: Optional[int] = Form(default=None),
    price: Optional[float] = Form(default=None),
    photo: Optional[UploadFile] = File(default=None),
    service: CatalogService = Depends(get_catalog_service),
    settings: Settings = Depends(get_app_settings),
):
    staged = _stage_upload(photo, settings.upload_dir)
    product = service.update_product(
        product_id,
        name=name,
        category=category,
        stock=stock,
        price=price,
        photo_path=staged,
    )
    return {"success": True, "message": "Product Updated Successfully", "product": product}


@router.delete("/{product_id}")
def delete_product(product_id: str, service: CatalogService = Depends(get_catalog_service)):
    service.delete_product(product_id)
    return {"success": True, "message": "Product Deleted Successfully"}
