"""
Product routes

Public catalog reads; admin edits and soft delete.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from floresya.api.deps import get_catalog_service, get_current_admin
from floresya.core.utils import pagination
from floresya.models.user import User
from floresya.schemas.common import envelope
from floresya.schemas.product import ProductResponse, ProductUpdate
from floresya.services.catalog_service import CatalogService

router = APIRouter()


@router.get("")
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    featured: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=100),
    service: CatalogService = Depends(get_catalog_service),
):
    products, total = await service.list_products(page=page, limit=limit, featured=featured, search=search)
    return envelope({
        "products": [ProductResponse.model_validate(p).model_dump(mode="json") for p in products],
        "pagination": pagination(page, limit, total),
    })


@router.get("/{product_id}")
async def get_product(product_id: int, service: CatalogService = Depends(get_catalog_service)):
    product = await service.get_product(product_id)
    return envelope(ProductResponse.model_validate(product).model_dump(mode="json"))


@router.patch("/{product_id}")
async def update_product(
    product_id: int,
    update: ProductUpdate,
    admin: User = Depends(get_current_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    product = await service.update_product(product_id, update, admin.id)
    return envelope(ProductResponse.model_validate(product).model_dump(mode="json"), "Product updated successfully")


@router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    admin: User = Depends(get_current_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    product = await service.deactivate_product(product_id, admin.id)
    return envelope({"id": product.id, "active": product.active}, "Product deactivated successfully")
