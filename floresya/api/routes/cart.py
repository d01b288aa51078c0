"""
Cart routes
"""
from fastapi import APIRouter, Depends, HTTPException, status

from floresya.api.deps import get_catalog_service, get_current_user
from floresya.models.user import User
from floresya.schemas.common import envelope
from floresya.schemas.product import CartItemCreate, CartItemResponse, CartResponse
from floresya.services.catalog_service import CatalogService

router = APIRouter()


@router.get("")
async def get_cart(
    user: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
):
    items, subtotal = await service.get_cart(user)
    cart = CartResponse(
        items=[CartItemResponse.model_validate(item) for item in items],
        subtotal=float(subtotal),
        item_count=sum(item.quantity for item in items),
    )
    return envelope(cart.model_dump(mode="json"))


@router.post("/items", status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    item_data: CartItemCreate,
    user: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
):
    item = await service.add_to_cart(user, item_data.product_id, item_data.quantity)
    return envelope(
        {"product_id": item.product_id, "quantity": item.quantity},
        "Item added to cart",
    )


@router.delete("/items/{product_id}")
async def remove_from_cart(
    product_id: int,
    user: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
):
    if not await service.remove_from_cart(user, product_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not in cart")
    return envelope(message="Item removed from cart")
