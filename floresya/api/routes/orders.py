"""
Order routes

Checkout is open to guests; reads require a token; status changes are
admin only.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from floresya.api.deps import get_current_admin, get_current_user, get_optional_user, get_order_service
from floresya.core.rate_limit import checkout_limit, limiter
from floresya.core.utils import pagination
from floresya.models.user import User
from floresya.schemas.common import envelope
from floresya.schemas.order import (
    OrderCreate,
    OrderCreated,
    OrderDetail,
    OrderStatusUpdate,
    OrderSummary,
)
from floresya.services.order_service import OrderService

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit(checkout_limit)
async def create_order(
    request: Request,
    order_data: OrderCreate,
    user: Optional[User] = Depends(get_optional_user),
    service: OrderService = Depends(get_order_service),
):
    order = await service.create_order(order_data, user)
    return envelope(
        OrderCreated.model_validate(order).model_dump(mode="json"),
        "Order created successfully",
    )


@router.get("/my-orders")
async def list_my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = None,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    orders, total = await service.list_user_orders(user, page=page, limit=limit, status=status)
    return envelope({
        "orders": [OrderSummary.model_validate(o).model_dump(mode="json") for o in orders],
        "pagination": pagination(page, limit, total),
    })


@router.get("/admin/all")
async def list_all_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=100),
    admin: User = Depends(get_current_admin),
    service: OrderService = Depends(get_order_service),
):
    """All orders, filterable by status and searchable by order number, email or name."""
    orders, total = await service.list_all_orders(page=page, limit=limit, status=status, search=search)
    return envelope({
        "orders": [OrderSummary.model_validate(o).model_dump(mode="json") for o in orders],
        "pagination": pagination(page, limit, total),
    })


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    order = await service.get_order(order_id, user)
    return envelope(OrderDetail.model_validate(order).model_dump(mode="json"))


@router.patch("/{order_id}/status")
async def update_order_status(
    order_id: int,
    update: OrderStatusUpdate,
    admin: User = Depends(get_current_admin),
    service: OrderService = Depends(get_order_service),
):
    order = await service.transition_status(order_id, update.status, update.notes, admin.id)
    return envelope(
        {"id": order.id, "order_number": order.order_number, "status": order.status},
        "Order status updated successfully",
    )
