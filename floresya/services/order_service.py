"""
OrderService - order creation and the order status state machine

Each write operation runs in one transaction on the injected session:
work, commit, and on any exception rollback and re-raise. Events go out
only after a successful commit.
"""
import uuid
import logging
from collections import OrderedDict
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from floresya.core.config import settings
from floresya.core.exceptions import (
    EmptyOrder,
    GuestEmailRequired,
    InsufficientStock,
    InvalidOrderStatus,
    OrderNotFound,
    ProductNotFound,
    ValidationFailure,
)
from floresya.core.utils import to_money, utcnow
from floresya.models import Order, OrderItem, OrderStatus, OrderStatusHistory, Product, User
from floresya.repositories import CartRepository, OrderRepository, ProductRepository
from floresya.schemas.order import OrderCreate
from floresya.services.notifications import EventSink, OrderLine, OrderPlaced, OrderStatusChanged

logger = logging.getLogger(__name__)

ORDER_CREATED_NOTE = "Order created"


def generate_order_number(prefix: Optional[str] = None) -> str:
    """Order number in format FL-YYYYMMDD-XXXXXXXX."""
    prefix = prefix or settings.ORDER_NUMBER_PREFIX
    return f"{prefix}-{datetime.now(timezone.utc).strftime('%Y%m%d')}-{uuid.uuid4().hex[:8].upper()}"


def build_product_snapshot(product: Product, unit_price: Decimal) -> dict:
    """Capture product data at purchase time."""
    return {
        "id": product.id,
        "name": product.name,
        "price": str(unit_price),
        "image_url": product.image_url,
    }


class OrderService:
    def __init__(
        self,
        db: AsyncSession,
        events: EventSink,
        log: Optional[logging.Logger] = None,
    ):
        self.db = db
        self.events = events
        self.log = log or logger
        self.products = ProductRepository(db)
        self.carts = CartRepository(db)
        self.orders = OrderRepository(db)

    @staticmethod
    def _merge_lines(data: OrderCreate) -> "OrderedDict[int, int]":
        lines: "OrderedDict[int, int]" = OrderedDict()
        for item in data.items:
            if item.quantity < 1:
                raise ValidationFailure(
                    "Quantity must be at least 1",
                    details={"product_id": item.product_id, "quantity": item.quantity},
                )
            lines[item.product_id] = lines.get(item.product_id, 0) + item.quantity
        return lines

    async def create_order(self, data: OrderCreate, user: Optional[User] = None) -> Order:
        """
        Place an order for an authenticated user or a guest.

        Stock is checked against the row read here, then taken with a
        conditional UPDATE; a concurrent order that got there first makes
        the UPDATE miss and the whole order rolls back.
        """
        if not data.items:
            raise EmptyOrder()
        if user is None and not data.guest_email:
            raise GuestEmailRequired()
        lines = self._merge_lines(data)
        recipient = user.email if user is not None else data.guest_email

        try:
            priced: List[Tuple[Product, int, Decimal, Decimal]] = []
            for product_id, quantity in lines.items():
                product = await self.products.get(product_id)
                if product is None or not product.active:
                    raise ProductNotFound(product_id)
                if product.stock_quantity < quantity:
                    self.log.warning(
                        f"Insufficient stock for product {product.id} ({product.name}): "
                        f"requested {quantity}, available {product.stock_quantity}"
                    )
                    raise InsufficientStock(
                        product.name,
                        product_id=product.id,
                        requested_qty=quantity,
                        available_qty=product.stock_quantity,
                    )
                unit_price = to_money(product.price)
                priced.append((product, quantity, unit_price, to_money(unit_price * quantity)))

            total_amount = sum((line_total for _, _, _, line_total in priced), Decimal("0.00"))

            order = await self.orders.add(Order(
                order_number=generate_order_number(),
                user_id=user.id if user is not None else None,
                guest_email=None if user is not None else data.guest_email,
                status=OrderStatus.PENDING.value,
                total_amount=total_amount,
                currency=settings.DEFAULT_CURRENCY,
                shipping_address=data.shipping_address.model_dump(),
                billing_address=data.billing_address.model_dump() if data.billing_address else None,
                notes=data.notes,
                delivery_date=data.delivery_date,
            ))

            items = [
                OrderItem(
                    order_id=order.id,
                    product_id=product.id,
                    quantity=quantity,
                    unit_price=unit_price,
                    total_price=line_total,
                    product_snapshot=build_product_snapshot(product, unit_price),
                )
                for product, quantity, unit_price, line_total in priced
            ]
            await self.orders.add_items(items)

            for product, quantity, _, _ in priced:
                if not await self.products.decrement_stock(product.id, quantity):
                    self.log.warning(
                        f"Stock for product {product.id} ({product.name}) changed during checkout"
                    )
                    raise InsufficientStock(
                        product.name,
                        product_id=product.id,
                        requested_qty=quantity,
                    )

            await self.orders.add_history(OrderStatusHistory(
                order_id=order.id,
                old_status=None,
                new_status=OrderStatus.PENDING.value,
                notes=ORDER_CREATED_NOTE,
                changed_by=user.id if user is not None else None,
            ))

            if user is not None:
                cleared = await self.carts.clear(user.id)
                self.log.debug(f"Cleared {cleared} cart line(s) for user {user.id}")

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        self.log.info(
            f"Order {order.order_number} created "
            f"(user={user.id if user is not None else 'guest'}, total={total_amount})"
        )

        self.events.emit(OrderPlaced(
            order_id=order.id,
            order_number=order.order_number,
            recipient=recipient,
            total_amount=total_amount,
            currency=order.currency,
            lines=tuple(
                OrderLine(
                    product_name=product.name,
                    quantity=quantity,
                    unit_price=unit_price,
                    total_price=line_total,
                )
                for product, quantity, unit_price, line_total in priced
            ),
            shipping_address=dict(order.shipping_address or {}),
        ))
        return order

    async def get_order(self, order_id: int, user: User) -> Order:
        """Order with items and history. Other users' orders look missing."""
        order = await self.orders.get_detail(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        if not user.is_admin and order.user_id != user.id:
            raise OrderNotFound(order_id)
        return order

    async def list_user_orders(
        self,
        user: User,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
    ) -> Tuple[List[Order], int]:
        if status is not None and status not in OrderStatus.values():
            raise InvalidOrderStatus(status)
        return await self.orders.list(page=page, limit=limit, user_id=user.id, status=status)

    async def list_all_orders(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Order], int]:
        if status is not None and status not in OrderStatus.values():
            raise InvalidOrderStatus(status)
        return await self.orders.list(page=page, limit=limit, status=status, search=search)

    async def transition_status(
        self,
        order_id: int,
        new_status: str,
        notes: Optional[str] = None,
        actor_id: Optional[int] = None,
    ) -> Order:
        """
        Move an order to any of the known statuses.

        No adjacency rules are enforced between states; any known status
        is accepted as a target.
        """
        if new_status not in OrderStatus.values():
            raise InvalidOrderStatus(new_status)

        try:
            order = await self.orders.get(order_id)
            if order is None:
                raise OrderNotFound(order_id)

            old_status = order.status
            order.status = new_status
            order.updated_at = utcnow()
            await self.orders.add_history(OrderStatusHistory(
                order_id=order.id,
                old_status=old_status,
                new_status=new_status,
                notes=notes,
                changed_by=actor_id,
            ))
            recipient = await self.orders.notification_email(order.id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        self.log.info(
            f"Order {order.order_number} status {old_status} -> {new_status} (by user {actor_id})"
        )

        self.events.emit(OrderStatusChanged(
            order_id=order.id,
            order_number=order.order_number,
            recipient=recipient,
            old_status=old_status,
            new_status=new_status,
            notes=notes,
        ))
        return order
