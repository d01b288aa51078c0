from typing import List, Optional, Tuple

from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from floresya.core.utils import utcnow
from floresya.models import Order, OrderItem, OrderStatusHistory, User


class OrderRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, order: Order) -> Order:
        """Insert and flush so order.id is available for child rows."""
        self.db.add(order)
        await self.db.flush()
        return order

    async def add_items(self, items: List[OrderItem]) -> None:
        self.db.add_all(items)
        await self.db.flush()

    async def add_history(self, entry: OrderStatusHistory) -> OrderStatusHistory:
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def get(self, order_id: int) -> Optional[Order]:
        result = await self.db.execute(select(Order).where(Order.id == order_id))
        return result.scalar_one_or_none()

    async def move_status(self, order_id: int, from_status: str, to_status: str) -> bool:
        """
        Conditional status change: only applies while the order is still
        in `from_status`. Returns False when the row had already moved on.
        """
        result = await self.db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == from_status)
            .values(status=to_status, updated_at=utcnow())
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount == 1

    async def get_detail(self, order_id: int) -> Optional[Order]:
        """Order with items, status history and owner eagerly loaded."""
        result = await self.db.execute(
            select(Order)
            .options(
                selectinload(Order.items),
                selectinload(Order.status_history),
                selectinload(Order.user),
            )
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list(
        self,
        page: int = 1,
        limit: int = 20,
        user_id: Optional[int] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Order], int]:
        query = select(Order)
        if user_id is not None:
            query = query.where(Order.user_id == user_id)
        if status:
            query = query.where(Order.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.outerjoin(User, Order.user_id == User.id).where(
                or_(
                    Order.order_number.ilike(pattern),
                    Order.guest_email.ilike(pattern),
                    User.first_name.ilike(pattern),
                    User.last_name.ilike(pattern),
                )
            )

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )).scalar() or 0

        result = await self.db.execute(
            query.options(selectinload(Order.items))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def notification_email(self, order_id: int) -> Optional[str]:
        """Owning user's email, or the guest email for guest orders."""
        result = await self.db.execute(
            select(User.email, Order.guest_email)
            .select_from(Order)
            .outerjoin(User, Order.user_id == User.id)
            .where(Order.id == order_id)
        )
        row = result.first()
        if row is None:
            return None
        return row[0] or row[1]
