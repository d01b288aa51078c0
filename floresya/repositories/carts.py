from typing import List

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from floresya.models import CartItem


class CartRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for_user(self, user_id: int) -> List[CartItem]:
        result = await self.db.execute(
            select(CartItem)
            .options(selectinload(CartItem.product))
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.id)
        )
        return list(result.scalars().all())

    async def add(self, user_id: int, product_id: int, quantity: int) -> CartItem:
        """Add a line or increase the quantity of an existing one."""
        result = await self.db.execute(
            select(CartItem).where(
                CartItem.user_id == user_id,
                CartItem.product_id == product_id,
            )
        )
        item = result.scalar_one_or_none()
        if item:
            item.quantity += quantity
        else:
            item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
            self.db.add(item)
        await self.db.flush()
        return item

    async def remove(self, user_id: int, product_id: int) -> bool:
        result = await self.db.execute(
            delete(CartItem).where(
                CartItem.user_id == user_id,
                CartItem.product_id == product_id,
            )
        )
        return result.rowcount > 0

    async def clear(self, user_id: int) -> int:
        result = await self.db.execute(delete(CartItem).where(CartItem.user_id == user_id))
        return result.rowcount
