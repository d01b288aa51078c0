from typing import List, Optional, Tuple

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from floresya.models import Product
from floresya.core.utils import utcnow


class ProductRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, product_id: int) -> Optional[Product]:
        result = await self.db.execute(select(Product).where(Product.id == product_id))
        return result.scalar_one_or_none()

    async def list_active(
        self,
        page: int = 1,
        limit: int = 20,
        featured: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Product], int]:
        query = select(Product).where(Product.active == True)
        if featured is not None:
            query = query.where(Product.featured == featured)
        if search:
            query = query.where(Product.name.ilike(f"%{search}%"))

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )).scalar() or 0

        result = await self.db.execute(
            query.order_by(Product.name, Product.id).offset((page - 1) * limit).limit(limit)
        )
        return list(result.scalars().all()), total

    async def decrement_stock(self, product_id: int, quantity: int) -> bool:
        """
        Atomically take `quantity` units from an active product.

        Returns False when the row no longer has enough stock (or went
        inactive) by the time the UPDATE runs.
        """
        result = await self.db.execute(
            update(Product)
            .where(
                Product.id == product_id,
                Product.active == True,
                Product.stock_quantity >= quantity,
            )
            .values(
                stock_quantity=Product.stock_quantity - quantity,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def apply_changes(self, product: Product, changes: dict) -> Product:
        for field, value in changes.items():
            setattr(product, field, value)
        await self.db.flush()
        return product
