"""
CatalogService - products and the persisted cart
"""
import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from floresya.core.exceptions import ProductNotFound
from floresya.core.utils import to_money
from floresya.models import CartItem, Product, User
from floresya.repositories import CartRepository, ProductRepository
from floresya.schemas.product import ProductUpdate

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, db: AsyncSession, log: Optional[logging.Logger] = None):
        self.db = db
        self.log = log or logger
        self.products = ProductRepository(db)
        self.carts = CartRepository(db)

    async def list_products(
        self,
        page: int = 1,
        limit: int = 20,
        featured: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Product], int]:
        return await self.products.list_active(page=page, limit=limit, featured=featured, search=search)

    async def get_product(self, product_id: int, include_inactive: bool = False) -> Product:
        product = await self.products.get(product_id)
        if product is None or (not product.active and not include_inactive):
            raise ProductNotFound(product_id)
        return product

    async def update_product(self, product_id: int, data: ProductUpdate, actor_id: int) -> Product:
        """Admin edit. stock_quantity and price are set directly."""
        changes = data.model_dump(exclude_unset=True)
        if changes.get("price") is not None:
            changes["price"] = to_money(changes["price"])

        try:
            product = await self.get_product(product_id, include_inactive=True)
            await self.products.apply_changes(product, changes)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        self.log.info(f"Product {product_id} updated by user {actor_id}: {sorted(changes)}")
        return product

    async def deactivate_product(self, product_id: int, actor_id: int) -> Product:
        """Soft delete; ordered products must stay referenced."""
        try:
            product = await self.get_product(product_id, include_inactive=True)
            await self.products.apply_changes(product, {"active": False})
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        self.log.info(f"Product {product_id} deactivated by user {actor_id}")
        return product

    async def get_cart(self, user: User) -> Tuple[List[CartItem], Decimal]:
        items = await self.carts.list_for_user(user.id)
        subtotal = sum(
            (to_money(item.product.price) * item.quantity for item in items),
            Decimal("0.00"),
        )
        return items, subtotal

    async def add_to_cart(self, user: User, product_id: int, quantity: int) -> CartItem:
        try:
            await self.get_product(product_id)
            item = await self.carts.add(user.id, product_id, quantity)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return item

    async def remove_from_cart(self, user: User, product_id: int) -> bool:
        try:
            removed = await self.carts.remove(user.id, product_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return removed
