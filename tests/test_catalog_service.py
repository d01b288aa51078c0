from decimal import Decimal

import pytest

from floresya.core.exceptions import ProductNotFound
from floresya.schemas.product import ProductUpdate
from floresya.services.catalog_service import CatalogService


class TestCatalogService:
    @pytest.mark.asyncio
    async def test_update_product_rounds_price(self, db, make_product, admin):
        product = await make_product(price="10.00")

        updated = await CatalogService(db).update_product(
            product.id, ProductUpdate(price=Decimal("12.345"), stock_quantity=8), admin.id
        )

        assert updated.price == Decimal("12.35")
        assert updated.stock_quantity == 8

    @pytest.mark.asyncio
    async def test_inactive_products_hidden_from_catalog(self, db, make_product):
        await make_product(name="Sunflowers")
        hidden = await make_product(name="Orchids", active=False)
        service = CatalogService(db)

        products, total = await service.list_products()
        assert [p.name for p in products] == ["Sunflowers"]
        assert total == 1

        with pytest.raises(ProductNotFound):
            await service.get_product(hidden.id)
        assert (await service.get_product(hidden.id, include_inactive=True)).name == "Orchids"

    @pytest.mark.asyncio
    async def test_search_by_name(self, db, make_product):
        await make_product(name="Red Roses")
        await make_product(name="White Lilies")

        products, total = await CatalogService(db).list_products(search="lil")

        assert total == 1
        assert products[0].name == "White Lilies"

    @pytest.mark.asyncio
    async def test_adding_same_product_increases_quantity(self, db, make_product, customer):
        product = await make_product(price="4.25")
        service = CatalogService(db)

        await service.add_to_cart(customer, product.id, 1)
        await service.add_to_cart(customer, product.id, 2)

        items, subtotal = await service.get_cart(customer)
        assert len(items) == 1
        assert items[0].quantity == 3
        assert subtotal == Decimal("12.75")

    @pytest.mark.asyncio
    async def test_cannot_add_inactive_product(self, db, make_product, customer):
        product = await make_product(active=False)

        with pytest.raises(ProductNotFound):
            await CatalogService(db).add_to_cart(customer, product.id, 1)
