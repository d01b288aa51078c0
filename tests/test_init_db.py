import pytest
from sqlalchemy import select

from floresya.models import PaymentMethod, User
from floresya.scripts.init_db import DEFAULT_PAYMENT_METHODS, ensure_admin, seed_payment_methods


@pytest.mark.asyncio
async def test_seed_payment_methods_is_idempotent(db, payment_method):
    created = await seed_payment_methods(db)
    await db.commit()

    assert created == len(DEFAULT_PAYMENT_METHODS) - 1
    assert await seed_payment_methods(db) == 0

    types = (await db.execute(select(PaymentMethod.type))).scalars().all()
    assert sorted(types) == sorted(m["type"] for m in DEFAULT_PAYMENT_METHODS)


@pytest.mark.asyncio
async def test_ensure_admin_promotes_existing_user(db, customer):
    assert await ensure_admin(db, "MARIA@example.com", "unused-password") is False
    await db.commit()

    user = await db.get(User, customer.id, populate_existing=True)
    assert user.role == "admin"


@pytest.mark.asyncio
async def test_ensure_admin_creates_account(db):
    assert await ensure_admin(db, "jefe@floresya.com", "s3cret-pass") is True
    await db.commit()

    user = (await db.execute(select(User).where(User.email == "jefe@floresya.com"))).scalar_one()
    assert user.is_admin
