#!/usr/bin/env python3
"""
Create tables and seed reference data.

Usage:
    python -m floresya.scripts.init_db
    python -m floresya.scripts.init_db --admin-email admin@floresya.com

Environment:
    FLORESYA_ADMIN_PASSWORD - Admin password (or prompt if not set)
"""
import argparse
import asyncio
import getpass
import logging
import os

from sqlalchemy import select

from floresya.core.database import create_tables, engine, session_scope
from floresya.core.security import hash_password
from floresya.models import PaymentMethod, PaymentMethodType, User, UserRole

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_METHODS = [
    {
        "name": "Pago Móvil",
        "type": PaymentMethodType.PAGO_MOVIL.value,
        "configuration": {"bank": "", "phone": "", "id_number": ""},
        "instructions": "Send the exact order total by Pago Móvil and enter the reference number.",
    },
    {
        "name": "Bank Transfer",
        "type": PaymentMethodType.BANK_TRANSFER.value,
        "configuration": {"bank": "", "account_number": "", "account_holder": ""},
        "instructions": "Transfer the order total and upload a screenshot of the receipt.",
    },
    {
        "name": "Zelle",
        "type": PaymentMethodType.ZELLE.value,
        "configuration": {"email": ""},
        "instructions": "Send the payment through Zelle and include your order number in the memo.",
    },
    {
        "name": "Binance Pay",
        "type": PaymentMethodType.BINANCE_PAY.value,
        "configuration": {"pay_id": ""},
        "instructions": "Pay with Binance Pay and enter the transaction ID as the reference.",
    },
    {
        "name": "Cash",
        "type": PaymentMethodType.CASH.value,
        "configuration": {},
        "instructions": "Pay in cash on delivery or pickup.",
    },
]


async def seed_payment_methods(db) -> int:
    result = await db.execute(select(PaymentMethod.type))
    existing = set(result.scalars().all())
    created = 0
    for method in DEFAULT_PAYMENT_METHODS:
        if method["type"] in existing:
            continue
        db.add(PaymentMethod(active=True, **method))
        created += 1
    return created


async def ensure_admin(db, email: str, password: str) -> bool:
    result = await db.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()
    if user:
        if user.role != UserRole.ADMIN.value:
            user.role = UserRole.ADMIN.value
            logger.info(f"Promoted {email} to admin")
        return False
    db.add(User(
        email=email.lower(),
        hashed_password=hash_password(password),
        first_name="Admin",
        last_name="FloresYa",
        role=UserRole.ADMIN.value,
        is_active=True,
    ))
    return True


async def main(admin_email: str = None) -> None:
    await create_tables()
    logger.info("Tables created")

    async with session_scope() as db:
        created = await seed_payment_methods(db)
        logger.info(f"Seeded {created} payment method(s)")

        if admin_email:
            password = os.getenv("FLORESYA_ADMIN_PASSWORD") or getpass.getpass("Admin password: ")
            if await ensure_admin(db, admin_email, password):
                logger.info(f"Created admin {admin_email}")

    await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description="Initialize the FloresYa database")
    parser.add_argument("--admin-email", help="Create (or promote) this admin account")
    args = parser.parse_args()
    asyncio.run(main(args.admin_email))
