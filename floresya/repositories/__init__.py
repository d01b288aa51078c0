"""
Storage adapters.

One SQLAlchemy-backed repository per aggregate. Repositories only touch the
session they are given; committing is the calling service's job.
"""
from floresya.repositories.products import ProductRepository
from floresya.repositories.carts import CartRepository
from floresya.repositories.orders import OrderRepository
from floresya.repositories.payments import PaymentRepository
from floresya.repositories.users import UserRepository

__all__ = [
    "ProductRepository",
    "CartRepository",
    "OrderRepository",
    "PaymentRepository",
    "UserRepository",
]
