from floresya.models.user import User, UserRole
from floresya.models.product import Product
from floresya.models.cart import CartItem
from floresya.models.order import Order, OrderItem, OrderStatusHistory, OrderStatus
from floresya.models.payment import Payment, PaymentMethod, PaymentStatus, PaymentMethodType

__all__ = [
    "User",
    "UserRole",
    "Product",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderStatusHistory",
    "OrderStatus",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "PaymentMethodType",
]
