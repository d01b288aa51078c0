from floresya.schemas.common import ApiResponse, Pagination, envelope
from floresya.schemas.user import UserCreate, UserLogin, UserResponse, Token
from floresya.schemas.product import (
    ProductResponse, ProductUpdate, CartItemCreate, CartItemResponse, CartResponse,
)
from floresya.schemas.order import (
    ShippingAddress, OrderItemIn, OrderCreate, OrderCreated, OrderStatusUpdate,
    OrderItemResponse, StatusHistoryResponse, OrderSummary, OrderDetail,
)
from floresya.schemas.payment import (
    PaymentSubmission, PaymentVerify, PaymentSubmitted, PaymentMethodResponse, PaymentResponse,
)
