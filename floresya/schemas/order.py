"""
Order schemas
"""
from datetime import date, datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, EmailStr, Field


class ShippingAddress(BaseModel):
    first_name: str
    last_name: str
    address_line_1: str
    address_line_2: Optional[str] = None
    city: str
    state: str
    postal_code: Optional[str] = None
    country: str = "Venezuela"
    phone: Optional[str] = None


class OrderItemIn(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=1)


class OrderCreate(BaseModel):
    items: List[OrderItemIn]
    shipping_address: ShippingAddress
    billing_address: Optional[ShippingAddress] = None
    notes: Optional[str] = None
    delivery_date: Optional[date] = None
    guest_email: Optional[EmailStr] = None


class OrderCreated(BaseModel):
    id: int
    order_number: str
    total_amount: float
    status: str

    class Config:
        from_attributes = True


class OrderStatusUpdate(BaseModel):
    # Plain str so unknown values reach the service and fail as InvalidOrderStatus
    status: str
    notes: Optional[str] = None


class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str]
    quantity: int
    unit_price: float
    total_price: float
    product_snapshot: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True


class StatusHistoryResponse(BaseModel):
    id: int
    old_status: Optional[str]
    new_status: str
    notes: Optional[str]
    changed_by: Optional[int]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class OrderSummary(BaseModel):
    id: int
    order_number: str
    user_id: Optional[int]
    guest_email: Optional[str]
    status: str
    total_amount: float
    currency: str
    delivery_date: Optional[date]
    created_at: Optional[datetime]
    items: List[OrderItemResponse] = []

    class Config:
        from_attributes = True


class OrderDetail(OrderSummary):
    shipping_address: Dict[str, Any]
    billing_address: Optional[Dict[str, Any]]
    notes: Optional[str]
    updated_at: Optional[datetime]
    status_history: List[StatusHistoryResponse] = []
