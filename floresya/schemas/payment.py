"""
Payment schemas

Submission arrives as multipart form data and is parsed in the route;
PaymentSubmission is the validated shape handed to PaymentService.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field


class PaymentSubmission(BaseModel):
    order_id: int
    payment_method_id: int
    amount: Decimal = Field(..., gt=0)
    reference_number: Optional[str] = Field(None, max_length=255)
    payment_details: Dict[str, Any] = {}


class PaymentVerify(BaseModel):
    status: str
    notes: Optional[str] = None


class PaymentSubmitted(BaseModel):
    payment_id: int
    status: str


class PaymentMethodResponse(BaseModel):
    id: int
    name: str
    type: str
    configuration: Optional[Dict[str, Any]] = None
    instructions: Optional[str] = None

    class Config:
        from_attributes = True


class PaymentResponse(BaseModel):
    id: int
    order_id: int
    payment_method_id: int
    amount: float
    currency: str
    status: str
    reference_number: Optional[str]
    payment_details: Optional[Dict[str, Any]]
    proof_image_url: Optional[str]
    verified_by: Optional[int]
    verified_at: Optional[datetime]
    notes: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
