"""
Payment models

Payments are manually reported (bank transfer, pago movil, zelle, ...) and
reviewed by an admin. Only a verified payment moves its order forward.
"""
import enum

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Text, JSON, Numeric
from sqlalchemy.orm import relationship

from floresya.core.database import Base
from floresya.core.utils import utcnow


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"


class PaymentMethodType(str, enum.Enum):
    PAGO_MOVIL = "pago_movil"
    BANK_TRANSFER = "bank_transfer"
    ZELLE = "zelle"
    BINANCE_PAY = "binance_pay"
    CASH = "cash"


class PaymentMethod(Base):
    """Reference data. Not mutated by the order/payment flow."""
    __tablename__ = "payment_methods"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False)
    active = Column(Boolean, default=True)
    configuration = Column(JSON, default=dict)
    instructions = Column(Text)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    payments = relationship("Payment", back_populates="payment_method")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_method_id = Column(Integer, ForeignKey("payment_methods.id"), nullable=False)

    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    status = Column(String(20), default=PaymentStatus.PENDING.value, nullable=False, index=True)

    reference_number = Column(String(255), index=True)
    payment_details = Column(JSON, default=dict)
    proof_image_url = Column(String(255))

    # Admin review
    verified_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    verified_at = Column(DateTime(timezone=True))
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    order = relationship("Order", back_populates="payments")
    payment_method = relationship("PaymentMethod", back_populates="payments")
