"""
FloresYa Exception Hierarchy

Structured exception classes for the order and payment lifecycle.
All exceptions include code, message, and details so handlers can log
them and render the response envelope.

Exception Hierarchy:
    FloresYaError
    ├── NotFoundError                      404
    │   ├── OrderNotFound
    │   ├── PaymentNotFound
    │   └── ProductNotFound
    ├── ValidationFailure                  400
    │   ├── EmptyOrder
    │   ├── GuestEmailRequired
    │   ├── InvalidOrderStatus
    │   ├── InvalidPaymentStatus
    │   ├── AmountMismatch
    │   ├── PaymentMethodInvalid
    │   └── ProofImageInvalid
    ├── StateConflict                      409
    │   ├── OrderNotPayable
    │   ├── AlreadyProcessed
    │   ├── ActivePaymentExists
    │   └── EmailAlreadyRegistered
    ├── IntegrityViolation                 409
    │   └── InsufficientStock
    └── UpstreamFailure                    502
        └── EmailDeliveryError
"""
from decimal import Decimal
from typing import Optional, Dict, Any


class FloresYaError(Exception):
    """
    Base exception for all FloresYa domain errors.

    Attributes:
        message: Human-readable error description, safe to show to clients
        code: Machine-readable error code for programmatic handling
        details: Additional context for debugging/audit
        status_code: HTTP status used when the error reaches the API layer
    """

    default_code: str = "FLORESYA_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


# =============================================================================
# NOT FOUND
# =============================================================================

class NotFoundError(FloresYaError):
    default_code = "NOT_FOUND"
    status_code = 404


class OrderNotFound(NotFoundError):
    default_code = "ORDER_NOT_FOUND"

    def __init__(self, order_id: Any, **kwargs):
        super().__init__("Order not found", details={"order_id": order_id}, **kwargs)


class PaymentNotFound(NotFoundError):
    default_code = "PAYMENT_NOT_FOUND"

    def __init__(self, payment_id: Any, **kwargs):
        super().__init__("Payment not found", details={"payment_id": payment_id}, **kwargs)


class ProductNotFound(NotFoundError):
    default_code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: Any, **kwargs):
        super().__init__(
            f"Product with ID {product_id} not found",
            details={"product_id": product_id},
            **kwargs,
        )


# =============================================================================
# VALIDATION
# =============================================================================

class ValidationFailure(FloresYaError):
    default_code = "VALIDATION_FAILED"
    status_code = 400


class EmptyOrder(ValidationFailure):
    default_code = "EMPTY_ORDER"

    def __init__(self, **kwargs):
        super().__init__("Order must contain at least one item", **kwargs)


class GuestEmailRequired(ValidationFailure):
    default_code = "GUEST_EMAIL_REQUIRED"

    def __init__(self, **kwargs):
        super().__init__("An email address is required for guest checkout", **kwargs)


class InvalidOrderStatus(ValidationFailure):
    default_code = "INVALID_ORDER_STATUS"

    def __init__(self, status: Any, **kwargs):
        super().__init__("Invalid order status", details={"status": status}, **kwargs)


class InvalidPaymentStatus(ValidationFailure):
    default_code = "INVALID_PAYMENT_STATUS"

    def __init__(self, status: Any, **kwargs):
        super().__init__("Invalid payment status", details={"status": status}, **kwargs)


class AmountMismatch(ValidationFailure):
    default_code = "AMOUNT_MISMATCH"

    def __init__(self, submitted: Decimal, expected: Decimal, **kwargs):
        super().__init__(
            "Payment amount does not match the order total",
            details={"submitted": str(submitted), "expected": str(expected)},
            **kwargs,
        )


class PaymentMethodInvalid(ValidationFailure):
    default_code = "PAYMENT_METHOD_INVALID"

    def __init__(self, payment_method_id: Any, **kwargs):
        super().__init__(
            "Payment method not found or inactive",
            details={"payment_method_id": payment_method_id},
            **kwargs,
        )


class ProofImageInvalid(ValidationFailure):
    default_code = "PROOF_IMAGE_INVALID"


# =============================================================================
# STATE CONFLICTS
# =============================================================================

class StateConflict(FloresYaError):
    default_code = "STATE_CONFLICT"
    status_code = 409


class OrderNotPayable(StateConflict):
    default_code = "ORDER_NOT_PAYABLE"

    def __init__(self, order_id: Any, status: str, **kwargs):
        super().__init__(
            "This order no longer accepts payments",
            details={"order_id": order_id, "status": status},
            **kwargs,
        )


class AlreadyProcessed(StateConflict):
    default_code = "PAYMENT_ALREADY_PROCESSED"

    def __init__(self, payment_id: Any, status: str, **kwargs):
        super().__init__(
            "This payment has already been processed",
            details={"payment_id": payment_id, "status": status},
            **kwargs,
        )


class ActivePaymentExists(StateConflict):
    default_code = "PAYMENT_ALREADY_SUBMITTED"

    def __init__(self, order_id: Any, **kwargs):
        super().__init__(
            "This order already has a payment pending review or verified",
            details={"order_id": order_id},
            **kwargs,
        )


class EmailAlreadyRegistered(StateConflict):
    default_code = "EMAIL_ALREADY_REGISTERED"

    def __init__(self, **kwargs):
        super().__init__("Email is already registered", **kwargs)


# =============================================================================
# INTEGRITY
# =============================================================================

class IntegrityViolation(FloresYaError):
    default_code = "INTEGRITY_VIOLATION"
    status_code = 409


class InsufficientStock(IntegrityViolation):
    default_code = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        product_name: str,
        product_id: Optional[int] = None,
        requested_qty: Optional[int] = None,
        available_qty: Optional[int] = None,
        **kwargs
    ):
        super().__init__(
            f"Insufficient stock for {product_name}",
            details={
                "product_id": product_id,
                "requested_qty": requested_qty,
                "available_qty": available_qty,
            },
            **kwargs,
        )


# =============================================================================
# UPSTREAM
# =============================================================================

class UpstreamFailure(FloresYaError):
    default_code = "UPSTREAM_FAILURE"
    status_code = 502


class EmailDeliveryError(UpstreamFailure):
    default_code = "EMAIL_DELIVERY_FAILED"

    def __init__(self, message: str, recipient: Optional[str] = None, **kwargs):
        super().__init__(message, details={"recipient": recipient}, **kwargs)
