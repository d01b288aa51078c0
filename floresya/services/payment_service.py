"""
PaymentService - manual payment submission and admin verification

Submission validates everything before persisting anything. Verification
claims the payment with a conditional UPDATE and, on approval, moves the
order to `verified` inside the same transaction.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from floresya.core.config import settings
from floresya.core.exceptions import (
    ActivePaymentExists,
    AlreadyProcessed,
    AmountMismatch,
    InvalidPaymentStatus,
    OrderNotFound,
    OrderNotPayable,
    PaymentMethodInvalid,
    PaymentNotFound,
)
from floresya.core.upload_validation import ProofUpload, validate_proof_image
from floresya.core.utils import to_money
from floresya.models import (
    OrderStatus,
    OrderStatusHistory,
    Payment,
    PaymentMethod,
    PaymentStatus,
    User,
)
from floresya.repositories import OrderRepository, PaymentRepository
from floresya.schemas.payment import PaymentSubmission
from floresya.services.notifications import EventSink, OrderStatusChanged
from floresya.services.storage import ProofImageStore

logger = logging.getLogger(__name__)

PAYMENT_VERIFIED_NOTE = "Payment verified"
REVIEW_DECISIONS = (PaymentStatus.VERIFIED.value, PaymentStatus.FAILED.value)


class PaymentService:
    def __init__(
        self,
        db: AsyncSession,
        events: EventSink,
        store: ProofImageStore,
        max_proof_bytes: Optional[int] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.db = db
        self.events = events
        self.store = store
        self.max_proof_bytes = max_proof_bytes or settings.payment_proof_max_bytes
        self.log = log or logger
        self.orders = OrderRepository(db)
        self.payments = PaymentRepository(db)

    async def list_methods(self) -> List[PaymentMethod]:
        return await self.payments.list_methods(active_only=True)

    async def submit_payment(
        self,
        submission: PaymentSubmission,
        proof: Optional[ProofUpload] = None,
        user: Optional[User] = None,
    ) -> Payment:
        """
        Record a manually made payment as `pending`.

        Checks run in order: order exists, order is pending and has no
        pending or verified payment, amount equals the order total exactly,
        method is active, proof image is valid.
        A rejected submission leaves no row and no file behind.
        """
        order = await self.orders.get(submission.order_id)
        if order is None:
            raise OrderNotFound(submission.order_id)
        if user is not None and not user.is_admin and order.user_id not in (None, user.id):
            raise OrderNotFound(submission.order_id)

        if order.status != OrderStatus.PENDING.value:
            raise OrderNotPayable(order.id, order.status)
        if await self.payments.has_active_for_order(order.id):
            raise ActivePaymentExists(order.id)

        amount = to_money(submission.amount)
        if submission.amount != amount or amount != order.total_amount:
            raise AmountMismatch(submission.amount, order.total_amount)

        method = await self.payments.get_method(submission.payment_method_id)
        if method is None or not method.active:
            raise PaymentMethodInvalid(submission.payment_method_id)

        if proof is not None:
            validate_proof_image(proof, self.max_proof_bytes)

        stored_path = None
        try:
            proof_url = None
            if proof is not None:
                stored_path, proof_url = await self.store.save(proof)

            payment = await self.payments.add(Payment(
                order_id=order.id,
                payment_method_id=method.id,
                amount=amount,
                currency=order.currency,
                status=PaymentStatus.PENDING.value,
                reference_number=submission.reference_number,
                payment_details=submission.payment_details or {},
                proof_image_url=proof_url,
            ))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            if stored_path is not None:
                await self.store.delete(stored_path)
            raise

        self.log.info(
            f"Payment {payment.id} submitted for order {order.order_number} "
            f"({amount} {order.currency} via {method.name})"
        )
        return payment

    async def verify_payment(
        self,
        payment_id: int,
        decision: str,
        notes: Optional[str] = None,
        actor_id: Optional[int] = None,
    ) -> Payment:
        """
        Approve (`verified`) or reject (`failed`) a pending payment.

        Approval only moves an order that is still `pending`; otherwise the
        whole review rolls back with OrderNotPayable. A rejection leaves the
        order untouched so the customer can submit another payment.
        """
        if decision not in REVIEW_DECISIONS:
            raise InvalidPaymentStatus(decision)

        event = None
        try:
            payment = await self.payments.get(payment_id)
            if payment is None:
                raise PaymentNotFound(payment_id)
            if payment.status != PaymentStatus.PENDING.value:
                raise AlreadyProcessed(payment.id, payment.status)

            if not await self.payments.claim_pending(payment.id, decision, actor_id, notes):
                # Another reviewer claimed it between our read and the UPDATE
                await self.db.refresh(payment)
                raise AlreadyProcessed(payment.id, payment.status)

            if decision == PaymentStatus.VERIFIED.value:
                order = await self.orders.get(payment.order_id)
                if order is None:
                    raise OrderNotFound(payment.order_id)
                moved = await self.orders.move_status(
                    order.id, OrderStatus.PENDING.value, OrderStatus.VERIFIED.value
                )
                if not moved:
                    # Order left `pending` after this payment was submitted
                    await self.db.refresh(order)
                    raise OrderNotPayable(order.id, order.status)
                old_status = OrderStatus.PENDING.value
                await self.orders.add_history(OrderStatusHistory(
                    order_id=order.id,
                    old_status=old_status,
                    new_status=OrderStatus.VERIFIED.value,
                    notes=PAYMENT_VERIFIED_NOTE,
                    changed_by=actor_id,
                ))
                event = OrderStatusChanged(
                    order_id=order.id,
                    order_number=order.order_number,
                    recipient=await self.orders.notification_email(order.id),
                    old_status=old_status,
                    new_status=OrderStatus.VERIFIED.value,
                    notes=PAYMENT_VERIFIED_NOTE,
                )

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(payment)
        self.log.info(f"Payment {payment.id} marked {decision} by user {actor_id}")

        if event is not None:
            self.events.emit(event)
        return payment

    async def list_order_payments(self, order_id: int, user: User) -> List[Payment]:
        order = await self.orders.get(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        if not user.is_admin and order.user_id != user.id:
            raise OrderNotFound(order_id)
        return await self.payments.list_for_order(order_id)

    async def list_all_payments(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        payment_method_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Payment], int]:
        if status is not None and status not in [s.value for s in PaymentStatus]:
            raise InvalidPaymentStatus(status)
        return await self.payments.list(
            page=page,
            limit=limit,
            status=status,
            payment_method_id=payment_method_id,
            search=search,
        )
