"""
Tests for payment submission and admin verification.
"""
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from floresya.core.exceptions import (
    ActivePaymentExists,
    AlreadyProcessed,
    AmountMismatch,
    InvalidPaymentStatus,
    OrderNotFound,
    OrderNotPayable,
    PaymentMethodInvalid,
    PaymentNotFound,
    ProofImageInvalid,
)
from floresya.core.upload_validation import ProofUpload
from floresya.models import Order, OrderStatusHistory, Payment
from floresya.schemas.payment import PaymentSubmission
from floresya.services.notifications import OrderStatusChanged
from floresya.services.order_service import OrderService
from floresya.services.payment_service import PaymentService
from floresya.services.storage import ProofImageStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


async def count(db, model) -> int:
    return await db.scalar(select(func.count()).select_from(model))


async def history_for(db, order_id):
    result = await db.execute(
        select(OrderStatusHistory)
        .where(OrderStatusHistory.order_id == order_id)
        .order_by(OrderStatusHistory.id)
    )
    return result.scalars().all()


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def service(db, sink, upload_dir):
    store = ProofImageStore(str(upload_dir), "/uploads/payments")
    return PaymentService(db, sink, store, max_proof_bytes=1024)


@pytest.fixture
async def order(db, sink, make_product, customer, order_request):
    """A pending order totalling 20.00."""
    product = await make_product(price="10.00", stock=5)
    order = await OrderService(db, sink).create_order(order_request((product.id, 2)), customer)
    sink.events.clear()
    return order


def submission(order, method, amount="20.00", **extra):
    return PaymentSubmission(
        order_id=order.id,
        payment_method_id=method.id,
        amount=Decimal(amount),
        **extra,
    )


class TestSubmitPayment:
    """Test PaymentService.submit_payment."""

    @pytest.mark.asyncio
    async def test_records_pending_payment(self, service, db, order, payment_method):
        payment = await service.submit_payment(
            submission(order, payment_method, reference_number="00123456",
                       payment_details={"bank": "Banesco", "phone": "04121234567"}),
        )

        assert payment.id is not None
        assert payment.status == "pending"
        assert payment.amount == Decimal("20.00")
        assert payment.reference_number == "00123456"
        assert payment.payment_details["bank"] == "Banesco"
        assert payment.proof_image_url is None

    @pytest.mark.asyncio
    async def test_one_cent_short_is_rejected(self, service, db, order, payment_method):
        """19.99 against a 20.00 order: AmountMismatch and no payment row."""
        with pytest.raises(AmountMismatch) as exc_info:
            await service.submit_payment(submission(order, payment_method, amount="19.99"))

        assert exc_info.value.code == "AMOUNT_MISMATCH"
        assert exc_info.value.details == {"submitted": "19.99", "expected": "20.00"}
        assert await count(db, Payment) == 0

    @pytest.mark.asyncio
    async def test_one_cent_over_is_rejected(self, service, db, order, payment_method):
        with pytest.raises(AmountMismatch):
            await service.submit_payment(submission(order, payment_method, amount="20.01"))

    @pytest.mark.asyncio
    async def test_sub_cent_amount_is_rejected(self, service, db, order, payment_method):
        with pytest.raises(AmountMismatch):
            await service.submit_payment(submission(order, payment_method, amount="20.001"))

    @pytest.mark.asyncio
    async def test_unknown_order(self, service, payment_method):
        data = PaymentSubmission(order_id=777, payment_method_id=payment_method.id, amount=Decimal("1.00"))
        with pytest.raises(OrderNotFound):
            await service.submit_payment(data)

    @pytest.mark.asyncio
    async def test_order_no_longer_pending(self, service, db, sink, order, admin, payment_method):
        await OrderService(db, sink).transition_status(order.id, "cancelled", None, admin.id)

        with pytest.raises(OrderNotPayable) as exc_info:
            await service.submit_payment(submission(order, payment_method))

        assert exc_info.value.status_code == 409
        assert exc_info.value.details["status"] == "cancelled"
        assert await count(db, Payment) == 0

    @pytest.mark.asyncio
    async def test_inactive_method(self, service, db, order, inactive_payment_method):
        with pytest.raises(PaymentMethodInvalid) as exc_info:
            await service.submit_payment(submission(order, inactive_payment_method))
        assert exc_info.value.status_code == 400
        assert await count(db, Payment) == 0

    @pytest.mark.asyncio
    async def test_missing_method(self, service, order):
        data = PaymentSubmission(order_id=order.id, payment_method_id=999, amount=Decimal("20.00"))
        with pytest.raises(PaymentMethodInvalid):
            await service.submit_payment(data)

    @pytest.mark.asyncio
    async def test_amount_checked_before_method(self, service, order, inactive_payment_method):
        with pytest.raises(AmountMismatch):
            await service.submit_payment(submission(order, inactive_payment_method, amount="5.00"))

    @pytest.mark.asyncio
    async def test_stores_proof_image(self, service, db, order, payment_method, upload_dir):
        proof = ProofUpload(filename="receipt.PNG", content_type="image/png", content=PNG_BYTES)

        payment = await service.submit_payment(submission(order, payment_method), proof)

        assert payment.proof_image_url.startswith("/uploads/payments/payment-")
        assert payment.proof_image_url.endswith(".png")
        stored = list(upload_dir.iterdir())
        assert len(stored) == 1
        assert stored[0].read_bytes() == PNG_BYTES

    @pytest.mark.asyncio
    async def test_rejects_non_image_proof(self, service, db, order, payment_method, upload_dir):
        proof = ProofUpload(filename="receipt.pdf", content_type="application/pdf", content=b"%PDF-1.4")

        with pytest.raises(ProofImageInvalid):
            await service.submit_payment(submission(order, payment_method), proof)

        assert await count(db, Payment) == 0
        assert not upload_dir.exists()

    @pytest.mark.asyncio
    async def test_rejects_oversized_proof(self, service, db, order, payment_method, upload_dir):
        proof = ProofUpload(filename="big.jpg", content_type="image/jpeg", content=b"x" * 1025)

        with pytest.raises(ProofImageInvalid):
            await service.submit_payment(submission(order, payment_method), proof)

        assert await count(db, Payment) == 0
        assert not upload_dir.exists()

    @pytest.mark.asyncio
    async def test_failed_insert_removes_stored_proof(self, service, db, order, payment_method, upload_dir):
        proof = ProofUpload(filename="receipt.jpg", content_type="image/jpeg", content=PNG_BYTES)
        service.payments.add = AsyncMock(side_effect=RuntimeError("insert failed"))

        with pytest.raises(RuntimeError):
            await service.submit_payment(submission(order, payment_method), proof)

        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_other_customer_cannot_pay_for_order(self, service, db, order, payment_method):
        from floresya.models import User

        stranger = User(email="z@example.com", hashed_password="x", first_name="Z", last_name="Z", role="customer")
        db.add(stranger)
        await db.commit()

        with pytest.raises(OrderNotFound):
            await service.submit_payment(submission(order, payment_method), user=stranger)


    @pytest.mark.asyncio
    async def test_second_payment_while_first_pending(self, service, db, order, payment_method):
        await service.submit_payment(submission(order, payment_method, reference_number="P1"))

        with pytest.raises(ActivePaymentExists) as exc_info:
            await service.submit_payment(submission(order, payment_method, reference_number="P2"))

        assert exc_info.value.status_code == 409
        assert exc_info.value.code == "PAYMENT_ALREADY_SUBMITTED"
        assert await count(db, Payment) == 1


class TestVerifyPayment:
    """Test PaymentService.verify_payment."""

    @pytest.fixture
    async def payment(self, service, order, payment_method):
        return await service.submit_payment(submission(order, payment_method, reference_number="REF-1"))

    @pytest.mark.asyncio
    async def test_verified_moves_order_to_verified(self, service, db, sink, order, payment, admin, customer):
        result = await service.verify_payment(payment.id, "verified", "Matched bank statement", admin.id)

        assert result.status == "verified"
        assert result.verified_by == admin.id
        assert result.verified_at is not None
        assert result.notes == "Matched bank statement"

        refreshed = await db.get(Order, order.id, populate_existing=True)
        assert refreshed.status == "verified"

        history = await history_for(db, order.id)
        assert [h.new_status for h in history] == ["pending", "verified"]
        assert history[1].old_status == "pending"
        assert history[1].notes == "Payment verified"
        assert history[1].changed_by == admin.id

        assert len(sink.events) == 1
        assert isinstance(sink.events[0], OrderStatusChanged)
        assert sink.events[0].new_status == "verified"
        assert sink.events[0].recipient == customer.email

    @pytest.mark.asyncio
    async def test_second_verify_is_already_processed(self, service, db, payment, admin, order):
        payment_id, order_id, admin_id = payment.id, order.id, admin.id
        await service.verify_payment(payment_id, "verified", None, admin_id)

        with pytest.raises(AlreadyProcessed) as exc_info:
            await service.verify_payment(payment_id, "verified", None, admin_id)

        assert exc_info.value.code == "PAYMENT_ALREADY_PROCESSED"
        assert len(await history_for(db, order_id)) == 2

    @pytest.mark.asyncio
    async def test_failed_decision_leaves_order_pending(self, service, db, sink, payment, admin, order):
        result = await service.verify_payment(payment.id, "failed", "Reference not found", admin.id)

        assert result.status == "failed"
        refreshed = await db.get(Order, order.id, populate_existing=True)
        assert refreshed.status == "pending"
        assert len(await history_for(db, order.id)) == 1
        assert sink.events == []

    @pytest.mark.asyncio
    async def test_retry_after_failed_payment(self, service, db, payment, admin, order, payment_method):
        await service.verify_payment(payment.id, "failed", None, admin.id)

        retry = await service.submit_payment(submission(order, payment_method, reference_number="REF-2"))
        await service.verify_payment(retry.id, "verified", None, admin.id)

        refreshed = await db.get(Order, order.id, populate_existing=True)
        assert refreshed.status == "verified"

    @pytest.mark.asyncio
    async def test_lost_claim_is_already_processed(self, service, db, payment, admin, order, monkeypatch):
        """The conditional claim missing means another reviewer got there first."""
        order_id = order.id
        monkeypatch.setattr(service.payments, "claim_pending", AsyncMock(return_value=False))

        with pytest.raises(AlreadyProcessed):
            await service.verify_payment(payment.id, "verified", None, admin.id)

        refreshed = await db.get(Order, order_id, populate_existing=True)
        assert refreshed.status == "pending"

    @pytest.mark.asyncio
    async def test_stale_payment_cannot_pull_order_back(self, service, db, sink, payment, admin, order):
        """A pending payment approved after the order moved on leaves the order alone."""
        payment_id, order_id, admin_id = payment.id, order.id, admin.id
        await OrderService(db, sink).transition_status(order_id, "shipped", "Sent with courier", admin_id)
        sink.events.clear()

        with pytest.raises(OrderNotPayable) as exc_info:
            await service.verify_payment(payment_id, "verified", None, admin_id)

        assert exc_info.value.details["status"] == "shipped"
        refreshed = await db.get(Order, order_id, populate_existing=True)
        assert refreshed.status == "shipped"
        stored = await db.get(Payment, payment_id, populate_existing=True)
        assert stored.status == "pending"
        assert stored.verified_by is None
        assert [h.new_status for h in await history_for(db, order_id)] == ["pending", "shipped"]
        assert sink.events == []

    @pytest.mark.asyncio
    async def test_stale_payment_can_still_be_rejected(self, service, db, sink, payment, admin, order):
        await OrderService(db, sink).transition_status(order.id, "cancelled", None, admin.id)

        result = await service.verify_payment(payment.id, "failed", "Order cancelled", admin.id)

        assert result.status == "failed"

    @pytest.mark.asyncio
    async def test_verification_touches_updated_at(self, service, db, payment, admin, order):
        order.updated_at = datetime(2020, 1, 1, tzinfo=timezone.utc)
        await db.commit()

        await service.verify_payment(payment.id, "verified", None, admin.id)

        refreshed = await db.get(Order, order.id, populate_existing=True)
        assert refreshed.updated_at.year > 2020

    @pytest.mark.asyncio
    async def test_invalid_decision(self, service, payment, admin):
        with pytest.raises(InvalidPaymentStatus):
            await service.verify_payment(payment.id, "pending", None, admin.id)

    @pytest.mark.asyncio
    async def test_missing_payment(self, service, admin):
        with pytest.raises(PaymentNotFound):
            await service.verify_payment(5555, "verified", None, admin.id)


class TestPaymentQueries:
    @pytest.mark.asyncio
    async def test_list_order_payments_owner_only(self, service, db, order, payment_method, customer, admin):
        await service.submit_payment(submission(order, payment_method, reference_number="A1"))

        mine = await service.list_order_payments(order.id, customer)
        assert [p.reference_number for p in mine] == ["A1"]
        assert len(await service.list_order_payments(order.id, admin)) == 1

    @pytest.mark.asyncio
    async def test_list_all_with_filters(self, service, order, payment_method, admin):
        first = await service.submit_payment(submission(order, payment_method, reference_number="ZELLE-99"))
        await service.verify_payment(first.id, "failed", None, admin.id)
        await service.submit_payment(submission(order, payment_method, reference_number="PM-42"))

        payments, total = await service.list_all_payments()
        assert total == 2

        pending, total = await service.list_all_payments(status="pending")
        assert total == 1
        assert pending[0].reference_number == "PM-42"

        found, total = await service.list_all_payments(search="ZELLE")
        assert total == 1

        by_order, total = await service.list_all_payments(search=order.order_number)
        assert total == 2

    @pytest.mark.asyncio
    async def test_list_methods_active_only(self, service, payment_method, inactive_payment_method):
        methods = await service.list_methods()
        assert [m.name for m in methods] == ["Pago Móvil"]
