"""
Payment routes

Submission is multipart: form fields plus an optional `proof` image.
"""
import json
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status

from floresya.api.deps import get_current_admin, get_current_user, get_optional_user, get_payment_service
from floresya.core.exceptions import ValidationFailure
from floresya.core.rate_limit import checkout_limit, limiter
from floresya.core.upload_validation import read_proof_upload
from floresya.core.utils import pagination
from floresya.models.user import User
from floresya.schemas.common import envelope
from floresya.schemas.payment import PaymentResponse, PaymentSubmission, PaymentSubmitted, PaymentVerify
from floresya.services.payment_service import PaymentService

router = APIRouter()


def _parse_payment_details(raw: Optional[str]) -> dict:
    if not raw:
        return {}
    try:
        details = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationFailure("payment_details must be a JSON object")
    if not isinstance(details, dict):
        raise ValidationFailure("payment_details must be a JSON object")
    return details


@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit(checkout_limit)
async def submit_payment(
    request: Request,
    order_id: int = Form(...),
    payment_method_id: int = Form(...),
    amount: Decimal = Form(..., gt=0),
    reference_number: Optional[str] = Form(None, max_length=255),
    payment_details: Optional[str] = Form(None),
    proof: Optional[UploadFile] = File(None),
    user: Optional[User] = Depends(get_optional_user),
    service: PaymentService = Depends(get_payment_service),
):
    submission = PaymentSubmission(
        order_id=order_id,
        payment_method_id=payment_method_id,
        amount=amount,
        reference_number=reference_number,
        payment_details=_parse_payment_details(payment_details),
    )
    upload = await read_proof_upload(proof, service.max_proof_bytes)

    payment = await service.submit_payment(submission, upload, user)
    return envelope(
        PaymentSubmitted(payment_id=payment.id, status=payment.status).model_dump(),
        "Payment submitted successfully. It will be reviewed shortly.",
    )


@router.get("/order/{order_id}")
async def list_order_payments(
    order_id: int,
    user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    payments = await service.list_order_payments(order_id, user)
    return envelope([PaymentResponse.model_validate(p).model_dump(mode="json") for p in payments])


@router.get("/admin/all")
async def list_all_payments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = None,
    payment_method_id: Optional[int] = None,
    search: Optional[str] = Query(None, max_length=100),
    admin: User = Depends(get_current_admin),
    service: PaymentService = Depends(get_payment_service),
):
    payments, total = await service.list_all_payments(
        page=page,
        limit=limit,
        status=status,
        payment_method_id=payment_method_id,
        search=search,
    )
    return envelope({
        "payments": [PaymentResponse.model_validate(p).model_dump(mode="json") for p in payments],
        "pagination": pagination(page, limit, total),
    })


@router.patch("/{payment_id}/verify")
async def verify_payment(
    payment_id: int,
    review: PaymentVerify,
    admin: User = Depends(get_current_admin),
    service: PaymentService = Depends(get_payment_service),
):
    payment = await service.verify_payment(payment_id, review.status, review.notes, admin.id)
    message = "Payment verified successfully" if payment.status == "verified" else "Payment marked as failed"
    return envelope(PaymentResponse.model_validate(payment).model_dump(mode="json"), message)
