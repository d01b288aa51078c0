from fastapi import APIRouter, Depends

from floresya.api.deps import get_payment_service
from floresya.schemas.common import envelope
from floresya.schemas.payment import PaymentMethodResponse
from floresya.services.payment_service import PaymentService

router = APIRouter()


@router.get("")
async def list_payment_methods(service: PaymentService = Depends(get_payment_service)):
    """Active payment methods with their instructions."""
    methods = await service.list_methods()
    return envelope([PaymentMethodResponse.model_validate(m).model_dump(mode="json") for m in methods])
