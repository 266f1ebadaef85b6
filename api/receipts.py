from fastapi import APIRouter, Depends, Request
from api.dependencies import get_api_key_identity, get_receipt_service
from api.models import ReceiptRequest, ReceiptResponse, SampleReceiptRequest, SampleReceiptResponse
from api.rate_limit import limiter
from api.services.identity import Identity
from api.services.receipt_service import ReceiptService

router = APIRouter(prefix="/api", tags=["Email"])


@router.post("/send-receipt", response_model=ReceiptResponse)
@limiter.limit("60/minute")
def send_receipt(
    request: Request,
    body: ReceiptRequest,
    identity: Identity = Depends(get_api_key_identity),
    receipt_service: ReceiptService = Depends(get_receipt_service),
):
    result = receipt_service.send_receipt(
        identity, body.item, body.price, str(body.recipient_email)
    )
    return ReceiptResponse(**result)


@router.post("/send-test-receipt", response_model=SampleReceiptResponse)
@limiter.limit("60/minute")
def send_test_receipt(
    request: Request,
    body: SampleReceiptRequest,
    identity: Identity = Depends(get_api_key_identity),
    receipt_service: ReceiptService = Depends(get_receipt_service),
):
    """Send a receipt to the API key owner's own address."""
    result = receipt_service.send_test_receipt(identity, body.item, body.price)
    return SampleReceiptResponse(**result)
