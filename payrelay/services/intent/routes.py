"""HTTP surface of the intent builder."""

import json

from fastapi import APIRouter, Request

from payrelay.common.errors import ClientValidationError
from payrelay.common.logging import logger
from payrelay.services.intent.schemas import PaymentIntentResponse
from payrelay.services.intent.service import IntentService

router = APIRouter()


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(request: Request):
    """Create a Payomatix transaction and return its hosted-page redirect URL."""

    service: IntentService = request.app.state.intent_service
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.warning("create-payment-intent body is not valid JSON: %s", exc)
        raise ClientValidationError(["Request body must be valid JSON."]) from exc

    result = await service.create_payment_intent(body)
    return PaymentIntentResponse(redirectUrl=result.redirect_url, transactionId=result.transaction_id)
