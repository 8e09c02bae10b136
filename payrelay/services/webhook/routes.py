"""HTTP surface of the webhook relay."""

import json

from fastapi import APIRouter, Request

from payrelay.common.errors import MalformedWebhook
from payrelay.services.webhook.schemas import WebhookAck
from payrelay.services.webhook.service import WebhookRelayService

router = APIRouter()


@router.post("/payomatix-webhook", response_model=WebhookAck)
async def payomatix_webhook(request: Request):
    """Receive a Payomatix status callback and acknowledge it."""

    service: WebhookRelayService = request.app.state.webhook_service
    raw_body = await request.body()
    service.check_signature(raw_body, request.headers.get(service.signature_header))
    try:
        payload = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedWebhook("Invalid webhook payload: body is not valid JSON.") from exc
    return await service.handle_webhook(payload)
