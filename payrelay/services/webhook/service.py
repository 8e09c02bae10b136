"""Webhook relay: parse processor callbacks and notify the internal backend.

The processor retries aggressively on non-2xx answers, so once a payload is
structurally valid the acknowledgement is always 200; the backend forward is
best-effort and its outcome is only logged.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

import httpx

from payrelay.common.config import RelaySettings
from payrelay.common.correlation import parse_merchant_ref
from payrelay.common.errors import MalformedWebhook, WebhookSignatureError
from payrelay.common.logging import logger, mask_email, merchant_ref_ctx
from payrelay.common.metrics import downstream_forward_total, webhooks_received_total
from payrelay.services.webhook.schemas import RelayEvent, WebhookAck, WebhookTransaction
from payrelay.services.webhook.signature import verify_signature


class ForwardOutcome(str, Enum):
    DELIVERED = "delivered"
    REJECTED = "rejected"
    ERROR = "error"
    SKIPPED = "skipped"


class BackendClient:
    """Posts relay events to the internal webhook-update endpoint."""

    def __init__(self, settings: RelaySettings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.url = settings.backend_webhook_url
        secret = settings.internal_webhook_secret
        self.enabled = settings.forwarding_enabled
        self._client = httpx.AsyncClient(
            timeout=settings.backend_timeout_seconds,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                "X-Internal-Secret": secret.get_secret_value() if secret is not None else "",
            },
        )

    async def forward(self, event: RelayEvent) -> ForwardOutcome:
        """Deliver one event; transport failures become `ForwardOutcome.ERROR`."""

        if not self.enabled:
            logger.info("backend forwarding not configured; event not forwarded")
            return ForwardOutcome.SKIPPED
        try:
            resp = await self._client.post(self.url, json=event.model_dump())
        except httpx.HTTPError as exc:
            logger.error("backend forward failed correlation_id=%s error=%s", event.correlationId, exc)
            return ForwardOutcome.ERROR
        if resp.is_success:
            logger.info("backend forward delivered correlation_id=%s", event.correlationId)
            return ForwardOutcome.DELIVERED
        logger.error(
            "backend forward rejected correlation_id=%s status=%s body=%s",
            event.correlationId,
            resp.status_code,
            resp.text[:500],
        )
        return ForwardOutcome.REJECTED

    async def close(self) -> None:
        await self._client.aclose()


class WebhookRelayService:
    """Validates processor callbacks and relays normalized status events."""

    def __init__(self, settings: RelaySettings, backend: BackendClient) -> None:
        self.backend = backend
        self.service_name = settings.service_name
        self.signature_header = settings.webhook_signature_header
        secret = settings.webhook_signing_secret
        self.signing_secret = secret.get_secret_value() if secret is not None else None

    def _count(self, outcome: str) -> None:
        webhooks_received_total.labels(service=self.service_name, outcome=outcome).inc()

    def check_signature(self, raw_body: bytes, header_value: str | None) -> None:
        """Reject unsigned or mis-signed bodies when a signing secret is configured."""

        if not self.signing_secret:
            return
        if not verify_signature(raw_body, header_value, self.signing_secret):
            logger.warning("webhook signature verification failed")
            self._count("bad_signature")
            raise WebhookSignatureError("Invalid webhook signature.")

    async def handle_webhook(self, payload: Any) -> WebhookAck:
        """Process one callback; raises `MalformedWebhook` for structural failures only."""

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            logger.error("webhook payload missing data object")
            self._count("malformed")
            raise MalformedWebhook("Invalid webhook payload: missing data object.")

        txn = WebhookTransaction.from_data(data)
        token = merchant_ref_ctx.set(txn.merchant_ref or "")
        try:
            return await self._relay(txn)
        finally:
            merchant_ref_ctx.reset(token)

    async def _relay(self, txn: WebhookTransaction) -> WebhookAck:
        missing = txn.missing_fields()
        if missing:
            logger.error("webhook data missing required fields=%s", missing)
            self._count("malformed")
            raise MalformedWebhook(f"Missing required fields in webhook data: {', '.join(missing)}.")

        ref = parse_merchant_ref(txn.merchant_ref)
        logger.info(
            "webhook received payomatix_id=%s status=%s email=%s user_id=%s card_id=%s",
            txn.payomatix_id,
            txn.status,
            mask_email(txn.customer_email),
            ref.user_id,
            ref.card_id,
        )
        event = RelayEvent(
            correlationId=txn.merchant_ref,
            payomatixId=txn.payomatix_id,
            status=txn.status,
            message=txn.message,
            amount=txn.amount,
            currency=txn.currency,
            customerEmail=txn.customer_email,
            customerName=txn.customer_name,
            customerPhone=txn.customer_phone,
            receivedAt=datetime.now(timezone.utc).isoformat(),
            userId=ref.user_id,
            cardId=ref.card_id,
        )
        try:
            outcome = await self.backend.forward(event)
        except Exception as exc:
            logger.exception("backend forward raised correlation_id=%s: %s", event.correlationId, exc)
            outcome = ForwardOutcome.ERROR
        downstream_forward_total.labels(service=self.service_name, outcome=outcome.value).inc()
        self._count("accepted")
        return WebhookAck()
