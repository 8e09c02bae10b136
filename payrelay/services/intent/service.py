"""Intent builder: validate, forward to Payomatix, interpret the outcome."""

from dataclasses import dataclass
from typing import Any

from payrelay.common.config import RelaySettings
from payrelay.common.correlation import generate_merchant_ref
from payrelay.common.errors import (
    ClientValidationError,
    TransportError,
    UpstreamProtocolError,
    UpstreamRejection,
)
from payrelay.common.logging import logger, mask_email, merchant_ref_ctx
from payrelay.common.metrics import payment_intents_total, processor_latency_seconds
from payrelay.services.intent.processor import (
    MISSING_REDIRECT_URL,
    PayomatixClient,
    Redirect,
    Rejection,
    Unrecognized,
    build_transaction_payload,
    classify_response,
)
from payrelay.services.intent.schemas import PaymentIntentRequest, validate_payment_request


@dataclass(frozen=True)
class PaymentIntentResult:
    redirect_url: str
    transaction_id: str


class IntentService:
    """Creates hosted-payment-page transactions for client applications."""

    def __init__(self, settings: RelaySettings, client: PayomatixClient) -> None:
        self.settings = settings
        self.client = client
        self.service_name = settings.service_name

    def _count(self, outcome: str) -> None:
        payment_intents_total.labels(service=self.service_name, outcome=outcome).inc()

    async def create_payment_intent(self, body: Any) -> PaymentIntentResult:
        """Run one request end to end; failures raise a `RelayError` subclass."""

        try:
            req = validate_payment_request(body)
        except ClientValidationError as exc:
            logger.warning("payment intent validation failed errors=%s", exc.errors)
            self._count("invalid")
            raise

        merchant_ref = req.merchant_ref or generate_merchant_ref(req.user_id, req.card_id)
        token = merchant_ref_ctx.set(merchant_ref)
        try:
            return await self._submit(req, merchant_ref)
        finally:
            merchant_ref_ctx.reset(token)

    async def _submit(self, req: PaymentIntentRequest, merchant_ref: str) -> PaymentIntentResult:
        payload = build_transaction_payload(req, merchant_ref, self.settings)
        logger.info(
            "sending payomatix transaction url=%s email=%s amount=%s currency=%s",
            self.client.api_url,
            mask_email(payload["email"]),
            payload["amount"],
            payload["currency"],
        )

        try:
            with processor_latency_seconds.labels(service=self.service_name).time():
                http_status, data = await self.client.create_transaction(payload)
        except TransportError:
            self._count("transport_error")
            raise

        match classify_response(http_status, data):
            case Redirect(url=url, ref=ref, transaction_id=transaction_id):
                logger.info("payomatix redirect received status=%s", http_status)
                self._count("created")
                return PaymentIntentResult(
                    redirect_url=url,
                    transaction_id=ref or transaction_id or merchant_ref,
                )
            case Rejection(status_code=status_code, detail=detail, errors=errors):
                logger.error(
                    "payomatix rejected transaction http_status=%s detail=%s", http_status, detail
                )
                self._count("rejected")
                raise UpstreamRejection(status_code, detail, errors)
            case Unrecognized(reason=reason, raw=raw):
                logger.warning("payomatix response not usable reason=%s body=%s", reason, raw)
                self._count("protocol_error")
                if reason == MISSING_REDIRECT_URL:
                    message = (
                        "Payment intent created, but redirection URL was not provided by Payomatix."
                    )
                else:
                    message = "Unexpected response from Payomatix API."
                raise UpstreamProtocolError(message, raw)
