"""Payomatix transaction API: outbound payload, HTTP client, response classification.

The processor reports semantic failures inside HTTP 200 bodies, so outcomes are
classified from the `responseCode`/`status` pair rather than the HTTP status.
"""

from dataclasses import dataclass
from typing import Any

import httpx

from payrelay.common.config import RelaySettings
from payrelay.common.errors import TransportError
from payrelay.common.logging import logger
from payrelay.services.intent.schemas import PaymentIntentRequest


REDIRECT_RESPONSE_CODE = 300
MISSING_REDIRECT_URL = "redirect response without redirect_url"


@dataclass(frozen=True)
class Redirect:
    url: str
    ref: str | None
    transaction_id: str | None
    raw: dict


@dataclass(frozen=True)
class Rejection:
    status_code: int
    detail: str
    errors: Any
    raw: dict


@dataclass(frozen=True)
class Unrecognized:
    reason: str
    raw: Any


ProcessorOutcome = Redirect | Rejection | Unrecognized


def _response_code(data: dict) -> int | None:
    value = data.get("responseCode")
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _rejection_status(http_status: int | None, response_code: int | None) -> int:
    if http_status is not None and 400 <= http_status <= 599:
        return http_status
    if response_code is not None and 400 <= response_code <= 599:
        return response_code
    return 500


def classify_response(http_status: int | None, data: Any) -> ProcessorOutcome:
    """Map one processor response body onto exactly one outcome variant."""

    if not isinstance(data, dict):
        return Unrecognized(reason="response body is not a JSON object", raw=data)

    code = _response_code(data)
    status = data.get("status")

    if code == REDIRECT_RESPONSE_CODE and status == "redirect":
        url = data.get("redirect_url")
        if not url:
            return Unrecognized(reason=MISSING_REDIRECT_URL, raw=data)
        if not isinstance(url, str):
            return Unrecognized(reason="redirect_url is not a string", raw=data)
        return Redirect(
            url=url,
            ref=_optional_str(data.get("merchant_ref")),
            transaction_id=_optional_str(data.get("transaction_id")),
            raw=data,
        )

    if (code is not None and code >= 400) or status == "validation_error":
        detail = (
            data.get("response")
            or data.get("message")
            or data.get("error")
            or "Unknown error from Payomatix API."
        )
        return Rejection(
            status_code=_rejection_status(http_status, code),
            detail=str(detail),
            errors=data.get("errors"),
            raw=data,
        )

    return Unrecognized(reason="unrecognized processor response", raw=data)


def _split_name(full_name: str | None) -> tuple[str | None, str | None]:
    if not full_name:
        return None, None
    first, _, last = full_name.partition(" ")
    return first or None, last.strip() or None


def build_transaction_payload(
    req: PaymentIntentRequest, merchant_ref: str, settings: RelaySettings
) -> dict[str, Any]:
    """Outbound `POST /transaction` body; optional customer fields are omitted when unset."""

    first_name, last_name = _split_name(req.customer_name)
    payload: dict[str, Any] = {
        "email": str(req.customer_email),
        "amount": f"{req.amount:.2f}",
        "currency": req.currency,
        "return_url": settings.payment_return_url,
        "notify_url": settings.payment_notify_url,
        "merchant_ref": merchant_ref,
        "first_name": first_name,
        "last_name": last_name,
        "phone": req.phone,
        "address": req.address,
        "city": req.city,
        "state": req.state,
        "zip": req.zip,
        "country": req.country,
        "description": req.description or f"Payment for order {merchant_ref}",
        "metadata": req.metadata,
    }
    return {
        key: value.strip() if isinstance(value, str) else value
        for key, value in payload.items()
        if value is not None
    }


class PayomatixClient:
    """Thin async client for the processor's transaction endpoint."""

    def __init__(self, settings: RelaySettings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.api_url = settings.payomatix_api_url
        self._client = httpx.AsyncClient(
            timeout=settings.processor_timeout_seconds,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "Authorization": settings.payomatix_secret_key.get_secret_value(),
            },
        )

    async def create_transaction(self, payload: dict[str, Any]) -> tuple[int, Any]:
        """POST one transaction; returns `(http_status, parsed_body)`.

        Network failures and non-JSON bodies raise `TransportError`; no retry.
        """

        try:
            resp = await self._client.post(self.api_url, json=payload)
        except httpx.HTTPError as exc:
            logger.error("payomatix request failed: %s", exc)
            raise TransportError(str(exc) or type(exc).__name__) from exc
        try:
            data = resp.json()
        except ValueError as exc:
            logger.error("payomatix returned non-JSON body status=%s", resp.status_code)
            raise TransportError(f"invalid JSON from Payomatix (HTTP {resp.status_code})") from exc
        return resp.status_code, data

    async def close(self) -> None:
        await self._client.aclose()
