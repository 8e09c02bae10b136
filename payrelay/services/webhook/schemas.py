"""Webhook payload extraction and the normalized event sent to the backend."""

from typing import Any

from pydantic import BaseModel


# Payomatix has renamed fields between API versions; first present key wins.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "payomatix_id": ("payomatix_id", "transaction_id", "id"),
    "merchant_ref": ("merchant_ref",),
    "status": ("status",),
    "message": ("message",),
    "amount": ("converted_amount", "amount"),
    "currency": ("converted_currency", "currency"),
    "customer_email": ("customer_email", "email"),
    "customer_name": ("customer_name", "name"),
    "customer_phone": ("customer_phone", "phone"),
}

REQUIRED_FIELDS = ("merchant_ref", "payomatix_id", "status", "amount", "currency")


class WebhookTransaction(BaseModel):
    """Transaction fields lifted out of the webhook's nested `data` object."""

    payomatix_id: str | None = None
    merchant_ref: str | None = None
    status: str | None = None
    message: str | None = None
    amount: Any = None
    currency: str | None = None
    customer_email: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> "WebhookTransaction":
        values: dict[str, Any] = {}
        for field, keys in FIELD_ALIASES.items():
            for key in keys:
                value = data.get(key)
                if value is not None and value != "":
                    values[field] = value if field == "amount" else str(value)
                    break
        return cls(**values)

    def missing_fields(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if getattr(self, name) is None]


class RelayEvent(BaseModel):
    """Normalized status event forwarded to the internal backend."""

    correlationId: str
    payomatixId: str
    status: str
    message: str | None = None
    amount: Any
    currency: str
    customerEmail: str | None = None
    customerName: str | None = None
    customerPhone: str | None = None
    receivedAt: str
    userId: str | None = None
    cardId: str | None = None


class WebhookAck(BaseModel):
    """Acknowledgement returned to the processor."""

    received: bool = True
    message: str = "Webhook received and processed."
