"""Request/response schemas for `POST /create-payment-intent`."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator

from payrelay.common.errors import ClientValidationError


class PaymentIntentRequest(BaseModel):
    """Payment request accepted from client applications (camelCase on the wire)."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
        populate_by_name=True,
        extra="ignore",
    )

    amount: Decimal = Field(gt=0, decimal_places=2, allow_inf_nan=False)
    currency: str = Field(min_length=3, max_length=3)
    customer_email: EmailStr = Field(alias="customerEmail")
    user_id: str | None = Field(default=None, alias="userId")
    card_id: str | None = Field(default=None, alias="cardId")
    merchant_ref: str | None = Field(default=None, alias="merchantRef", min_length=1, max_length=50)
    customer_name: str | None = Field(default=None, alias="customerName", max_length=100)
    description: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=20)
    address: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    zip: str | None = Field(default=None, max_length=20)
    country: str | None = Field(default=None, min_length=2, max_length=2)
    metadata: dict[str, Any] | None = None

    @field_validator("currency", "country")
    @classmethod
    def _uppercase(cls, value: str | None) -> str | None:
        if value is not None and value != value.upper():
            raise ValueError("must be uppercase")
        return value


class PaymentIntentResponse(BaseModel):
    """Success body returned to the caller."""

    success: bool = True
    message: str = "Payment intent created successfully. Redirect URL received."
    redirectUrl: str
    transactionId: str


# Caller-facing messages keyed by field alias, then pydantic error type.
_MESSAGES: dict[str, dict[str, str]] = {
    "amount": {
        "missing": "Amount is required.",
        "greater_than": "Amount must be positive.",
        "decimal_max_places": "Amount must have at most 2 decimal places.",
        "*": "Amount must be a number.",
    },
    "currency": {
        "missing": "Currency is required.",
        "string_too_short": "Currency must be 3 characters long (e.g., INR, USD).",
        "string_too_long": "Currency must be 3 characters long (e.g., INR, USD).",
        "value_error": "Currency must be uppercase.",
        "*": "Currency must be a string.",
    },
    "customerEmail": {
        "missing": "Customer email is required.",
        "*": "Customer email must be a valid email address.",
    },
    "merchantRef": {
        "string_too_long": "Merchant reference must not exceed 50 characters.",
        "*": "Merchant reference must be a non-empty string.",
    },
    "country": {
        "value_error": "Country must be uppercase.",
        "*": "Country must be a 2-letter code (e.g., IN, US).",
    },
}


def _message_for(error: dict) -> str:
    loc = error.get("loc") or ()
    if not loc:
        return "Request body must be a JSON object."
    field = str(loc[0])
    table = _MESSAGES.get(field)
    if table is None:
        return f"{field}: {error['msg']}"
    return table.get(error["type"], table["*"])


def validate_payment_request(body: Any) -> PaymentIntentRequest:
    """Validate a raw request body, reporting one message per invalid field."""

    try:
        return PaymentIntentRequest.model_validate(body)
    except ValidationError as exc:
        messages: list[str] = []
        seen: set = set()
        for error in exc.errors():
            field = error["loc"][0] if error["loc"] else None
            if field in seen:
                continue
            seen.add(field)
            messages.append(_message_for(error))
        raise ClientValidationError(messages) from exc
