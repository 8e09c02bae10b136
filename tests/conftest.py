"""Shared fixtures: explicit settings and recording mock transports."""

import json

import httpx
import pytest

from payrelay.common.config import load_settings


class RecordingHandler:
    """MockTransport handler that remembers every request it served."""

    def __init__(self, respond) -> None:
        self.respond = respond
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    def json_bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


def json_responder(body, status_code: int = 200):
    return lambda request: httpx.Response(status_code, json=body)


def make_settings(**overrides):
    values = {
        "payomatix_secret_key": "sk_test_secret",
        "payomatix_public_key": "pk_test_public",
        "payment_return_url": "https://shop.example.com/payment/return",
        "payment_notify_url": "https://relay.example.com/payomatix-webhook",
        "backend_webhook_url": "https://backend.internal.example.com/api/payments/webhook-update",
        "internal_webhook_secret": "internal-secret",
        "webhook_signing_secret": None,
        "otel_exporter_otlp_endpoint": None,
        "_env_file": None,
    }
    values.update(overrides)
    return load_settings(**values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def payment_body():
    return {
        "amount": 49.99,
        "currency": "USD",
        "customerEmail": "jane@example.com",
        "userId": "abc123",
        "cardId": "def456",
    }


@pytest.fixture
def webhook_payload():
    return {
        "event": "transaction.updated",
        "data": {
            "id": "PMX-778899",
            "merchant_ref": "payomatix-ref-1690000000000-1234-user_abc123-card_def456",
            "status": "success",
            "message": "Transaction approved",
            "converted_amount": "49.99",
            "converted_currency": "USD",
            "customer_email": "jane@example.com",
            "customer_name": "Jane Doe",
            "customer_phone": "+15550100",
        },
    }


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def recorder():
    """Build a `RecordingHandler` around a response callable."""

    return RecordingHandler


@pytest.fixture
def respond_json():
    return json_responder
