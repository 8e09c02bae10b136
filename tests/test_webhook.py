"""Webhook relay parsing, validation and best-effort backend forwarding."""

import httpx
import pytest

from payrelay.common.errors import MalformedWebhook, WebhookSignatureError
from payrelay.common.logging import merchant_ref_ctx
from payrelay.services.webhook.schemas import RelayEvent
from payrelay.services.webhook.service import BackendClient, ForwardOutcome, WebhookRelayService
from payrelay.services.webhook.signature import compute_signature, verify_signature


def _service(settings, handler):
    backend = BackendClient(settings, transport=httpx.MockTransport(handler))
    return WebhookRelayService(settings, backend)


def _ok(request):
    return httpx.Response(200, json={"ok": True})


@pytest.mark.asyncio
async def test_complete_payload_is_forwarded(settings, recorder, webhook_payload):
    handler = recorder(_ok)

    ack = await _service(settings, handler).handle_webhook(webhook_payload)

    assert ack.received is True
    assert len(handler.requests) == 1
    request = handler.requests[0]
    assert str(request.url) == settings.backend_webhook_url
    assert request.headers["X-Internal-Secret"] == "internal-secret"
    event = handler.json_bodies()[0]
    assert event["correlationId"] == webhook_payload["data"]["merchant_ref"]
    assert event["payomatixId"] == "PMX-778899"
    assert event["status"] == "success"
    assert event["message"] == "Transaction approved"
    assert event["amount"] == "49.99"
    assert event["currency"] == "USD"
    assert event["customerEmail"] == "jane@example.com"
    assert event["customerName"] == "Jane Doe"
    assert event["customerPhone"] == "+15550100"
    assert event["userId"] == "abc123"
    assert event["cardId"] == "def456"
    assert event["receivedAt"]


@pytest.mark.asyncio
async def test_ref_without_suffixes_forwards_null_ids(settings, recorder, webhook_payload):
    handler = recorder(_ok)
    webhook_payload["data"]["merchant_ref"] = "payomatix-ref-1690000000000-1234"

    await _service(settings, handler).handle_webhook(webhook_payload)

    event = handler.json_bodies()[0]
    assert event["userId"] is None
    assert event["cardId"] is None


@pytest.mark.asyncio
async def test_plain_field_names_are_accepted(settings, recorder, webhook_payload):
    handler = recorder(_ok)
    data = webhook_payload["data"]
    data["transaction_id"] = data.pop("id")
    data["amount"] = data.pop("converted_amount")
    data["currency"] = data.pop("converted_currency")

    await _service(settings, handler).handle_webhook(webhook_payload)

    event = handler.json_bodies()[0]
    assert event["payomatixId"] == "PMX-778899"
    assert event["amount"] == "49.99"


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"data": None}, {"data": "oops"}, ["data"]])
async def test_missing_data_object_is_rejected(settings, recorder, payload):
    handler = recorder(_ok)

    with pytest.raises(MalformedWebhook) as exc_info:
        await _service(settings, handler).handle_webhook(payload)

    assert exc_info.value.status_code == 400
    assert exc_info.value.body()["received"] is False
    assert handler.requests == []


@pytest.mark.asyncio
async def test_missing_required_fields_are_rejected(settings, recorder, webhook_payload):
    handler = recorder(_ok)
    del webhook_payload["data"]["status"]
    del webhook_payload["data"]["converted_currency"]

    with pytest.raises(MalformedWebhook) as exc_info:
        await _service(settings, handler).handle_webhook(webhook_payload)

    assert "status" in exc_info.value.message
    assert "currency" in exc_info.value.message
    assert handler.requests == []


@pytest.mark.asyncio
async def test_backend_error_status_does_not_change_ack(settings, recorder, webhook_payload):
    handler = recorder(lambda request: httpx.Response(503, text="maintenance"))

    ack = await _service(settings, handler).handle_webhook(webhook_payload)

    assert ack.received is True
    assert len(handler.requests) == 1


@pytest.mark.asyncio
async def test_backend_network_failure_does_not_change_ack(settings, recorder, webhook_payload):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    ack = await _service(settings, recorder(refuse)).handle_webhook(webhook_payload)

    assert ack.received is True


@pytest.mark.asyncio
async def test_unexpected_forward_exception_does_not_change_ack(settings, recorder, webhook_payload, monkeypatch):
    service = _service(settings, recorder(_ok))

    async def explode(event):
        raise RuntimeError("boom")

    monkeypatch.setattr(service.backend, "forward", explode)

    ack = await service.handle_webhook(webhook_payload)

    assert ack.received is True


@pytest.mark.asyncio
async def test_forwarding_skipped_when_not_configured(settings_factory, recorder, webhook_payload):
    settings = settings_factory(backend_webhook_url=None)
    handler = recorder(_ok)
    service = _service(settings, handler)

    event = RelayEvent(
        correlationId="R1", payomatixId="P1", status="success", amount="1.00", currency="USD", receivedAt="now"
    )

    assert await service.backend.forward(event) is ForwardOutcome.SKIPPED
    ack = await service.handle_webhook(webhook_payload)

    assert ack.received is True
    assert handler.requests == []


@pytest.mark.asyncio
async def test_backend_outcomes(settings):
    event = RelayEvent(
        correlationId="R1", payomatixId="P1", status="success", amount="1.00", currency="USD", receivedAt="now"
    )
    delivered = BackendClient(settings, transport=httpx.MockTransport(_ok))
    rejected = BackendClient(settings, transport=httpx.MockTransport(lambda r: httpx.Response(401)))

    assert await delivered.forward(event) is ForwardOutcome.DELIVERED
    assert await rejected.forward(event) is ForwardOutcome.REJECTED


def test_signature_verification():
    body = b'{"data": {}}'
    signature = compute_signature(body, "whsec")

    assert verify_signature(body, signature, "whsec")
    assert verify_signature(body, f"sha256={signature}", "whsec")
    assert not verify_signature(body, signature, "other-secret")
    assert not verify_signature(body + b" ", signature, "whsec")
    assert not verify_signature(body, None, "whsec")


def test_check_signature_enforced_only_when_secret_configured(settings_factory, recorder):
    body = b'{"data": {}}'
    unsigned = _service(settings_factory(), recorder(_ok))
    signed = _service(settings_factory(webhook_signing_secret="whsec"), recorder(_ok))

    unsigned.check_signature(body, None)
    signed.check_signature(body, compute_signature(body, "whsec"))
    with pytest.raises(WebhookSignatureError) as exc_info:
        signed.check_signature(body, "deadbeef")
    assert exc_info.value.status_code == 403


def test_non_ascii_signature_is_a_mismatch_not_an_error(settings_factory, recorder):
    body = b'{"data": {}}'
    signed = _service(settings_factory(webhook_signing_secret="whsec"), recorder(_ok))

    assert not verify_signature(body, "caf\xe9", "whsec")
    assert not verify_signature(body, "sha256=caf\xe9", "whsec")
    with pytest.raises(WebhookSignatureError):
        signed.check_signature(body, "caf\xe9")


@pytest.mark.asyncio
async def test_merchant_ref_log_context_is_restored(settings, recorder, webhook_payload):
    await _service(settings, recorder(_ok)).handle_webhook(webhook_payload)

    assert merchant_ref_ctx.get() == ""
