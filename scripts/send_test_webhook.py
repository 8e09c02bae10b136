"""Post a (signed) Payomatix-style webhook to a running relay.

Useful for manual end-to-end checks of backend forwarding.
"""

import argparse
import json
from pathlib import Path

import httpx

from payrelay.services.webhook.signature import compute_signature


SAMPLE_PAYLOAD = {
    "event": "transaction.updated",
    "data": {
        "id": "PMX-TEST-0001",
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


def send(url: str, body: bytes, signature_header: str, secret: str | None) -> httpx.Response:
    """POST one raw body, signing it when a secret is given."""

    headers = {"Content-Type": "application/json"}
    if secret:
        headers[signature_header] = compute_signature(body, secret)
    return httpx.post(url, content=body, headers=headers, timeout=10.0)


def main() -> None:
    """Parse CLI args and send one webhook payload."""

    parser = argparse.ArgumentParser(description="Send a test Payomatix webhook to the relay.")
    parser.add_argument("--url", default="http://localhost:3000/payomatix-webhook")
    parser.add_argument("--file", dest="json_file", default=None, help="Path to JSON payload (default: sample)")
    parser.add_argument("--secret", default=None, help="Webhook signing secret")
    parser.add_argument("--signature-header", default="x-payomatix-signature")
    args = parser.parse_args()

    payload = json.loads(Path(args.json_file).read_text()) if args.json_file else SAMPLE_PAYLOAD
    resp = send(args.url, json.dumps(payload).encode("utf-8"), args.signature_header, args.secret)
    print(f"status={resp.status_code} body={resp.text}")


if __name__ == "__main__":
    main()
