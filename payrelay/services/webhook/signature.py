"""HMAC-SHA256 verification of processor webhook bodies."""

import hashlib
import hmac


def compute_signature(raw_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), msg=raw_body, digestmod=hashlib.sha256).hexdigest()


def verify_signature(raw_body: bytes, header_value: str | None, secret: str) -> bool:
    """Check a hex digest header (optionally `sha256=`-prefixed) against the raw body."""

    if not header_value:
        return False
    signature = header_value.strip()
    if signature.startswith("sha256="):
        signature = signature[len("sha256="):]
    # compare_digest rejects non-ASCII str operands with TypeError.
    if not signature.isascii():
        return False
    expected = compute_signature(raw_body, secret)
    return hmac.compare_digest(expected, signature.lower())
