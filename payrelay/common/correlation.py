"""Merchant reference (correlation id) codec.

The processor echoes only `merchant_ref` back on webhooks, so the user and card
associations of a payment travel inside it:

    payomatix-ref-<millis>-<0..9999>[-user_<userId>][-card_<cardId>]
"""

import random
import re
import time
from dataclasses import dataclass

from payrelay.common.logging import logger


MERCHANT_REF_PREFIX = "payomatix-ref"
USER_PATTERN = re.compile(r"-user_([a-zA-Z0-9]+)")
CARD_PATTERN = re.compile(r"-card_([a-zA-Z0-9]+)")
_TOKEN = re.compile(r"[a-zA-Z0-9]+")


@dataclass(frozen=True)
class CorrelationRef:
    """Identifiers recovered from a merchant reference."""

    user_id: str | None = None
    card_id: str | None = None


def generate_merchant_ref(
    user_id: str | None = None,
    card_id: str | None = None,
    now_ms: int | None = None,
    nonce: int | None = None,
) -> str:
    """Build a fresh merchant reference, embedding user/card ids when given."""

    if now_ms is None:
        now_ms = int(time.time() * 1000)
    if nonce is None:
        nonce = random.randint(0, 9999)
    ref = f"{MERCHANT_REF_PREFIX}-{now_ms}-{nonce}"
    if user_id:
        _warn_if_lossy("user_id", user_id)
        ref += f"-user_{user_id}"
    if card_id:
        _warn_if_lossy("card_id", card_id)
        ref += f"-card_{card_id}"
    return ref


def _warn_if_lossy(field: str, value: str) -> None:
    # Webhook decoding only recovers the leading alphanumeric run.
    if not _TOKEN.fullmatch(value):
        logger.warning("%s is not alphanumeric and will not round-trip through merchant_ref", field)


def parse_merchant_ref(ref: str | None) -> CorrelationRef:
    """Recover user/card ids; a part that is not embedded decodes as None."""

    if not ref:
        return CorrelationRef()
    user = USER_PATTERN.search(ref)
    card = CARD_PATTERN.search(ref)
    return CorrelationRef(
        user_id=user.group(1) if user else None,
        card_id=card.group(1) if card else None,
    )
