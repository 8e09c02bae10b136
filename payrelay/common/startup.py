"""Startup-time helpers for safe config logging."""

from pydantic import SecretStr

from payrelay.common.config import RelaySettings
from payrelay.common.logging import logger


def _safe_value(value) -> str:
    """Render one settings value with secrets redacted."""

    if value is None:
        return "<unset>"
    if isinstance(value, SecretStr):
        return "<redacted>" if value.get_secret_value() else "<unset>"
    return str(value)


def redacted_config(settings: RelaySettings) -> dict[str, str]:
    return {name: _safe_value(getattr(settings, name)) for name in type(settings).model_fields}


def log_startup_config(settings: RelaySettings) -> None:
    """Log effective config once and warn about partially configured features."""

    logger.info("startup_config=%s", redacted_config(settings))
    if not settings.payomatix_public_key:
        logger.warning("PAYOMATIX_PUBLIC_KEY is not set")
    if not settings.forwarding_enabled:
        logger.warning("backend forwarding disabled: BACKEND_WEBHOOK_URL or INTERNAL_WEBHOOK_SECRET unset")
    if _safe_value(settings.webhook_signing_secret) == "<unset>":
        logger.warning("webhook signature verification disabled: WEBHOOK_SIGNING_SECRET unset")
