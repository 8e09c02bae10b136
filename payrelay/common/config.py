"""Environment-driven settings for the relay process.

Settings are loaded once at startup by `load_settings()` and handed to each
component explicitly (see `.env` for local overrides).
"""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PAYOMATIX_API_URL = "https://admin.payomatix.com/payment/merchant/transaction"


class RelaySettings(BaseSettings):
    """Typed, immutable view of runtime configuration."""

    service_name: str = "payrelay"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000
    frontend_url: str = "*"

    payomatix_public_key: str | None = None
    payomatix_secret_key: SecretStr
    payomatix_api_url: str = DEFAULT_PAYOMATIX_API_URL
    payment_return_url: str
    payment_notify_url: str
    processor_timeout_seconds: float = 10.0

    backend_webhook_url: str | None = None
    internal_webhook_secret: SecretStr | None = None
    backend_timeout_seconds: float = 5.0

    webhook_signing_secret: SecretStr | None = None
    webhook_signature_header: str = "x-payomatix-signature"

    otel_exporter_otlp_endpoint: str | None = None
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    @property
    def forwarding_enabled(self) -> bool:
        secret = self.internal_webhook_secret
        return bool(self.backend_webhook_url) and secret is not None and bool(secret.get_secret_value())


def load_settings(**overrides) -> RelaySettings:
    """Build settings from the environment, with explicit keyword overrides."""

    return RelaySettings(**overrides)
