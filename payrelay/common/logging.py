"""Structured JSON logging with request and payment context fields."""

import logging
import sys
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter

from payrelay.common.config import RelaySettings


request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")
merchant_ref_ctx: ContextVar[str] = ContextVar("merchant_ref", default="")


class ContextFilter(logging.Filter):
    """Inject service name and per-request identifiers into every log record."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = self.service_name
        record.request_id = request_id_ctx.get()
        record.merchant_ref = merchant_ref_ctx.get()
        return True


def configure_logging(settings: RelaySettings) -> None:
    """Configure root logger once per process."""

    handler = logging.StreamHandler(sys.stdout)
    context_filter = ContextFilter(settings.service_name)
    handler.addFilter(context_filter)
    formatter = JsonFormatter(
        "%(asctime)s %(levelname)s %(service_name)s %(request_id)s %(merchant_ref)s %(message)s"
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level)
    root.addFilter(context_filter)


def mask_email(email: str | None) -> str | None:
    """Keep the first character and domain of an address, e.g. `j***@example.com`."""

    if not email or "@" not in email:
        return email
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"


logger = logging.getLogger("payrelay")
