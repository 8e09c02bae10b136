"""Error taxonomy shared by the intent and webhook paths.

Every error carries the HTTP status and message the caller should see; the
app-level exception handlers turn them into JSON bodies.
"""

from typing import Any


class RelayError(Exception):
    """Base class for request-scoped failures."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def body(self) -> dict[str, Any]:
        return {"success": False, "message": self.message}


class ClientValidationError(RelayError):
    """Inbound payment request failed validation; lists every violation."""

    status_code = 400

    def __init__(self, errors: list[str]) -> None:
        super().__init__("Invalid request data provided.")
        self.errors = errors

    def body(self) -> dict[str, Any]:
        return {**super().body(), "errors": self.errors}


class UpstreamProtocolError(RelayError):
    """Processor answered with a shape that has no safe interpretation."""

    def __init__(self, message: str, raw: Any) -> None:
        super().__init__(message, status_code=500)
        self.raw = raw

    def body(self) -> dict[str, Any]:
        return {**super().body(), "payomatixResponse": self.raw}


class UpstreamRejection(RelayError):
    """Processor signaled a business or validation failure."""

    def __init__(self, status_code: int, detail: str, errors: Any = None) -> None:
        super().__init__("Failed to create payment intent with Payomatix.", status_code=status_code)
        self.detail = detail
        self.errors = errors

    def body(self) -> dict[str, Any]:
        body = {**super().body(), "error": self.detail}
        if self.errors is not None:
            body["payomatixErrors"] = self.errors
        return body


class TransportError(RelayError):
    """Network failure or unreadable processor response."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            "An internal server error occurred while processing your payment request.",
            status_code=500,
        )
        self.detail = detail

    def body(self) -> dict[str, Any]:
        return {**super().body(), "error": self.detail}


class WebhookError(RelayError):
    """Failures on the webhook path render in the processor-facing shape."""

    def body(self) -> dict[str, Any]:
        return {"received": False, "message": self.message}


class MalformedWebhook(WebhookError):
    status_code = 400


class WebhookSignatureError(WebhookError):
    status_code = 403
