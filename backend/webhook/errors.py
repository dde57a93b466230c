"""
Webhook error taxonomy.

Each error carries the HTTP status the payment processor receives.
"""


class WebhookError(Exception):
    status_code = 500
    public_message = "Server Error"

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.public_message)
        self.detail = detail or self.public_message

    def to_body(self) -> dict:
        return {"error": self.public_message, "details": self.detail}


class Unauthorized(WebhookError):
    status_code = 401
    public_message = "Unauthorized"

    def to_body(self) -> dict:
        # No hint about which secret source was checked
        return {"error": self.public_message}


class ConfigurationError(WebhookError):
    status_code = 500
    public_message = "Server misconfigured"


class MalformedPayload(WebhookError):
    status_code = 400
    public_message = "Malformed payload"


class MissingField(WebhookError):
    status_code = 400
    public_message = "Missing required fields"

    def __init__(self, *fields: str):
        self.fields = list(fields)
        super().__init__(f"Missing required field(s): {', '.join(fields)}")

    def to_body(self) -> dict:
        return {"error": self.public_message, "details": self.detail, "fields": self.fields}


class InvalidField(WebhookError):
    status_code = 400
    public_message = "Invalid field value"


class ProvisioningFailure(WebhookError):
    status_code = 500
    public_message = "Server Error"


class NotificationFailure(WebhookError):
    """Sign-in email could not be sent. Logged, never returned."""
