class WebhookError(Exception):
    """Base for errors that map to an HTTP response on the webhook endpoint."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(WebhookError):
    status_code = 500
    error = "Server configuration error"


class MalformedRequestError(WebhookError):
    status_code = 400
    error = "Invalid webhook event"


class AuthenticationError(WebhookError):
    status_code = 401
    error = "Invalid signature"


class ProcessingError(WebhookError):
    status_code = 500
    error = "Internal server error"


class ServiceUnavailableError(WebhookError):
    status_code = 503
    error = "Service unavailable"


class UpstreamError(Exception):
    """A call to the PayPal API failed. Never surfaced to the webhook sender."""


class CredentialError(UpstreamError):
    pass


class UpstreamTimeout(UpstreamError):
    pass
