"""Service error hierarchy for webhook intake and ledger operations.

This module defines the exception hierarchy for service-level errors:
- ServiceError: Base for all service errors
- ConfigurationError: Deployment misconfiguration detected at startup
- WebhookError: Problems with an inbound provider callback
"""


class ServiceError(Exception):
    """Base exception for all service errors."""

    pass


class ConfigurationError(ServiceError):
    """Service is wired or configured incorrectly.

    Example: dispatcher built without a branch for every event type.
    """

    pass


# Webhook-specific errors
class WebhookError(ServiceError):
    """Base exception for webhook errors."""

    pass


class WebhookAuthenticationError(WebhookError):
    """Webhook request failed authentication (401).

    The message is returned to the caller verbatim, so it must never contain
    secret material or the computed signature.
    """

    status_code = 401

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class WebhookPayloadError(WebhookError):
    """Signed payload does not match the expected envelope shape."""

    pass

