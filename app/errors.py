"""Error types for the capture, cache and retention services."""


class WebhookCaptureError(Exception):
    """Base class for service-level errors."""


class WebhookNotFound(WebhookCaptureError):
    """Webhook does not exist or is not visible to the caller."""


class CacheUnavailable(WebhookCaptureError):
    """The key-value store could not be read or written."""


class RetentionStoreFailure(WebhookCaptureError):
    """The relational store failed during a retention sweep."""


class NotificationFailure(WebhookCaptureError):
    """The cleanup report could not be delivered."""
