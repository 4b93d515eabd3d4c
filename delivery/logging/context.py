"""Thread-local context for request and notification correlation."""

import threading

_log_context = threading.local()


def set_request_id(request_id: str) -> None:
    """Store the request ID in thread-local storage."""
    _log_context.request_id = request_id


def get_request_id() -> str | None:
    """Retrieve the request ID from thread-local storage.

    Returns:
        The current request ID, or None if not set.
    """
    return getattr(_log_context, "request_id", None)


def clear_request_id() -> None:
    """Clear the request ID once the request has been served."""
    if hasattr(_log_context, "request_id"):
        delattr(_log_context, "request_id")


def set_notification_id(notification_id: str) -> None:
    """Bind the notification being processed by the current worker thread."""
    _log_context.notification_id = notification_id


def get_notification_id() -> str | None:
    """Return the notification bound to the current thread, if any."""
    return getattr(_log_context, "notification_id", None)


def clear_notification_id() -> None:
    """Unbind the notification from the current thread."""
    if hasattr(_log_context, "notification_id"):
        delattr(_log_context, "notification_id")
