"""
Exception handling for the core module.

This module contains the exception classes raised by the transport client and
the integrations, and the helpers reporting them to Sentry.
"""

import sentry_sdk


class APIException(Exception):
    """Re-raise an error response from the app server as a python exception"""

    def __init__(self, status, error_code, title, detail) -> None:
        self.status = status
        self.error_code = error_code
        self.title = title
        self.detail = detail
        self.errors = [{"code": error_code, "title": title, "detail": detail}]
        super().__init__(f"{title}: {detail}")


class IntegrationError(Exception):
    """An error reported by a third-party backend, its message kept verbatim"""

    def __init__(self, message: str, status: int | None = None, error_type: str | None = None):
        self.message = message
        self.status = status
        self.error_type = error_type
        super().__init__(message)


def capture_exception(e: Exception, **tags) -> str | None:
    """Send an exception to Sentry if a client is configured, return the event id."""
    if not sentry_sdk.get_client().is_active():
        return None
    with sentry_sdk.new_scope() as scope:
        scope.set_tags({key: value for key, value in tags.items() if value is not None})
        return sentry_sdk.capture_exception(e)


def handle_exception(status: int, title: str, detail: str | dict, resource_id: str | None = None):
    """Handle exceptions with Sentry integration."""
    event_id = capture_exception(
        Exception(detail), status=status, title=title, detail=detail, resource_id=resource_id
    )
    raise APIException(status, event_id, title, detail)
