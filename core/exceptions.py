"""
Domain exceptions.

Handlers in core.exception_handlers translate these into HTTP responses;
the scheduler inspects PushDeliveryError directly to decide on eviction.
"""
from typing import Any, Optional

# Push services answer with these when a subscription is expired or revoked.
TERMINAL_PUSH_STATUS_CODES = frozenset({401, 404, 410})


class SubscriptionNotFound(Exception):
    def __init__(self, endpoint: str):
        super().__init__(f"Unknown endpoint: {endpoint}")
        self.endpoint = endpoint


class PushDeliveryError(Exception):
    """A push service rejected (or never received) a notification."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def terminal(self) -> bool:
        return self.status_code in TERMINAL_PUSH_STATUS_CODES


class InvalidCoordinates(ValueError):
    pass


class SuggestionUpstreamError(Exception):
    """The suggestion backend could not be reached or answered with an error."""

    def __init__(self, message: str, detail: Any = None):
        super().__init__(message)
        self.detail = detail


class SuggestionParseError(Exception):
    """The suggestion backend answered, but not with a JSON array."""

    def __init__(self, message: str, detail: Any = None):
        super().__init__(message)
        self.detail = detail
