from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    SERVICE_UNAVAILABLE = "service_unavailable"
    NETWORK_ERROR = "network_error"
    AUTH_FAILURE = "auth_failure"
    RATE_LIMITED = "rate_limited"
    UPSTREAM_ERROR = "upstream_error"
    MALFORMED_RESPONSE = "malformed_response"
    MISSING_TITLE = "missing_title"
    PERSISTENCE_FAILURE = "persistence_failure"
    NOT_FOUND = "not_found"
    CANCELLED = "cancelled"
    BUSY = "busy"


# kind -> (user facing message, http status, retryable)
_KIND_INFO = {
    ErrorKind.INVALID_INPUT: ("Please type a message first.", 400, False),
    ErrorKind.SERVICE_UNAVAILABLE: (
        "The language model is not configured. Check the API key.", 503, False),
    ErrorKind.NETWORK_ERROR: (
        "Could not reach the language model. Try again in a moment.", 503, True),
    ErrorKind.AUTH_FAILURE: ("The language model rejected the API key.", 502, False),
    ErrorKind.RATE_LIMITED: ("Too many requests. Try again in a few moments.", 429, True),
    ErrorKind.UPSTREAM_ERROR: ("The language model failed to answer. Try again.", 502, True),
    ErrorKind.MALFORMED_RESPONSE: (
        "The language model answered in an unexpected format.", 502, True),
    ErrorKind.MISSING_TITLE: ("Could not understand the message well enough to name it.",
                              422, True),
    ErrorKind.PERSISTENCE_FAILURE: ("Could not save your events. Try again.", 500, True),
    ErrorKind.NOT_FOUND: ("That event no longer exists.", 404, False),
    ErrorKind.CANCELLED: ("Processing was cancelled.", 499, True),
    ErrorKind.BUSY: ("This message is already being processed.", 409, True),
}


class AssistantError(Exception):
    """A failure surfaced to the user with a distinct, human readable reason."""

    def __init__(self, kind: ErrorKind, detail: Optional[str] = None):
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)

    @property
    def user_message(self) -> str:
        return _KIND_INFO[self.kind][0]

    @property
    def status_code(self) -> int:
        return _KIND_INFO[self.kind][1]

    @property
    def retryable(self) -> bool:
        return _KIND_INFO[self.kind][2]

    def to_dict(self) -> dict:
        return {
            "error": self.kind.value,
            "message": self.user_message,
            "detail": self.detail,
            "retryable": self.retryable,
        }
