# sceneflix/errors.py
"""
Error taxonomy for the client core.

Read paths (catalog fetches, watchlist list) never raise these past their
own boundary; they log and return an empty/absent value. Mutations
(login, signup, profile update, booking confirm) raise them to the caller.
"""
from __future__ import annotations

from typing import Any


class SceneflixError(Exception):
    """Base class for every error raised by the client core."""


class ValidationError(SceneflixError):
    """Local input failure. Raised before any network call."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class AuthenticationError(SceneflixError):
    """
    Credential rejection by the identity provider.

    ``reason`` is one of ``invalid_credentials``, ``email_not_confirmed``
    or ``unknown`` so callers can offer distinct remediation.
    """

    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    UNKNOWN = "unknown"

    _MESSAGES = {
        INVALID_CREDENTIALS: "Email or password is incorrect. Please try again.",
        EMAIL_NOT_CONFIRMED: (
            "Your email has not been confirmed yet. "
            "Please check your email for the confirmation link."
        ),
    }

    def __init__(self, reason: str, detail: str | None = None) -> None:
        self.reason = reason
        self.detail = detail
        self.message = self._MESSAGES.get(reason) or detail or "Authentication failed"
        super().__init__(self.message)


class NotAuthenticatedError(SceneflixError):
    """An operation requiring a session was invoked without one."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} requires a signed-in user")


class GatewayError(SceneflixError):
    """Network or backend failure on a query or mutation."""

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.operation = operation
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(f"{operation}: {message}")


class TicketUnavailableError(SceneflixError):
    """Checkout attempted for a ticket type with no matching offering."""

    def __init__(self, event_id: str, ticket_type: str | None) -> None:
        self.event_id = event_id
        self.ticket_type = ticket_type
        super().__init__(
            f"No ticket offering {ticket_type!r} for event {event_id}"
        )


class InvalidStateTransitionError(SceneflixError):
    """Raised when an illegal booking state transition is attempted."""

    def __init__(self, from_state: str, to_state: str) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal state transition attempted: {from_state} -> {to_state}"
        )


class StorageError(SceneflixError):
    """The local persistence medium could not be read or written."""
