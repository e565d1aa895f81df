"""
Error taxonomy for the Talos client.

TalosTransportError — the server could not be reached.
TalosAPIError       — the server refused the request; message is user-facing.
ValidationError     — rejected locally, no request was sent.
"""

from __future__ import annotations


class TalosError(Exception):
    """Base class for every error the client surfaces to the user."""


class TalosTransportError(TalosError):
    """The request never got an HTTP response."""


class TalosAPIError(TalosError):
    """Non-2xx response carrying an error message from the server."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(TalosError):
    """Input rejected before any request was made."""


def user_message(err: Exception) -> str:
    """Text to show for an error at an action boundary."""
    if isinstance(err, TalosTransportError):
        return "Server unreachable. Check the connection and try again."
    if isinstance(err, TalosError):
        return str(err)
    return f"Unexpected error: {err}"
