"""
Client Error Hierarchy

Typed errors raised by the HTTP gateway client and the coordinators.
Coordinators catch these and turn them into retained, user-visible messages.
"""

from __future__ import annotations

from typing import Optional


class MusicClientError(RuntimeError):
    """Base class for all client errors"""
    pass


class NetworkError(MusicClientError):
    """Backend could not be reached"""
    pass


class NetworkTimeoutError(NetworkError):
    """Request did not complete within its timeout"""
    pass


class UnsupportedOperationError(MusicClientError):
    """Operation is not supported for the current track, source or platform"""
    pass


class AuthError(MusicClientError):
    """Session is missing, expired or rejected by the backend"""
    pass


class BackendError(MusicClientError):
    """Backend answered with a failure.

    Attributes:
        status_code: HTTP status, or None when the envelope reported the failure
        message: Server supplied message
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFoundError(BackendError):
    """Requested entity does not exist"""
    pass


def describe_error(error: BaseException) -> str:
    """Human-readable message for a failed operation."""
    if isinstance(error, NetworkTimeoutError):
        return "The request timed out. Check your network connection and try again."
    if isinstance(error, NetworkError):
        return f"Cannot reach the music server: {error}"
    if isinstance(error, AuthError):
        return "Your session has expired. Please log in again."
    return str(error) or error.__class__.__name__
