"""
Kick API errors.

Every failure coming out of the HTTP layer (network, timeout, non-2xx,
unreadable body, request after disconnect) is raised as a TransportError so
callers only have one thing to catch.
"""

from typing import Optional


class KickAPIError(Exception):
    """Base class for Kick API errors."""


class TransportError(KickAPIError):
    """Network or API failure while talking to Kick."""

    def __init__(self, message: str, status: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.url = url

    def __str__(self) -> str:
        base = super().__str__()
        if self.status is not None:
            return f"{base} (status={self.status}, url={self.url})"
        return base
