"""
Exception types shared across ReachOut.
"""

from __future__ import annotations

from typing import Optional


class ReachOutError(Exception):
    """Base class for ReachOut errors."""


class FetchError(ReachOutError):
    """A page or API request failed (network error, timeout, HTTP error status)."""

    def __init__(self, url: str, cause: Optional[BaseException] = None, status: int = 0):
        self.url = url
        self.cause = cause
        self.status = status
        if cause is not None:
            detail = str(cause) or type(cause).__name__
        elif status:
            detail = f"HTTP {status}"
        else:
            detail = ""
        super().__init__(f"Fetching {url} failed: {detail or 'unknown error'}")


class PersistenceError(ReachOutError):
    """The datastore rejected a read or write."""


class ConfigError(ReachOutError):
    """Required configuration is missing or invalid."""
