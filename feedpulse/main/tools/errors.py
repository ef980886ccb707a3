"""Exception hierarchy shared by the aggregator, the discoverer and the API.

Each error carries the HTTP status the API answers with, so route handlers
never need to map exception types to status codes themselves.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class FeedPulseError(Exception):
    """Base exception for FeedPulse failures."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(FeedPulseError):
    """A required request input is missing."""

    status_code = 400


class NotFoundError(FeedPulseError):
    """No feed ``<link>`` was found on the requested page."""

    status_code = 404


class FetchError(FeedPulseError):
    """Transport-level failure while retrieving a page or a feed."""


class ParseError(FeedPulseError):
    """The retrieved document is not a usable feed or HTML page."""


class InternalError(FeedPulseError):
    """Unexpected failure inside the merge/filter/sort pipeline."""
