# streamseen/core/errors.py
from __future__ import annotations


class StreamSeenError(Exception):
    """Base for typed failures surfaced to API callers."""

    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateItem(StreamSeenError):
    status_code = 409
    default_message = "Item already exists in your watchlist or watched list"


class NotFound(StreamSeenError):
    status_code = 404
    default_message = "Not found"


class AlreadyRequestedOrFriends(StreamSeenError):
    status_code = 409
    default_message = "Friend request already exists or users are already friends"


class ExternalProviderFailure(StreamSeenError):
    status_code = 502
    default_message = "The recommendation service is unavailable. Please try again."


__all__ = [
    "StreamSeenError",
    "DuplicateItem",
    "NotFound",
    "AlreadyRequestedOrFriends",
    "ExternalProviderFailure",
]
