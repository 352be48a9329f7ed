from __future__ import annotations


class FeedError(Exception):
    """Domain-level failure: the view shows an error panel with retry."""

    def __init__(self, message: str, domain: str = "") -> None:
        super().__init__(message)
        self.domain = domain


class FeedFetchError(FeedError):
    def __init__(self, message: str, domain: str = "", status: int | None = None) -> None:
        super().__init__(message, domain)
        self.status = status


class FeedParseError(FeedError):
    pass


class EmptyFeedError(FeedError):
    pass
