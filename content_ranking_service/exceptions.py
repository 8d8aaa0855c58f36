"""Exceptions raised by the ranking services."""


class ContentNotFoundError(LookupError):
    """Raised when a content item does not exist."""

    def __init__(self, content_id: str):
        super().__init__(f"Content {content_id} not found")
        self.content_id = content_id


class InvalidRequestError(ValueError):
    """Raised when a request parameter is missing or out of range."""


class InvalidSearchRequestError(InvalidRequestError):
    """Raised when paging or sort parameters of a search are invalid."""
