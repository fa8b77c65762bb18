"""Error taxonomy for the book tracker core."""
from typing import Optional


class BookTrackerError(Exception):
    """Base error with a stable code and a human-readable message."""

    code = "ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AlreadyListed(BookTrackerError):
    """The book is already in one of the reading lists."""

    code = "ALREADY_LISTED"

    def __init__(self, book_id: str, list_name: Optional[str] = None):
        self.book_id = book_id
        self.list_name = list_name
        message = "This book is already in one of your lists!"
        if list_name:
            message = f"This book is already in your '{list_name}' list!"
        super().__init__(message)


class NotFound(BookTrackerError):
    """A book or list referenced by an operation does not exist."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        self.resource = resource
        self.resource_id = resource_id
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message)


class TransportError(BookTrackerError):
    """A catalog request failed (non-success status or network error)."""

    code = "TRANSPORT_ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class PersistenceError(BookTrackerError):
    """Reading from or writing to the key-value store failed."""

    code = "PERSISTENCE_ERROR"


class RecommendationError(BookTrackerError):
    """Generating recommendations failed as a whole."""

    code = "RECOMMENDATION_ERROR"
