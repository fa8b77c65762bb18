"""Shared fixtures: books, stores and a fake catalog."""
import pytest

from booktracker.exceptions import TransportError
from booktracker.lists import ListManager
from booktracker.models import Book
from booktracker.session import SessionState
from booktracker.store import MemoryStore


def build_book(book_id, title=None, authors=None, categories=None, description=None,
               rating=None, count=None, thumbnail="http://example.com/thumb.jpg"):
    info = {}
    if title is not None:
        info["title"] = title
    if authors is not None:
        info["authors"] = authors
    if categories is not None:
        info["categories"] = categories
    if description is not None:
        info["description"] = description
    if rating is not None:
        info["averageRating"] = rating
    if count is not None:
        info["ratingsCount"] = count
    if thumbnail:
        info["imageLinks"] = {"thumbnail": thumbnail}
    return Book(id=book_id, volume_info=info)


class FakeCatalog:
    """Catalog double: canned results per query, recorded calls."""

    def __init__(self, results=None, failing=(), details=None):
        self.results = results or {}
        self.failing = set(failing)
        self.details = details or {}
        self.queries = []

    async def search(self, query):
        self.queries.append(query)
        if query in self.failing:
            raise TransportError(f"search failed for {query}", status_code=503)
        return list(self.results.get(query, []))

    async def fetch_details(self, book_id):
        if book_id in self.failing:
            raise TransportError("details failed", status_code=500)
        return self.details.get(book_id)


@pytest.fixture
def make_book():
    return build_book


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def state(store):
    return SessionState(store)


@pytest.fixture
def manager(state):
    return ListManager(state)
