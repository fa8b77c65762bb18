"""In-memory session state mirrored to a key-value store."""
from typing import Any, Dict, List, Optional
import logging

from booktracker.exceptions import PersistenceError
from booktracker.models import Book, LIST_NAMES
from booktracker.store import KeyValueStore

logger = logging.getLogger(__name__)

USER_BOOKS_KEY = "userBooks"
LAST_SEARCH_QUERY_KEY = "lastSearchQuery"
LAST_SEARCH_RESULTS_KEY = "lastSearchResults"
RECOMMENDATIONS_CACHE_KEY = "recommendationsCache"


def _books_from_json(items: Any) -> List[Book]:
    if not isinstance(items, list):
        return []
    return [Book.from_dict(item) for item in items if isinstance(item, dict) and item.get("id")]


def _books_to_json(books: List[Book]) -> List[Dict[str, Any]]:
    return [book.to_dict() for book in books]


class SessionState:
    """
    Reading lists, last search and recommendation cache for one session.

    Loaded once from the store, then every save writes the affected key in
    full. Writes are best-effort: a failing store is logged and the
    in-memory state is kept.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.user_books: Dict[str, List[Book]] = {name: [] for name in LIST_NAMES}
        self.last_query = ""
        self.last_search_results: List[Book] = []
        self.recommendations: List[Book] = []

    def load(self):
        """Populate memory from the store; missing data means empty."""
        stored = self._read(USER_BOOKS_KEY)
        if not isinstance(stored, dict):
            stored = {}
        self.user_books = {name: _books_from_json(stored.get(name)) for name in LIST_NAMES}

        query = self._read(LAST_SEARCH_QUERY_KEY)
        self.last_query = query if isinstance(query, str) else ""
        self.last_search_results = _books_from_json(self._read(LAST_SEARCH_RESULTS_KEY))
        self.recommendations = _books_from_json(self._read(RECOMMENDATIONS_CACHE_KEY))

        counts = ", ".join(f"{name}={len(books)}" for name, books in self.user_books.items())
        logger.info(f"Loaded session state: {counts}")

    def save_user_books(self):
        """Persist all three lists as one document."""
        document = {name: _books_to_json(books) for name, books in self.user_books.items()}
        self._write(USER_BOOKS_KEY, document)

    def save_last_search(self, query: str, results: List[Book]):
        self.last_query = query
        self.last_search_results = list(results)
        self._write(LAST_SEARCH_QUERY_KEY, query)
        self._write(LAST_SEARCH_RESULTS_KEY, _books_to_json(self.last_search_results))

    def save_recommendations(self, books: List[Book]):
        self.recommendations = list(books)
        self._write(RECOMMENDATIONS_CACHE_KEY, _books_to_json(self.recommendations))

    def _read(self, key: str) -> Optional[Any]:
        try:
            return self.store.get(key)
        except PersistenceError as e:
            logger.error(f"Error retrieving '{key}' from store: {e}")
            return None

    def _write(self, key: str, value: Any):
        try:
            self.store.set(key, value)
        except PersistenceError as e:
            logger.error(f"Error saving '{key}' to store: {e}")
