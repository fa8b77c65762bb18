"""Core facade the presentation layer calls into."""
from typing import Dict, List, Optional, Protocol, Set
import logging

from booktracker.exceptions import RecommendationError, TransportError
from booktracker.lists import ListManager
from booktracker.models import Book, MutationResult
from booktracker.recommendations import RecommendationEngine
from booktracker.session import SessionState

logger = logging.getLogger(__name__)

SEARCH_REGION = "search"
DETAILS_REGION = "details"
RECOMMENDATIONS_REGION = "recommendations"

EMPTY_QUERY_MESSAGE = "Please enter a book title or author to search."
SEARCH_ERROR_MESSAGE = "Error searching for books. Please try again later."
DETAILS_MISSING_MESSAGE = "Could not load book details."
DETAILS_ERROR_MESSAGE = "Error loading book details. Please check your connection."
RECOMMENDATIONS_ERROR_MESSAGE = "Failed to generate recommendations. Please try again later."


class Presenter(Protocol):
    """What the presentation layer must be able to draw."""

    def render_lists(self, user_books: Dict[str, List[Book]]) -> None:
        ...

    def render_search_results(self, books: List[Book], owned_ids: Set[str]) -> None:
        ...

    def render_recommendations(self, books: List[Book], owned_ids: Set[str]) -> None:
        ...

    def render_detail(self, book: Book, current_list: Optional[str]) -> None:
        ...

    def render_error(self, region: str, message: str) -> None:
        ...

    def notify(self, message: str) -> None:
        ...


class BookTracker:
    """
    Search, list and recommendation operations for one session.

    List mutations return a MutationResult; on success the lists and search
    results are redrawn, and recommendations are regenerated when the read
    books changed.
    """

    def __init__(
        self,
        state: SessionState,
        catalog,
        presenter: Presenter,
        list_manager: Optional[ListManager] = None,
        engine: Optional[RecommendationEngine] = None
    ):
        self.state = state
        self.catalog = catalog
        self.presenter = presenter
        self.lists = list_manager or ListManager(state)
        self.engine = engine or RecommendationEngine(state, catalog, self.lists)

    def start(self) -> str:
        """Load saved state and draw it without touching the network."""
        self.state.load()
        owned = self.lists.all_owned_ids()
        self.presenter.render_lists(self.state.user_books)
        self.presenter.render_search_results(self.state.last_search_results, owned)
        self.presenter.render_recommendations(self.engine.cached(), owned)
        return self.state.last_query

    async def search(self, query: str) -> MutationResult:
        query = (query or "").strip()
        if not query:
            self.presenter.render_error(SEARCH_REGION, EMPTY_QUERY_MESSAGE)
            return MutationResult.failure()

        try:
            books = await self.catalog.search(query)
        except TransportError as e:
            logger.error(f"Search failed: {e}")
            self.presenter.render_error(SEARCH_REGION, SEARCH_ERROR_MESSAGE)
            return MutationResult.failure(e)

        self.state.save_last_search(query, books)
        self.presenter.render_search_results(books, self.lists.all_owned_ids())
        return MutationResult(ok=True, search_cache_changed=True)

    async def add(self, book: Book, list_name) -> MutationResult:
        return await self._apply(self.lists.add_to_list(book, list_name))

    async def move(self, book_id: str, from_list, to_list) -> MutationResult:
        return await self._apply(self.lists.move_to_list(book_id, from_list, to_list))

    async def remove(self, book_id: str, list_name) -> MutationResult:
        return await self._apply(self.lists.remove_from_list(book_id, list_name))

    async def regenerate(self) -> Optional[List[Book]]:
        """Regenerate and draw recommendations; None if superseded or failed."""
        try:
            books = await self.engine.generate()
        except RecommendationError as e:
            logger.error(f"Recommendations failed: {e}")
            self.presenter.render_error(RECOMMENDATIONS_REGION, RECOMMENDATIONS_ERROR_MESSAGE)
            return None

        if books is not None:
            self.presenter.render_recommendations(books, self.lists.all_owned_ids())
        return books

    async def view_details(self, book_id: str) -> Optional[Book]:
        try:
            book = await self.catalog.fetch_details(book_id)
        except (TransportError, ValueError) as e:
            logger.error(f"Failed to fetch book details: {e}")
            self.presenter.render_error(DETAILS_REGION, DETAILS_ERROR_MESSAGE)
            return None

        if book is None:
            self.presenter.render_error(DETAILS_REGION, DETAILS_MISSING_MESSAGE)
            return None

        self.presenter.render_detail(book, self.lists.get_list_of(book_id))
        return book

    async def _apply(self, result: MutationResult) -> MutationResult:
        if not result:
            self.presenter.notify(result.message or "Something went wrong with your lists.")
            return result

        if result.lists_changed:
            self.presenter.render_lists(self.state.user_books)
            self.presenter.render_search_results(
                self.state.last_search_results, self.lists.all_owned_ids()
            )

        if result.recommendations_stale:
            await self.regenerate()
        return result
