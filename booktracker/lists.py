"""Reading list management with the one-list-per-book rule."""
from typing import Optional, Set
import logging

from booktracker.exceptions import AlreadyListed, NotFound
from booktracker.models import Book, MutationResult, ReadingList, LIST_NAMES
from booktracker.session import SessionState

logger = logging.getLogger(__name__)

READ_BOOKS = ReadingList.READ_BOOKS.value


def _list_name(name) -> Optional[str]:
    """Normalize a list name (str or ReadingList); None if unknown."""
    value = name.value if isinstance(name, ReadingList) else name
    return value if value in LIST_NAMES else None


class ListManager:
    """Owns the three reading lists of a session."""

    def __init__(self, state: SessionState):
        self.state = state

    @property
    def lists(self):
        return self.state.user_books

    def add_to_list(self, book: Book, list_name) -> MutationResult:
        """
        Append a book to a list unless it is already owned.

        Returns:
            MutationResult; AlreadyListed when the id is in any list
        """
        target = _list_name(list_name)
        if target is None:
            return MutationResult.failure(NotFound("Reading list", str(list_name)))
        if not book or not book.id:
            return MutationResult.failure(NotFound("Book"))

        current = self.get_list_of(book.id)
        if current:
            return MutationResult.failure(AlreadyListed(book.id, current))

        self.lists[target].append(book)
        self.state.save_user_books()
        logger.info(f"Added {book.id} to {target}")
        return MutationResult(
            ok=True,
            lists_changed=True,
            recommendations_stale=target == READ_BOOKS
        )

    def remove_from_list(self, book_id: str, list_name) -> MutationResult:
        source = _list_name(list_name)
        if source is None:
            return MutationResult.failure(NotFound("Reading list", str(list_name)))

        books = self.lists[source]
        remaining = [book for book in books if book.id != book_id]
        if not book_id or len(remaining) == len(books):
            return MutationResult.failure(NotFound("Book", book_id))

        self.lists[source] = remaining
        self.state.save_user_books()
        logger.info(f"Removed {book_id} from {source}")
        return MutationResult(
            ok=True,
            lists_changed=True,
            recommendations_stale=source == READ_BOOKS
        )

    def move_to_list(self, book_id: str, from_list, to_list) -> MutationResult:
        """
        Move a book into ``to_list``.

        With ``from_list`` the book is taken out of that list. Without it the
        book is not owned yet and its record comes from the search results,
        then the recommendations; this is how a book is first added by id.
        """
        target = _list_name(to_list)
        if target is None:
            return MutationResult.failure(NotFound("Reading list", str(to_list)))
        if not book_id:
            return MutationResult.failure(NotFound("Book"))

        if from_list:
            source = _list_name(from_list)
            if source is None:
                return MutationResult.failure(NotFound("Reading list", str(from_list)))
            book = self._pop(source, book_id)
        else:
            source = None
            current = self.get_list_of(book_id)
            if current == target:
                self.state.save_user_books()
                return MutationResult(ok=True)
            if current:
                return MutationResult.failure(AlreadyListed(book_id, current))
            book = (
                self._find(self.state.last_search_results, book_id)
                or self._find(self.state.recommendations, book_id)
            )

        if book is None:
            logger.warning(f"Book with ID {book_id} not found in any known list or cache")
            return MutationResult.failure(NotFound("Book", book_id))

        self.lists[target].append(book)
        self.state.save_user_books()
        logger.info(f"Moved {book_id} from {source or 'catalog'} to {target}")
        return MutationResult(
            ok=True,
            lists_changed=True,
            recommendations_stale=READ_BOOKS in (source, target) and source != target
        )

    def get_list_of(self, book_id: str) -> Optional[str]:
        """Name of the list holding the book, or None."""
        for name, books in self.lists.items():
            if any(book.id == book_id for book in books):
                return name
        return None

    def all_owned_ids(self) -> Set[str]:
        return {book.id for books in self.lists.values() for book in books}

    def get_by_id(self, book_id: str) -> Optional[Book]:
        """Look a book up in the lists, then search results, then recommendations."""
        if not book_id:
            return None
        for books in self.lists.values():
            book = self._find(books, book_id)
            if book:
                return book
        return (
            self._find(self.state.last_search_results, book_id)
            or self._find(self.state.recommendations, book_id)
        )

    def _pop(self, list_name: str, book_id: str) -> Optional[Book]:
        books = self.lists[list_name]
        for index, book in enumerate(books):
            if book.id == book_id:
                return books.pop(index)
        return None

    @staticmethod
    def _find(books, book_id: str) -> Optional[Book]:
        return next((book for book in books if book.id == book_id), None)
