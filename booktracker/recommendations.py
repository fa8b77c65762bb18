"""Recommendations derived from the genres, authors and keywords of read books."""
import asyncio
import re
from typing import Iterable, List, Optional, Set
import logging

from booktracker.exceptions import RecommendationError
from booktracker.models import Book, PreferenceSignals, ReadingList

logger = logging.getLogger(__name__)

# Words ignored when mining titles and descriptions for keywords
STOP_WORDS = (
    "the", "and", "for", "with", "from", "book", "story", "this", "that",
    "your", "have", "been", "will", "they", "their", "into", "some", "each",
    "such", "many", "more", "than", "then", "also", "just", "about", "when",
    "what", "where", "which", "why", "how", "there", "them", "these",
    "those", "our", "out", "you", "one", "two", "three", "said",
)
_STOP_WORD_SET = frozenset(STOP_WORDS)

FALLBACK_QUERY = "bestsellers fiction"
MAX_GENRES = 3
MAX_AUTHORS = 2
MAX_KEYWORDS = 3
RECOMMENDATION_LIMIT = 10

_NON_WORD = re.compile(r"\W+", re.ASCII)


def extract_keywords(text: Optional[str]) -> List[str]:
    """Lower-cased tokens longer than three characters, minus stop words."""
    if not text:
        return []
    return [
        word for word in _NON_WORD.split(text.lower())
        if len(word) > 3 and word not in _STOP_WORD_SET
    ]


def extract_preferences(read_books: Iterable[Book]) -> PreferenceSignals:
    """
    Collect genres, authors and keywords in order of discovery.

    Each book contributes its categories, then authors, then title
    keywords, then description keywords.
    """
    genres, authors, keywords = {}, {}, {}
    for book in read_books:
        genres.update(dict.fromkeys(book.categories))
        authors.update(dict.fromkeys(book.authors))
        keywords.update(dict.fromkeys(extract_keywords(book.title)))
        keywords.update(dict.fromkeys(extract_keywords(book.description)))

    return PreferenceSignals(
        genres=list(genres),
        authors=list(authors),
        keywords=list(keywords)
    )


def build_queries(signals: PreferenceSignals) -> List[str]:
    """Catalog queries for the strongest signals, or the fallback query."""
    if signals.is_empty():
        return [FALLBACK_QUERY]

    queries = [f"subject:{genre}" for genre in signals.genres[:MAX_GENRES]]
    queries += [f"inauthor:{author}" for author in signals.authors[:MAX_AUTHORS]]
    if signals.keywords:
        queries.append(" ".join(signals.keywords[:MAX_KEYWORDS]))
    return queries


def filter_candidates(result_sets: Iterable[List[Book]], owned_ids: Set[str]) -> List[Book]:
    """
    Merge result sets in order and keep displayable, unseen, unowned books.

    The first occurrence of an id wins.
    """
    seen = set()
    candidates = []
    for results in result_sets:
        for book in results:
            if not book or not book.id or not book.volume_info:
                continue
            if book.id in seen or book.id in owned_ids:
                continue
            if not book.thumbnail:
                continue
            seen.add(book.id)
            candidates.append(book)
    return candidates


def rank_books(books: List[Book]) -> List[Book]:
    """Highest rated first, ties by ratings count; otherwise stable."""
    return sorted(books, key=lambda book: (book.average_rating, book.ratings_count), reverse=True)


class RecommendationEngine:
    """
    Generates and caches recommendations for a session.

    Runs may overlap. Each run takes a ticket when it starts and only the
    most recently started run commits its result; older runs that resolve
    later are discarded.
    """

    def __init__(self, state, catalog, list_manager, limit: int = RECOMMENDATION_LIMIT):
        self.state = state
        self.catalog = catalog
        self.list_manager = list_manager
        self.limit = limit
        self._latest_run = 0

    def cached(self) -> List[Book]:
        """Recommendations from the last committed run."""
        return list(self.state.recommendations)

    async def generate(self) -> Optional[List[Book]]:
        """
        Build fresh recommendations from the read books.

        Returns:
            The committed recommendations (possibly empty), or None if a
            newer run started before this one finished

        Raises:
            RecommendationError: If the run itself fails
        """
        self._latest_run += 1
        run = self._latest_run

        try:
            read_books = self.state.user_books[ReadingList.READ_BOOKS.value]
            queries = build_queries(extract_preferences(read_books))
            logger.info(f"Recommendation run {run}: {len(queries)} queries {queries}")

            result_sets = await asyncio.gather(*(self._search_or_empty(q) for q in queries))

            candidates = filter_candidates(result_sets, self.list_manager.all_owned_ids())
            recommendations = rank_books(candidates)[:self.limit]
        except Exception as e:
            if run != self._latest_run:
                logger.warning(f"Superseded recommendation run {run} failed: {e}")
                return None
            logger.exception("Error generating recommendations")
            raise RecommendationError(f"Failed to generate recommendations: {e}") from e

        if run != self._latest_run:
            logger.info(f"Discarding recommendation run {run}; run {self._latest_run} is newer")
            return None

        self.state.save_recommendations(recommendations)
        logger.info(f"Recommendation run {run}: {len(recommendations)} books")
        return recommendations

    async def _search_or_empty(self, query: str) -> List[Book]:
        try:
            return await self.catalog.search(query)
        except Exception as e:
            logger.warning(f"Recommendation query '{query}' failed: {e}")
            return []
