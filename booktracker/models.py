"""Data models for books, reading lists and core operation results."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any

from booktracker.exceptions import BookTrackerError


class ReadingList(str, Enum):
    """The three personal reading lists."""
    CURRENTLY_READING = "currentlyReading"
    WANT_TO_READ = "wantToRead"
    READ_BOOKS = "readBooks"


LIST_NAMES = [item.value for item in ReadingList]


@dataclass
class Book:
    """A catalog record: an id plus its descriptive block (volumeInfo)."""
    id: str
    volume_info: Optional[Dict[str, Any]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, item: Dict[str, Any]) -> "Book":
        """Build a book from the raw catalog JSON shape."""
        extra = {k: v for k, v in item.items() if k not in ("id", "volumeInfo")}
        volume_info = item.get("volumeInfo")
        return cls(
            id=item.get("id") or "",
            volume_info=volume_info if isinstance(volume_info, dict) else None,
            extra=extra
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the raw catalog JSON shape."""
        data = {"id": self.id}
        if self.volume_info is not None:
            data["volumeInfo"] = self.volume_info
        data.update(self.extra)
        return data

    def _info(self, key: str, default=None):
        if not self.volume_info:
            return default
        value = self.volume_info.get(key)
        return default if value is None else value

    @property
    def title(self) -> Optional[str]:
        return self._info("title")

    @property
    def authors(self) -> List[str]:
        authors = self._info("authors", [])
        return authors if isinstance(authors, list) else []

    @property
    def categories(self) -> List[str]:
        categories = self._info("categories", [])
        return categories if isinstance(categories, list) else []

    @property
    def description(self) -> Optional[str]:
        return self._info("description")

    @property
    def average_rating(self) -> float:
        return self._info("averageRating", 0) or 0

    @property
    def ratings_count(self) -> int:
        return self._info("ratingsCount", 0) or 0

    @property
    def image_links(self) -> Dict[str, str]:
        links = self._info("imageLinks", {})
        return links if isinstance(links, dict) else {}

    @property
    def thumbnail(self) -> Optional[str]:
        """Direct cover URL (prefer the larger thumbnail)."""
        return self.image_links.get("thumbnail") or self.image_links.get("smallThumbnail")

    @property
    def industry_identifiers(self) -> List[Dict[str, str]]:
        identifiers = self._info("industryIdentifiers", [])
        return identifiers if isinstance(identifiers, list) else []

    @property
    def cover_url(self) -> Optional[str]:
        """Thumbnail if present, otherwise an Open Library cover."""
        if self.thumbnail:
            return self.thumbnail
        from booktracker.parse import cover_image_url
        return cover_image_url(self.volume_info)

    @property
    def authors_str(self) -> str:
        """Format authors as comma-separated string."""
        return ", ".join(self.authors) if self.authors else "Unknown"

    @property
    def categories_str(self) -> str:
        """Format categories as comma-separated string."""
        return ", ".join(self.categories) if self.categories else "None"


@dataclass
class MutationResult:
    """
    Outcome of a core operation.

    Tells the presentation layer what changed so it can decide what to
    redraw. Truthiness follows ``ok``.
    """
    ok: bool
    lists_changed: bool = False
    search_cache_changed: bool = False
    recommendations_stale: bool = False
    error: Optional[BookTrackerError] = None

    @classmethod
    def failure(cls, error: Optional[BookTrackerError] = None) -> "MutationResult":
        return cls(ok=False, error=error)

    @property
    def message(self) -> Optional[str]:
        return self.error.message if self.error else None

    def __bool__(self) -> bool:
        return self.ok


@dataclass
class PreferenceSignals:
    """Genres, authors and keywords derived from reading history."""
    genres: List[str] = field(default_factory=list)
    authors: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.genres or self.authors or self.keywords)
