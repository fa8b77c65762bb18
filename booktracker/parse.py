"""Parse and normalize Google Books API responses."""
from typing import Dict, Any, List, Optional
import logging

from booktracker.models import Book

logger = logging.getLogger(__name__)

OPEN_LIBRARY_COVERS_URL = "https://covers.openlibrary.org/b"
COVER_SIZES = ("S", "M", "L")


def parse_book(item: Dict[str, Any]) -> Optional[Book]:
    """
    Parse a single book item from Google Books API.

    Args:
        item: Single item from Google Books API response

    Returns:
        Book object or None if the item has no id
    """
    if not isinstance(item, dict):
        logger.warning(f"Skipping malformed catalog item: {item!r}")
        return None

    book = Book.from_dict(item)
    if not book.id:
        return None
    return book


def parse_books_response(response_json: Dict[str, Any]) -> List[Book]:
    """
    Parse full Google Books API response.

    Args:
        response_json: Complete API response JSON

    Returns:
        List of Book objects (empty if no items found)
    """
    items = response_json.get("items") if isinstance(response_json, dict) else None
    if not isinstance(items, list):
        return []

    books = []
    for item in items:
        book = parse_book(item)
        if book:
            books.append(book)

    return books


def cover_image_url(volume_info: Optional[Dict[str, Any]], size: str = "M") -> Optional[str]:
    """
    Build an Open Library cover URL from a book's industry identifiers.

    Priority is ISBN-13, then ISBN-10, then an OCLC number stored as an
    ``OTHER`` identifier.

    Args:
        volume_info: Descriptive block of a catalog record
        size: Cover size, one of S, M or L

    Returns:
        Cover URL or None if no usable identifier exists
    """
    if size not in COVER_SIZES:
        raise ValueError(f"Invalid cover size: {size!r} (expected one of {', '.join(COVER_SIZES)})")

    if not volume_info or not isinstance(volume_info.get("industryIdentifiers"), list):
        return None

    isbn13 = None
    isbn10 = None
    oclc = None

    for identifier in volume_info["industryIdentifiers"]:
        kind = identifier.get("type")
        value = identifier.get("identifier") or ""
        if kind == "ISBN_13":
            isbn13 = value
        elif kind == "ISBN_10":
            isbn10 = value
        elif kind == "OTHER" and value.startswith("OCLC"):
            oclc = value.replace("OCLC:", "")

    if isbn13:
        return f"{OPEN_LIBRARY_COVERS_URL}/isbn/{isbn13}-{size}.jpg"
    if isbn10:
        return f"{OPEN_LIBRARY_COVERS_URL}/isbn/{isbn10}-{size}.jpg"
    if oclc:
        return f"{OPEN_LIBRARY_COVERS_URL}/oclc/{oclc}-{size}.jpg"

    return None
