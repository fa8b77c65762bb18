"""Async HTTP client for the Google Books catalog."""
import asyncio
import httpx
from typing import List, Optional, Dict, Any
import logging

from booktracker.exceptions import TransportError
from booktracker.models import Book
from booktracker.parse import parse_book, parse_books_response

logger = logging.getLogger(__name__)


class AsyncGoogleBooksClient:
    """Async client for catalog searches and detail lookups."""

    BASE_URL = "https://www.googleapis.com/books/v1/volumes"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: int = 10,
        max_concurrent: int = 5,
        max_results: int = 40,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize async client.

        Args:
            api_key: Optional API key
            timeout: Request timeout
            max_concurrent: Maximum concurrent requests
            max_results: Results per search (API limit is 40)
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key
        self.timeout = timeout
        self.max_results = min(max_results, 40)
        self.semaphore = asyncio.Semaphore(max_concurrent)

        # Create async HTTP client
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def search(self, query: str) -> List[Book]:
        """
        Search for books.

        Args:
            query: Search query (title, author, ISBN or a qualified
                term such as ``subject:Fantasy``)

        Returns:
            List of books, empty when the catalog has no matches

        Raises:
            ValueError: If the query is empty
            TransportError: If the request fails
        """
        if not query or not isinstance(query, str):
            raise ValueError("Invalid search query provided.")

        params = {"q": query, "maxResults": self.max_results}
        data = await self._get_json(self.BASE_URL, params, "search")
        return parse_books_response(data)

    async def fetch_details(self, book_id: str) -> Optional[Book]:
        """
        Fetch a single volume.

        Returns:
            The book, or None if the payload has no descriptive block

        Raises:
            ValueError: If the id is empty
            TransportError: If the request fails
        """
        if not book_id or not isinstance(book_id, str):
            raise ValueError("Invalid book ID provided.")

        data = await self._get_json(f"{self.BASE_URL}/{book_id}", {}, "details")
        if not isinstance(data, dict) or not isinstance(data.get("volumeInfo"), dict):
            return None
        return parse_book(data)

    async def _get_json(self, url: str, params: Dict[str, Any], operation: str) -> Any:
        if self.api_key:
            params["key"] = self.api_key

        # Use semaphore to limit concurrency
        async with self.semaphore:
            try:
                logger.info(f"Async request ({operation}): {url} {params.get('q', '')}")
                response = await self.client.get(url, params=params)
            except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as e:
                logger.error(f"Async request failed: {e}")
                raise TransportError(f"Google Books API {operation} failed: {e}") from e

        if response.status_code != 200:
            logger.warning(f"Status {response.status_code} for {operation}: {url}")
            raise TransportError(
                f"Google Books API {operation} failed: {response.status_code} - {response.text}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Google Books API {operation} returned invalid JSON") from e

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
