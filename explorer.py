#!/usr/bin/env python3
"""Book Tracker CLI - search, reading lists and recommendations."""
import argparse
import asyncio
import sys
import json
from tabulate import tabulate
from booktracker.app import BookTracker
from booktracker.async_client import AsyncGoogleBooksClient
from booktracker.config import Config
from booktracker.database import PostgresStore
from booktracker.models import LIST_NAMES
from booktracker.session import SessionState
from booktracker.store import JsonFileStore, MemoryStore
import logging

logger = logging.getLogger(__name__)

LIST_TITLES = {
    "currentlyReading": "Currently Reading",
    "wantToRead": "Want to Read",
    "readBooks": "Read",
}


def _clip(text: str, width: int) -> str:
    return text[:width] + "..." if len(text) > width else text


def display_books(books, format_type: str, owned_ids=frozenset()):
    """Display books in specified format."""
    if format_type == "table":
        headers = ["ID", "Title", "Authors", "Rating", "Categories", "Owned"]
        rows = [
            [
                book.id,
                _clip(book.title or "Unknown Title", 50),
                _clip(book.authors_str, 30),
                f"{book.average_rating} ({book.ratings_count})" if book.ratings_count else "N/A",
                _clip(book.categories_str, 30),
                "yes" if book.id in owned_ids else ""
            ]
            for book in books
        ]
        print(tabulate(rows, headers=headers, tablefmt="grid"))

    elif format_type == "json":
        print(json.dumps([book.to_dict() for book in books], indent=2))

    elif format_type == "compact":
        for i, book in enumerate(books, 1):
            print(f"{i}. [{book.id}] {book.title or 'Unknown Title'} - {book.authors_str}")


class TablePresenter:
    """Prints the regions a command asked for; errors always go to stderr."""

    def __init__(self, format_type: str = "table"):
        self.format_type = format_type
        self.show = set()
        self.failed = False

    def render_lists(self, user_books):
        if "lists" not in self.show:
            return
        for name in LIST_NAMES:
            books = user_books.get(name, [])
            print(f"\n{LIST_TITLES[name]} ({len(books)})")
            if books:
                display_books(books, self.format_type)

    def render_search_results(self, books, owned_ids):
        if "search" not in self.show:
            return
        if not books:
            print("No books found.")
            return
        display_books(books, self.format_type, owned_ids)

    def render_recommendations(self, books, owned_ids):
        if "recommendations" not in self.show:
            return
        if not books:
            print("No suitable recommendations found. Try reading more books to improve suggestions!")
            return
        print("\nRecommended for you")
        display_books(books, self.format_type, owned_ids)

    def render_detail(self, book, current_list):
        if self.format_type == "json":
            print(json.dumps(book.to_dict(), indent=2))
            return
        rows = [
            ["ID", book.id],
            ["Title", book.title or "Unknown Title"],
            ["Authors", book.authors_str],
            ["Categories", book.categories_str],
            ["Rating", f"{book.average_rating} ({book.ratings_count} ratings)"],
            ["Cover", book.cover_url or "N/A"],
            ["Identifiers", ", ".join(f"{i.get('type')}: {i.get('identifier')}" for i in book.industry_identifiers) or "N/A"],
            ["In list", LIST_TITLES.get(current_list, "-")],
            ["Description", _clip(book.description or "", 300)],
        ]
        print(tabulate(rows, tablefmt="plain"))

    def render_error(self, region, message):
        self.failed = True
        print(f"[{region}] {message}", file=sys.stderr)

    def notify(self, message):
        self.failed = True
        print(f"⚠️  {message}", file=sys.stderr)


def create_store(backend: str, path: str, config: Config):
    """Build the key-value store for the chosen backend."""
    if backend == "memory":
        return MemoryStore()
    if backend == "postgres":
        store = PostgresStore(config.DATABASE_URL)
        store.init_schema()
        return store
    return JsonFileStore(path)


async def run_command(args, config: Config) -> bool:
    """Execute one subcommand against a fresh session."""
    store = create_store(args.store or config.STORE_BACKEND, args.store_path or config.STORE_PATH, config)
    presenter = TablePresenter(getattr(args, "format", "table"))

    try:
        async with AsyncGoogleBooksClient(
            api_key=config.GOOGLE_BOOKS_API_KEY,
            timeout=config.DEFAULT_TIMEOUT,
            max_concurrent=config.MAX_CONCURRENT,
            max_results=config.SEARCH_MAX_RESULTS
        ) as client:
            state = SessionState(store)
            tracker = BookTracker(state, client, presenter)
            tracker.engine.limit = config.RECOMMENDATION_LIMIT

            if args.command == "lists":
                presenter.show = {"lists"}
                tracker.start()
                return True

            if args.command == "recommend" and args.cached:
                presenter.show = {"recommendations"}
                tracker.start()
                return True

            last_query = tracker.start()
            logger.info(f"Last search query: {last_query!r}")

            if args.command == "search":
                presenter.show = {"search"}
                return bool(await tracker.search(args.query))

            if args.command == "recommend":
                presenter.show = {"recommendations"}
                return await tracker.regenerate() is not None

            if args.command == "details":
                return await tracker.view_details(args.book_id) is not None

            presenter.show = {"lists", "recommendations"}
            if args.command == "add":
                result = await tracker.move(args.book_id, None, args.list_name)
            elif args.command == "move":
                result = await tracker.move(args.book_id, args.from_list, args.to_list)
            else:
                result = await tracker.remove(args.book_id, args.list_name)
            return bool(result)

    finally:
        if isinstance(store, PostgresStore):
            store.close()


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Book Tracker - search, reading lists and recommendations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Search the catalog
  %(prog)s search "the left hand of darkness"

  # File a search result
  %(prog)s add zyTCAlFPjgYC wantToRead
  %(prog)s move zyTCAlFPjgYC readBooks --from wantToRead

  # Recommendations from your read books
  %(prog)s recommend
        """
    )
    parser.add_argument("--store", choices=["file", "memory", "postgres"], help="Store backend")
    parser.add_argument("--store-path", help="JSON store file (file backend)")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    def with_format(sub):
        sub.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")
        return sub

    search_parser = with_format(subparsers.add_parser("search", help="Search for books"))
    search_parser.add_argument("query", help="Search query")

    with_format(subparsers.add_parser("lists", help="Show reading lists"))

    recommend_parser = with_format(subparsers.add_parser("recommend", help="Generate recommendations"))
    recommend_parser.add_argument("--cached", action="store_true", help="Show cached recommendations only")

    details_parser = with_format(subparsers.add_parser("details", help="Show book details"))
    details_parser.add_argument("book_id", help="Catalog book ID")

    add_parser = with_format(subparsers.add_parser("add", help="Add a search result or recommendation to a list"))
    add_parser.add_argument("book_id", help="Catalog book ID")
    add_parser.add_argument("list_name", choices=LIST_NAMES, help="Target list")

    move_parser = with_format(subparsers.add_parser("move", help="Move a book between lists"))
    move_parser.add_argument("book_id", help="Catalog book ID")
    move_parser.add_argument("to_list", choices=LIST_NAMES, help="Target list")
    move_parser.add_argument("--from", dest="from_list", choices=LIST_NAMES, help="Current list")

    remove_parser = with_format(subparsers.add_parser("remove", help="Remove a book from a list"))
    remove_parser.add_argument("book_id", help="Catalog book ID")
    remove_parser.add_argument("list_name", choices=LIST_NAMES, help="List to remove from")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = Config()

    # Configure logging
    logging.basicConfig(
        level=logging.INFO if args.verbose else config.LOG_LEVEL.upper(),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        ok = asyncio.run(run_command(args, config))
    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
