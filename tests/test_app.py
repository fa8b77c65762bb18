"""Tests for the core facade and its recommendation triggers."""
import asyncio

from booktracker.app import (
    BookTracker,
    DETAILS_ERROR_MESSAGE,
    DETAILS_MISSING_MESSAGE,
    EMPTY_QUERY_MESSAGE,
    RECOMMENDATIONS_ERROR_MESSAGE,
    SEARCH_ERROR_MESSAGE,
)
from booktracker.exceptions import AlreadyListed, RecommendationError
from booktracker.session import SessionState
from booktracker.store import MemoryStore
from conftest import FakeCatalog, build_book


class RecordingPresenter:
    def __init__(self):
        self.calls = []

    def render_lists(self, user_books):
        self.calls.append(("lists", {k: [b.id for b in v] for k, v in user_books.items()}))

    def render_search_results(self, books, owned_ids):
        self.calls.append(("search", [b.id for b in books]))

    def render_recommendations(self, books, owned_ids):
        self.calls.append(("recommendations", [b.id for b in books]))

    def render_detail(self, book, current_list):
        self.calls.append(("detail", book.id, current_list))

    def render_error(self, region, message):
        self.calls.append(("error", region, message))

    def notify(self, message):
        self.calls.append(("notify", message))

    def kinds(self):
        return [call[0] for call in self.calls]


class CountingEngine:
    def __init__(self, fail=False):
        self.runs = 0
        self.fail = fail

    def cached(self):
        return []

    async def generate(self):
        self.runs += 1
        if self.fail:
            raise RecommendationError("boom")
        return []


def _tracker(catalog=None, engine=None, store=None):
    presenter = RecordingPresenter()
    state = SessionState(store or MemoryStore())
    tracker = BookTracker(state, catalog or FakeCatalog(), presenter, engine=engine)
    tracker.start()
    presenter.calls.clear()
    return tracker, presenter


def test_start_renders_cached_state_without_network():
    """Startup draws lists, last results and cached recommendations."""
    store = MemoryStore({
        "userBooks": {"readBooks": [build_book("R1").to_dict()]},
        "lastSearchQuery": "dune",
        "lastSearchResults": [build_book("S1").to_dict()],
        "recommendationsCache": [build_book("C1").to_dict()],
    })
    catalog = FakeCatalog()
    presenter = RecordingPresenter()
    tracker = BookTracker(SessionState(store), catalog, presenter)

    assert tracker.start() == "dune"
    assert presenter.calls == [
        ("lists", {"currentlyReading": [], "wantToRead": [], "readBooks": ["R1"]}),
        ("search", ["S1"]),
        ("recommendations", ["C1"]),
    ]
    assert catalog.queries == []


def test_search_saves_and_renders():
    """A successful search replaces the search cache."""
    tracker, presenter = _tracker(FakeCatalog(results={"dune": [build_book("D1")]}))

    result = asyncio.run(tracker.search("  dune "))

    assert result.search_cache_changed
    assert tracker.state.last_query == "dune"
    assert presenter.calls == [("search", ["D1"])]


def test_blank_search_renders_prompt():
    """Blank queries are not sent."""
    catalog = FakeCatalog()
    tracker, presenter = _tracker(catalog)

    assert not asyncio.run(tracker.search("   "))
    assert presenter.calls == [("error", "search", EMPTY_QUERY_MESSAGE)]
    assert catalog.queries == []


def test_search_failure_renders_inline_error():
    """Transport errors keep the previous search cache."""
    tracker, presenter = _tracker(FakeCatalog(failing={"dune"}))

    result = asyncio.run(tracker.search("dune"))

    assert not result
    assert presenter.calls == [("error", "search", SEARCH_ERROR_MESSAGE)]
    assert tracker.state.last_query == ""


def test_add_then_duplicate_add_notifies():
    """A failed mutation is a blocking notification and nothing is redrawn."""
    engine = CountingEngine()
    tracker, presenter = _tracker(engine=engine)
    b1 = build_book("B1")

    assert asyncio.run(tracker.add(b1, "wantToRead"))
    assert presenter.kinds() == ["lists", "search"]
    presenter.calls.clear()

    result = asyncio.run(tracker.add(b1, "readBooks"))

    assert isinstance(result.error, AlreadyListed)
    assert presenter.kinds() == ["notify"]
    assert engine.runs == 0


def test_move_into_read_books_regenerates_once():
    """Moving into readBooks triggers exactly one regeneration."""
    engine = CountingEngine()
    tracker, presenter = _tracker(engine=engine)
    asyncio.run(tracker.add(build_book("B1"), "wantToRead"))

    asyncio.run(tracker.move("B1", "wantToRead", "readBooks"))

    assert engine.runs == 1
    assert presenter.kinds()[-1] == "recommendations"


def test_move_between_other_lists_does_not_regenerate():
    """currentlyReading to wantToRead leaves recommendations alone."""
    engine = CountingEngine()
    tracker, _ = _tracker(engine=engine)
    asyncio.run(tracker.add(build_book("B1"), "currentlyReading"))

    assert asyncio.run(tracker.move("B1", "currentlyReading", "wantToRead"))
    assert engine.runs == 0


def test_add_and_remove_read_book_regenerate():
    """Adding to and removing from readBooks both regenerate."""
    engine = CountingEngine()
    tracker, _ = _tracker(engine=engine)

    asyncio.run(tracker.add(build_book("B1"), "readBooks"))
    asyncio.run(tracker.remove("B1", "readBooks"))

    assert engine.runs == 2


def test_remove_unknown_book_notifies():
    """Removing a book that is not in the list fails visibly."""
    tracker, presenter = _tracker()

    result = asyncio.run(tracker.remove("B1", "wantToRead"))

    assert not result
    assert presenter.kinds() == ["notify"]


def test_regenerate_failure_renders_inline_error():
    """Orchestration failures show in the recommendations region."""
    tracker, presenter = _tracker(engine=CountingEngine(fail=True))

    assert asyncio.run(tracker.regenerate()) is None
    assert presenter.calls == [("error", "recommendations", RECOMMENDATIONS_ERROR_MESSAGE)]


def test_regenerate_end_to_end_excludes_owned():
    """Recommendations from the real engine skip owned books."""
    catalog = FakeCatalog(results={
        "subject:Fantasy": [build_book("B1"), build_book("N1", rating=4.2)],
    })
    tracker, presenter = _tracker(catalog)
    tracker.state.last_search_results = [build_book("B1", categories=["Fantasy"])]

    asyncio.run(tracker.move("B1", None, "readBooks"))

    assert catalog.queries == ["subject:Fantasy"]
    assert presenter.calls[-1] == ("recommendations", ["N1"])


def test_view_details_shows_current_list():
    """Details include the list holding the book."""
    catalog = FakeCatalog(details={"B1": build_book("B1", title="Dune")})
    tracker, presenter = _tracker(catalog)
    asyncio.run(tracker.add(build_book("B1"), "wantToRead"))
    presenter.calls.clear()

    book = asyncio.run(tracker.view_details("B1"))

    assert book.title == "Dune"
    assert presenter.calls == [("detail", "B1", "wantToRead")]


def test_view_details_errors():
    """Missing and failing details render inline errors."""
    tracker, presenter = _tracker(FakeCatalog(failing={"bad"}))

    assert asyncio.run(tracker.view_details("missing")) is None
    assert asyncio.run(tracker.view_details("bad")) is None
    assert presenter.calls == [
        ("error", "details", DETAILS_MISSING_MESSAGE),
        ("error", "details", DETAILS_ERROR_MESSAGE),
    ]


def test_search_with_unencodable_query_renders_inline_error():
    """The real client's encoding failure shows as a search error."""
    import httpx

    from booktracker.async_client import AsyncGoogleBooksClient

    def handler(request):
        return httpx.Response(200, json={"items": []})

    async def go():
        async with AsyncGoogleBooksClient(transport=httpx.MockTransport(handler)) as client:
            tracker, presenter = _tracker(client)
            result = await tracker.search("Fan\ud800tasy")
            return result, presenter

    result, presenter = asyncio.run(go())

    assert not result
    assert presenter.calls == [("error", "search", SEARCH_ERROR_MESSAGE)]
