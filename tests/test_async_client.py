"""Tests for the async catalog client using httpx.MockTransport."""
import asyncio

import httpx
import pytest

from booktracker.async_client import AsyncGoogleBooksClient
from booktracker.exceptions import TransportError


def _run(handler, call, **kwargs):
    async def go():
        async with AsyncGoogleBooksClient(transport=httpx.MockTransport(handler), **kwargs) as client:
            return await call(client)
    return asyncio.run(go())


def test_search_parses_items_and_sends_params():
    """Search hits the volumes endpoint with the query and page size."""
    seen = {}

    def handler(request):
        seen["url"] = request.url
        return httpx.Response(200, json={"items": [
            {"id": "a", "volumeInfo": {"title": "A"}},
            {"volumeInfo": {"title": "no id"}},
        ]})

    books = _run(handler, lambda c: c.search("subject:Fantasy"), api_key="k")

    assert [b.id for b in books] == ["a"]
    assert seen["url"].path == "/books/v1/volumes"
    assert seen["url"].params["q"] == "subject:Fantasy"
    assert seen["url"].params["maxResults"] == "40"
    assert seen["url"].params["key"] == "k"


def test_search_without_items_is_empty():
    """No matches means an empty list, never None."""
    books = _run(lambda r: httpx.Response(200, json={"totalItems": 0}), lambda c: c.search("zzzz"))

    assert books == []


def test_search_error_status_raises_transport_error():
    """Non-success statuses carry the status and body."""
    with pytest.raises(TransportError) as excinfo:
        _run(lambda r: httpx.Response(503, text="backend down"), lambda c: c.search("dune"))

    assert excinfo.value.status_code == 503
    assert "503 - backend down" in excinfo.value.message


def test_network_failure_raises_transport_error():
    """Transport exceptions are wrapped."""
    def handler(request):
        raise httpx.ConnectError("no route", request=request)

    with pytest.raises(TransportError):
        _run(handler, lambda c: c.search("dune"))


def test_search_rejects_empty_query():
    """Empty queries never reach the network."""
    def handler(request):
        raise AssertionError("unexpected request")

    with pytest.raises(ValueError):
        _run(handler, lambda c: c.search(""))


def test_fetch_details():
    """Details are fetched by id."""
    def handler(request):
        assert request.url.path == "/books/v1/volumes/abc"
        return httpx.Response(200, json={"id": "abc", "volumeInfo": {"title": "Dune"}})

    book = _run(handler, lambda c: c.fetch_details("abc"))

    assert book.id == "abc"
    assert book.title == "Dune"


def test_fetch_details_without_volume_info():
    """A payload without a descriptive block yields None."""
    book = _run(lambda r: httpx.Response(200, json={"id": "abc"}), lambda c: c.fetch_details("abc"))

    assert book is None


def test_fetch_details_not_found_status():
    """A 404 is a transport error."""
    with pytest.raises(TransportError) as excinfo:
        _run(lambda r: httpx.Response(404, text="missing"), lambda c: c.fetch_details("abc"))

    assert excinfo.value.status_code == 404


def test_unencodable_query_raises_transport_error():
    """A query the HTTP layer cannot encode is reported like any failed request."""
    def handler(request):
        raise AssertionError("unexpected request")

    with pytest.raises(TransportError):
        _run(handler, lambda c: c.search("Fan\ud800tasy"))
