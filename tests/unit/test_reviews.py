import asyncio

import httpx
import pytest

from filmrecs.common.errors import ReviewFetchError, ReviewParseError
from filmrecs.recommender.reviews import ReviewFetcher

REVIEWS_URL = "http://reviews.test/api"


def _fetch(handler, film_id: int = 7, **client_options):
    async def fetch():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler), **client_options) as client:
            return await ReviewFetcher(client, base_url=REVIEWS_URL).get_reviews_for_film(film_id)

    return asyncio.run(fetch())


def test_fetches_reviews_from_first_element_with_film_query_param():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[
                {"film_id": 7, "reviews": [{"rating": 5, "content": "great"}, {"rating": 3.5}]},
                {"film_id": 8, "reviews": [{"rating": 1}]},
            ],
        )

    reviews = _fetch(handler)

    assert [review.rating for review in reviews] == [5.0, 3.5]
    assert seen[0].url.params["films"] == "7"
    assert str(seen[0].url).startswith(REVIEWS_URL)


def test_connection_failure_is_fetch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ReviewFetchError, match="film 7"):
        _fetch(handler)


def test_error_status_is_fetch_error():
    with pytest.raises(ReviewFetchError):
        _fetch(lambda request: httpx.Response(503, text="unavailable"))


@pytest.mark.parametrize(
    "body",
    [
        b"<html>not json</html>",
        b"[]",
        b'{"reviews": []}',
        b'[{"film_id": 7}]',
        b'[{"film_id": 7, "reviews": [{"rating": "excellent"}]}]',
    ],
)
def test_malformed_payload_is_parse_error(body):
    with pytest.raises(ReviewParseError):
        _fetch(lambda request: httpx.Response(200, content=body))


def test_only_first_element_of_response_is_read():
    body = b'[{"film_id": 7, "reviews": [{"rating": 5}, {"rating": 4}]}, {"other": 1}, 3]'

    reviews = _fetch(lambda request: httpx.Response(200, content=body))

    assert [review.rating for review in reviews] == [5.0, 4.0]


def test_redirected_lookup_is_followed():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.scheme == "http":
            return httpx.Response(301, headers={"Location": str(request.url.copy_with(scheme="https"))})
        return httpx.Response(200, json=[{"reviews": [{"rating": 4}]}])

    reviews = _fetch(handler, follow_redirects=True)

    assert [review.rating for review in reviews] == [4.0]
