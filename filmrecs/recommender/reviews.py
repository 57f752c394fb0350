from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from filmrecs.common.errors import ReviewFetchError, ReviewParseError
from filmrecs.common.observability import REVIEW_FETCH_FAILURES
from filmrecs.common.schemas import FilmReviews, Review
from filmrecs.common.settings import settings

logger = logging.getLogger(__name__)

_response_adapter = TypeAdapter(list[Any])


class ReviewFetcher:
    """Client for the third-party review service, one GET per film."""

    def __init__(self, client: httpx.AsyncClient, base_url: str = settings.reviews_api_url) -> None:
        self._client = client
        self._base_url = base_url

    async def get_reviews_for_film(self, film_id: int) -> list[Review]:
        try:
            response = await self._client.get(self._base_url, params={"films": film_id})
            response.raise_for_status()
        except httpx.HTTPError as exc:
            REVIEW_FETCH_FAILURES.labels("transport").inc()
            logger.warning("review_fetch_failed", extra={"film_id": film_id, "error": str(exc)})
            raise ReviewFetchError(f"Review lookup for film {film_id} failed: {exc}") from exc

        try:
            batches = _response_adapter.validate_json(response.content)
            first = FilmReviews.model_validate(batches[0]) if batches else None
        except ValidationError as exc:
            REVIEW_FETCH_FAILURES.labels("parse").inc()
            logger.warning("review_parse_failed", extra={"film_id": film_id, "error": str(exc)})
            raise ReviewParseError(f"Unexpected review payload for film {film_id}") from exc
        if first is None:
            REVIEW_FETCH_FAILURES.labels("parse").inc()
            raise ReviewParseError(f"Unexpected review payload for film {film_id}: empty response")
        return first.reviews
