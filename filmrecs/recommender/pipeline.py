from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Sequence

from filmrecs.common.schemas import Film, Review
from filmrecs.recommender.catalog import CatalogReader, EraWindow, era_window
from filmrecs.recommender.reviews import ReviewFetcher

logger = logging.getLogger(__name__)

ERA_RADIUS_YEARS = 15
MIN_NUM_REVIEWS = 5
MIN_REVIEW_AVERAGE = 4.0


@dataclass(frozen=True)
class CandidateSet:
    anchor: Film
    window: EraWindow
    films: tuple[Film, ...]


@dataclass(frozen=True)
class ReviewVerdict:
    film: Film
    review_count: int
    average_rating: float | None

    @property
    def passed(self) -> bool:
        if self.review_count < MIN_NUM_REVIEWS or self.average_rating is None:
            return False
        return self.average_rating >= MIN_REVIEW_AVERAGE


def review_verdict(film: Film, reviews: Sequence[Review]) -> ReviewVerdict:
    average = sum(review.rating for review in reviews) / len(reviews) if reviews else None
    return ReviewVerdict(film=film, review_count=len(reviews), average_rating=average)


class RecommendationPipeline:
    """Anchor lookup, then genre/era candidates, then review-quality filtering.

    Each stage either returns its typed result or raises a
    :class:`~filmrecs.common.errors.RecommendationError`, which ends the run.
    Catalog queries are blocking and run in a worker thread; review lookups
    for all candidates are issued concurrently and awaited together.
    """

    def __init__(self, catalog: CatalogReader, reviews: ReviewFetcher) -> None:
        self._catalog = catalog
        self._reviews = reviews

    async def resolve_anchor(self, film_id: int) -> Film:
        return await asyncio.to_thread(self._catalog.get_film_by_id, film_id)

    async def select_candidates(self, anchor: Film) -> CandidateSet:
        films = await asyncio.to_thread(
            self._catalog.get_films_by_genre_and_era,
            anchor.genre_id,
            anchor.release_date,
            ERA_RADIUS_YEARS,
        )
        return CandidateSet(
            anchor=anchor,
            window=era_window(anchor.release_date, ERA_RADIUS_YEARS),
            films=tuple(films),
        )

    async def judge(self, film: Film) -> ReviewVerdict:
        reviews = await self._reviews.get_reviews_for_film(film.id)
        return review_verdict(film, reviews)

    async def filter_by_reviews(self, candidates: CandidateSet) -> list[Film]:
        outcomes = await asyncio.gather(
            *(self.judge(film) for film in candidates.films),
            return_exceptions=True,
        )
        # Every lookup has finished here; one failed film fails the whole request.
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return [verdict.film for verdict in outcomes if verdict.passed]

    async def recommend(self, film_id: int) -> list[Film]:
        anchor = await self.resolve_anchor(film_id)
        logger.info("anchor_resolved", extra={"film_id": anchor.id, "genre_id": anchor.genre_id})

        candidates = await self.select_candidates(anchor)
        logger.info("candidates_selected", extra={"film_id": anchor.id, "candidate_count": len(candidates.films)})

        films = await self.filter_by_reviews(candidates)
        logger.info("recommendations_filtered", extra={"film_id": anchor.id, "result_count": len(films)})
        return films
