from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Callable, Generator
from datetime import date

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from filmrecs.api.dependencies import get_review_client
from filmrecs.api.main import app
from filmrecs.common.db.base import Base
from filmrecs.common.db.models import Film
from filmrecs.common.db.session import get_db
from filmrecs.common.schemas import Film as FilmSchema
from filmrecs.recommender.catalog import CatalogReader
from filmrecs.recommender.pipeline import RecommendationPipeline
from filmrecs.recommender.reviews import ReviewFetcher

REVIEWS_URL = "http://reviews.test/api"


class FakeReviewService:
    """In-process stand-in for the third-party review API."""

    def __init__(self) -> None:
        self.ratings: dict[int, list[float]] = {}
        self.responses: dict[int, httpx.Response] = {}
        self.unreachable: set[int] = set()
        self.requested: list[int] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        film_id = int(request.url.params["films"])
        self.requested.append(film_id)
        if film_id in self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if film_id in self.responses:
            return self.responses[film_id]
        reviews = [
            {"id": index, "film_id": film_id, "rating": rating}
            for index, rating in enumerate(self.ratings.get(film_id, []), start=1)
        ]
        return httpx.Response(200, json=[{"film_id": film_id, "reviews": reviews}])

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture()
def session_local(tmp_path) -> sessionmaker:
    db_file = tmp_path / "catalog.db"
    engine = create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
        future=True,
    )
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    Base.metadata.create_all(engine)

    with SessionLocal() as db:
        _seed_data(db)

    yield SessionLocal

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_local: sessionmaker) -> Generator[Session, None, None]:
    db = session_local()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def review_service() -> FakeReviewService:
    return FakeReviewService()


@pytest.fixture()
def run_pipeline(
    db_session: Session,
    review_service: FakeReviewService,
) -> Callable[[int], list[FilmSchema]]:
    def run(film_id: int) -> list[FilmSchema]:
        async def recommend() -> list[FilmSchema]:
            async with review_service.client() as client:
                pipeline = RecommendationPipeline(
                    catalog=CatalogReader(db_session),
                    reviews=ReviewFetcher(client, base_url=REVIEWS_URL),
                )
                return await pipeline.recommend(film_id)

        return asyncio.run(recommend())

    return run


@pytest.fixture()
def client(session_local: sessionmaker, review_service: FakeReviewService) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        db = session_local()
        try:
            yield db
        finally:
            db.close()

    async def override_review_client() -> AsyncGenerator[httpx.AsyncClient, None]:
        async with review_service.client() as review_client:
            yield review_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_review_client] = override_review_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _seed_data(db: Session) -> None:
    # Film 1 is the usual anchor: genre 2, window 1985-01-01..2015-01-01.
    films = [
        Film(id=1, title="Anchor", release_date=date(2000, 1, 1), genre_id=2, runtime=120),
        Film(id=2, title="Five Years Later", release_date=date(2005, 6, 15), genre_id=2),
        Film(id=3, title="Far Future", release_date=date(2040, 1, 1), genre_id=2),
        Film(id=4, title="Lower Edge", release_date=date(1985, 1, 1), genre_id=2),
        Film(id=5, title="Other Genre", release_date=date(2001, 3, 3), genre_id=3),
        Film(id=6, title="Upper Edge", release_date=date(2015, 1, 1), genre_id=2, original_language="en"),
        Film(id=7, title="Just Too Early", release_date=date(1984, 12, 31), genre_id=2),
        Film(id=8, title="Loner", release_date=date(1950, 5, 5), genre_id=9),
    ]
    db.add_all(films)
    db.commit()
