from collections.abc import AsyncGenerator

import httpx
from fastapi import Depends
from sqlalchemy.orm import Session

from filmrecs.common.db.session import get_db
from filmrecs.common.settings import settings
from filmrecs.recommender.catalog import CatalogReader
from filmrecs.recommender.pipeline import RecommendationPipeline
from filmrecs.recommender.reviews import ReviewFetcher


async def get_review_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(follow_redirects=True) as client:
        yield client


def get_catalog_reader(db: Session = Depends(get_db)) -> CatalogReader:
    return CatalogReader(db)


def get_review_fetcher(client: httpx.AsyncClient = Depends(get_review_client)) -> ReviewFetcher:
    return ReviewFetcher(client, base_url=settings.reviews_api_url)


def get_pipeline(
    catalog: CatalogReader = Depends(get_catalog_reader),
    reviews: ReviewFetcher = Depends(get_review_fetcher),
) -> RecommendationPipeline:
    return RecommendationPipeline(catalog=catalog, reviews=reviews)
