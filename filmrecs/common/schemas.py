from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict


class HealthResponse(BaseModel):
    status: str = "ok"
    service: str
    details: dict[str, str] | None = None


class ErrorResponse(BaseModel):
    message: str


class Film(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    genre_id: int
    release_date: date
    title: Optional[str] = None
    tagline: Optional[str] = None
    revenue: Optional[int] = None
    budget: Optional[int] = None
    runtime: Optional[int] = None
    original_language: Optional[str] = None
    status: Optional[str] = None


class Review(BaseModel):
    model_config = ConfigDict(extra="allow")

    rating: float


class FilmReviews(BaseModel):
    """First element of the review service's response array."""

    model_config = ConfigDict(extra="allow")

    reviews: list[Review]
