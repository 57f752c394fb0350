from __future__ import annotations

from dataclasses import dataclass
from datetime import MAXYEAR, MINYEAR, date

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from filmrecs.common.db.models import Film as FilmRow
from filmrecs.common.errors import CatalogStoreError, FilmNotFoundError
from filmrecs.common.schemas import Film


@dataclass(frozen=True)
class EraWindow:
    start: date
    end: date

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end


def shift_years(day: date, years: int) -> date:
    year = day.year + years
    if year < MINYEAR:
        return date.min
    if year > MAXYEAR:
        return date.max
    try:
        return day.replace(year=year)
    except ValueError:
        # Feb 29 -> Mar 1, same as SQLite's '+N years' modifier.
        return date(year, 3, 1)


def era_window(center: date, years_radius: int) -> EraWindow:
    return EraWindow(start=shift_years(center, -years_radius), end=shift_years(center, years_radius))


# SQLite INTEGER is a signed 64-bit value.
SQLITE_MIN_INTEGER = -(2**63)
SQLITE_MAX_INTEGER = 2**63 - 1


def _store_error(exc: Exception) -> CatalogStoreError:
    return CatalogStoreError(str(getattr(exc, "orig", None) or exc))


class CatalogReader:
    """Read-only queries over the ``films`` table through an injected session."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def get_film_by_id(self, film_id: int) -> Film:
        if not SQLITE_MIN_INTEGER <= film_id <= SQLITE_MAX_INTEGER:
            raise FilmNotFoundError(f"{film_id} key missing")
        try:
            row = self._db.get(FilmRow, film_id)
            film = Film.model_validate(row) if row is not None else None
        except (SQLAlchemyError, ValueError, OverflowError) as exc:
            raise _store_error(exc) from exc
        if film is None:
            raise FilmNotFoundError(f"{film_id} key missing")
        return film

    def get_films_by_genre_and_era(self, genre_id: int, center_date: date, years_radius: int) -> list[Film]:
        """Films of ``genre_id`` released within ``years_radius`` years of ``center_date``.

        Bounds are inclusive and rows come back by descending id. An empty
        match is reported as :class:`FilmNotFoundError` rather than ``[]``.
        """
        window = era_window(center_date, years_radius)
        stmt = (
            select(FilmRow)
            .where(FilmRow.genre_id == genre_id)
            .where(FilmRow.release_date.between(window.start, window.end))
            .order_by(FilmRow.id.desc())
        )
        try:
            films = [Film.model_validate(row) for row in self._db.scalars(stmt).all()]
        except (SQLAlchemyError, ValueError, OverflowError) as exc:
            raise _store_error(exc) from exc
        if not films:
            raise FilmNotFoundError(
                f"Zero rows for genre {genre_id} released between {window.start} and {window.end}"
            )
        return films
