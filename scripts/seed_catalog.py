from __future__ import annotations

import argparse
import sys
from pathlib import Path

import pandas as pd
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from filmrecs.common.db.base import Base
from filmrecs.common.db.models import Film

OPTIONAL_COLUMNS = ("title", "tagline", "revenue", "budget", "runtime", "original_language", "status")


def _optional(value):
    if pd.isna(value):
        return None
    return value.item() if hasattr(value, "item") else value


def _prepare_films(films_df: pd.DataFrame) -> list[Film]:
    missing = {"id", "genre_id", "release_date"} - set(films_df.columns)
    if missing:
        raise ValueError(f"films CSV is missing columns: {', '.join(sorted(missing))}")

    films_df = films_df.dropna(subset=["id", "genre_id", "release_date"]).copy()
    films_df["release_date"] = pd.to_datetime(films_df["release_date"], errors="coerce").dt.date
    films_df = films_df.dropna(subset=["release_date"])

    rows: list[Film] = []
    for _, row in films_df.iterrows():
        extras = {column: _optional(row[column]) for column in OPTIONAL_COLUMNS if column in films_df.columns}
        rows.append(
            Film(
                id=int(row["id"]),
                genre_id=int(row["genre_id"]),
                release_date=row["release_date"],
                **extras,
            )
        )
    return rows


def main() -> None:
    parser = argparse.ArgumentParser(description="Build a local SQLite film catalog from a CSV export")
    parser.add_argument("csv_path", type=Path)
    parser.add_argument("--db-path", type=Path, default=Path("db/database.db"))
    parser.add_argument("--replace", action="store_true", help="drop existing films before loading")
    args = parser.parse_args()

    films = _prepare_films(pd.read_csv(args.csv_path))

    args.db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{args.db_path}")
    if args.replace:
        Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)

    with Session(engine) as db:
        for film in films:
            db.merge(film)
        db.commit()
        total = db.scalar(select(func.count(Film.id)))

    engine.dispose()
    print(f"Loaded {len(films)} films into {args.db_path} ({total} total)")


if __name__ == "__main__":
    main()
