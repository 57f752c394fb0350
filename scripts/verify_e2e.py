from __future__ import annotations

import argparse

import requests


def fail(msg: str) -> None:
    raise SystemExit(f"E2E failed: {msg}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Check a running film recommendation service end to end")
    parser.add_argument("--base-url", default="http://localhost:3000")
    parser.add_argument("--film-id", type=int, default=1)
    parser.add_argument("--missing-film-id", type=int, default=999999)
    args = parser.parse_args()

    base = args.base_url.rstrip("/")

    health = requests.get(f"{base}/health", timeout=10)
    if health.status_code != 200:
        fail(f"health status {health.status_code}: {health.text}")

    resp = requests.get(f"{base}/films/{args.film_id}/recommendations", timeout=60)
    if resp.status_code != 200:
        fail(f"recommendations status {resp.status_code}: {resp.text}")
    films = resp.json()
    if not isinstance(films, list):
        fail("recommendations body is not a list")
    ids = [film["id"] for film in films]
    if ids != sorted(ids, reverse=True):
        fail(f"recommendations not ordered by descending id: {ids}")
    print(f"film {args.film_id}: ok ({len(films)} recommendations)")

    missing = requests.get(f"{base}/films/{args.missing_film_id}/recommendations", timeout=15)
    if missing.status_code != 422 or "message" not in missing.json():
        fail(f"missing film returned {missing.status_code}: {missing.text}")

    invalid = requests.get(f"{base}/not/a/route", timeout=10)
    if invalid.status_code != 404 or invalid.json() != {"message": "Invalid Route"}:
        fail(f"invalid route returned {invalid.status_code}: {invalid.text}")

    print("E2E passed")


if __name__ == "__main__":
    main()
