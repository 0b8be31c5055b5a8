"""
DevCamper API: Database Seeder
===============================

What:  Loads fixture JSON into the database, or wipes every table.

Usage:
    python -m devcamper.seeder --import ./_data
    python -m devcamper.seeder --destroy

Fixture directory:
    users.json, bootcamps.json, courses.json, reviews.json
    Each file is a JSON array of records in the API's camelCase shape plus
    `_id` (and `user` / `bootcamp` references to other records' `_id`).
    Missing files are skipped.

Identifiers:
    `_id` values that are already UUIDs are kept; anything else (e.g. a
    24-hex document id) is mapped to a stable uuid5, so references between
    the files stay consistent across runs.

Bootcamps carrying `location.coordinates` are stored as-is; the others are
geocoded from their address. Aggregates are recomputed once at the end.
"""

import argparse
import asyncio
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import async_session_factory, create_all, dispose_engine
from devcamper.models import Bootcamp, Course, Review, User
from devcamper.schemas.bootcamp import BootcampCreate
from devcamper.schemas.course import CourseCreate
from devcamper.schemas.review import ReviewCreate
from devcamper.schemas.user import UserCreate
from devcamper.security import hash_password
from devcamper.services.aggregate_service import aggregate_service
from devcamper.services.geocoder_service import GeoLocation, geocoder_service
from devcamper.services.user_service import normalize_email
from devcamper.utils import slugify

logger = logging.getLogger("devcamper.seeder")

_ID_NAMESPACE = uuid.UUID("6f1c1b1e-3c52-4d7a-9a0e-7d3f0c2b9a41")


def record_id(raw: Optional[Any]) -> uuid.UUID:
    if raw is None:
        return uuid.uuid4()
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        return uuid.uuid5(_ID_NAMESPACE, str(raw))


def optional_id(raw: Optional[Any]) -> Optional[uuid.UUID]:
    return record_id(raw) if raw is not None else None


def load_fixture(data_dir: Path, name: str) -> List[Dict[str, Any]]:
    path = data_dir / name
    if not path.exists():
        logger.warning("Fixture %s not found, skipping", path)
        return []
    with path.open(encoding="utf-8") as f:
        records = json.load(f)
    if not isinstance(records, list):
        raise ValueError(f"{path} must contain a JSON array")
    return records


def _stored_location(record: Dict[str, Any]) -> Optional[GeoLocation]:
    location = record.get("location") or {}
    coordinates = location.get("coordinates")
    if not coordinates or len(coordinates) != 2:
        return None
    return GeoLocation(
        latitude=float(coordinates[1]),
        longitude=float(coordinates[0]),
        formatted_address=location.get("formattedAddress") or record.get("address", ""),
        street=location.get("street"),
        city=location.get("city"),
        state=location.get("state"),
        zipcode=location.get("zipcode"),
        country=location.get("country"),
    )


async def _import_users(db: AsyncSession, records: List[Dict[str, Any]]) -> None:
    for record in records:
        payload = UserCreate.model_validate(record)
        db.add(
            User(
                id=record_id(record.get("_id")),
                name=payload.name,
                email=normalize_email(payload.email),
                password=hash_password(payload.password),
                role=payload.role,
            )
        )
    await db.flush()


async def _import_bootcamps(db: AsyncSession, records: List[Dict[str, Any]]) -> None:
    for record in records:
        payload = BootcampCreate.model_validate(record)
        location = _stored_location(record) or await geocoder_service.geocode(payload.address)
        db.add(
            Bootcamp(
                id=record_id(record.get("_id")),
                **payload.model_dump(mode="json"),
                slug=slugify(payload.name),
                user_id=optional_id(record.get("user")),
                latitude=location.latitude,
                longitude=location.longitude,
                formatted_address=location.formatted_address,
                street=location.street,
                city=location.city,
                state=location.state,
                zipcode=location.zipcode,
                country=location.country,
            )
        )
    await db.flush()


async def _import_children(db: AsyncSession, model, schema, records: List[Dict[str, Any]]) -> None:
    for record in records:
        payload = schema.model_validate(record)
        db.add(
            model(
                id=record_id(record.get("_id")),
                **payload.model_dump(),
                bootcamp_id=record_id(record["bootcamp"]),
                user_id=optional_id(record.get("user")),
            )
        )
    await db.flush()


async def import_data(data_dir: Path) -> Dict[str, int]:
    """Load every fixture in one transaction. Returns counts per table."""
    await create_all()
    users = load_fixture(data_dir, "users.json")
    bootcamps = load_fixture(data_dir, "bootcamps.json")
    courses = load_fixture(data_dir, "courses.json")
    reviews = load_fixture(data_dir, "reviews.json")

    async with async_session_factory() as db:
        async with db.begin():
            await _import_users(db, users)
            await _import_bootcamps(db, bootcamps)
            await _import_children(db, Course, CourseCreate, courses)
            await _import_children(db, Review, ReviewCreate, reviews)

            touched = {record_id(r["bootcamp"]) for r in courses + reviews}
            for bootcamp_id in touched:
                await aggregate_service.update_average_cost(db, bootcamp_id)
                await aggregate_service.update_average_rating(db, bootcamp_id)

    counts = {
        "users": len(users),
        "bootcamps": len(bootcamps),
        "courses": len(courses),
        "reviews": len(reviews),
    }
    logger.info("Data imported: %s", counts)
    return counts


async def destroy_data() -> Dict[str, int]:
    """Delete all rows, children first. Returns deleted row counts."""
    await create_all()
    counts: Dict[str, int] = {}
    async with async_session_factory() as db:
        async with db.begin():
            for name, model in (
                ("reviews", Review),
                ("courses", Course),
                ("bootcamps", Bootcamp),
                ("users", User),
            ):
                result = await db.execute(delete(model))
                counts[name] = result.rowcount
    logger.info("Data destroyed: %s", counts)
    return counts


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m devcamper.seeder",
        description="Seed or wipe the DevCamper database.",
    )
    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument(
        "-i", "--import", dest="data_dir", type=Path, metavar="DIR",
        help="import users/bootcamps/courses/reviews JSON fixtures from DIR",
    )
    action.add_argument(
        "-d", "--destroy", action="store_true", help="delete all data",
    )
    return parser


async def _run(args: argparse.Namespace) -> None:
    try:
        if args.destroy:
            await destroy_data()
        else:
            await import_data(args.data_dir)
    finally:
        await dispose_engine()


def main(argv: Optional[Sequence[str]] = None) -> int:
    from devcamper.main import setup_logging

    args = build_parser().parse_args(argv)
    setup_logging()
    try:
        asyncio.run(_run(args))
    except (ValueError, OSError) as e:
        logger.error("Seeding failed: %s", str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
