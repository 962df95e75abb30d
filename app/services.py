# app/services.py
"""Listing business rules sitting between the routes and `crud`."""
from typing import Dict, Iterable, List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import crud, schemas
from .models import Listing, TokenSet
from .query import MAX_TIMEZONE, MIN_TIMEZONE
from .utils import logger

MAX_TEAM_SIZE = 20


class DuplicateListingError(Exception):
    """The author already has an active listing."""


def normalize_timezones(offsets: Iterable[int]) -> List[int]:
    return sorted({tz for tz in offsets if MIN_TIMEZONE <= tz <= MAX_TIMEZONE})


def cap_team_size(size: int) -> int:
    return min(size, MAX_TEAM_SIZE)


def _normalize(fields: Dict) -> Dict:
    if fields.get("timezone_offsets") is not None:
        fields["timezone_offsets"] = normalize_timezones(fields["timezone_offsets"])
    if fields.get("size") is not None:
        fields["size"] = cap_team_size(fields["size"])
    return fields


def create_listing_for_user(db: Session, user: TokenSet, payload: schemas.ListingCreate) -> Listing:
    if crud.get_listing_by_author(db, user.user_id) is not None:
        raise DuplicateListingError(f"User {user.user_id} already has an active listing")
    fields = _normalize(payload.model_dump())
    fields["author_id"] = user.user_id
    try:
        obj = crud.create_listing(db, fields)
    except IntegrityError as e:
        # lost a race with a concurrent create for the same author
        db.rollback()
        raise DuplicateListingError(f"User {user.user_id} already has an active listing") from e
    logger.info("Created listing %s for %s", obj.id, user.user_id)
    return obj


def update_listing_for_user(db: Session, listing: Listing, payload: schemas.ListingUpdate) -> Listing:
    """Apply only the fields present in the payload; the rest keep their value."""
    updates = _normalize(payload.model_dump(exclude_unset=True, exclude_none=True))
    return crud.update_listing(db, listing, updates)


def delete_listing_for_user(db: Session, listing: Listing) -> None:
    crud.soft_delete_listing(db, listing)
    logger.info("Soft-deleted listing %s", listing.id)


def report(db: Session, listing_id: int):
    obj = crud.report_listing(db, listing_id)
    if obj is not None:
        logger.info("Listing %s reported (count=%s)", listing_id, obj.report_count)
    return obj
