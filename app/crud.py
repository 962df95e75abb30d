# app/crud.py
"""Database access for listings, favourites and token sets.

Search queries arrive as predicate trees from `app.query`; `to_clause` and
`to_order_by` compile them into SQLAlchemy expressions over `Listing`.
"""
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Set

from sqlalchemy import and_, or_, func, update
from sqlalchemy.orm import Session

from .models import Favourite, Listing, TokenSet
from .query import And, Contains, Eq, IContains, Or, Predicate, SortDirection, SortDirective

def _column(field: str):
    if field not in Listing.__table__.columns:
        raise ValueError(f"Listing has no column {field!r}")
    return getattr(Listing, field)

def _db_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value

def _db_values(value: Any) -> Any:
    if isinstance(value, (list, tuple, set)):
        return [_db_value(v) for v in value]
    return _db_value(value)

def to_clause(predicate: Predicate):
    if isinstance(predicate, And):
        return and_(*(to_clause(term) for term in predicate.terms))
    if isinstance(predicate, Or):
        return or_(*(to_clause(term) for term in predicate.terms))
    if isinstance(predicate, Eq):
        column = _column(predicate.field)
        if predicate.value is None:
            return column.is_(None)
        return column == _db_value(predicate.value)
    if isinstance(predicate, Contains):
        return _column(predicate.field).contains([_db_value(predicate.value)])
    if isinstance(predicate, IContains):
        # autoescape makes % and _ in the search term match literally
        return _column(predicate.field).icontains(predicate.text, autoescape=True)
    raise TypeError(f"Unsupported predicate {predicate!r}")

def to_order_by(sort: SortDirective):
    column = _column(sort.field)
    if sort.direction is SortDirection.ASC:
        return column.asc(), Listing.id.asc()
    return column.desc(), Listing.id.desc()

def list_listings(db: Session, predicate: Predicate, sort: SortDirective, skip: int = 0, limit: int = 50):
    q = db.query(Listing).filter(to_clause(predicate))
    total = q.count()
    items = q.order_by(*to_order_by(sort)).offset(skip).limit(limit).all()
    return {"total": total, "items": items}

def get_listing(db: Session, listing_id: int):
    return (
        db.query(Listing)
        .filter(Listing.id == listing_id, Listing.deleted_at.is_(None))
        .first()
    )

def get_listing_by_author(db: Session, author_id: str):
    return (
        db.query(Listing)
        .filter(Listing.author_id == author_id, Listing.deleted_at.is_(None))
        .first()
    )

def create_listing(db: Session, data: Dict[str, Any]):
    obj = Listing(**{k: _db_values(v) for k, v in data.items()})
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj

def update_listing(db: Session, obj: Listing, updates: Dict[str, Any]):
    for k, v in updates.items():
        setattr(obj, k, _db_values(v))
    db.commit()
    db.refresh(obj)
    return obj

def soft_delete_listing(db: Session, obj: Listing):
    obj.deleted_at = func.now()
    db.commit()
    return True

def report_listing(db: Session, listing_id: int):
    """Bump report_count in a single UPDATE so concurrent reports all count."""
    result = db.execute(
        update(Listing)
        .where(Listing.id == listing_id, Listing.deleted_at.is_(None))
        .values(report_count=Listing.report_count + 1)
    )
    db.commit()
    if result.rowcount == 0:
        return None
    return get_listing(db, listing_id)

def get_favourite_ids(db: Session, user_id: str) -> Set[int]:
    rows = db.query(Favourite.listing_id).filter(Favourite.user_id == user_id).all()
    return {row.listing_id for row in rows}

def add_favourite(db: Session, user_id: str, listing_id: int):
    exists = (
        db.query(Favourite)
        .filter(Favourite.user_id == user_id, Favourite.listing_id == listing_id)
        .first()
    )
    if exists:
        return exists
    fav = Favourite(user_id=user_id, listing_id=listing_id)
    db.add(fav)
    db.commit()
    return fav

def remove_favourite(db: Session, user_id: str, listing_id: int):
    deleted = (
        db.query(Favourite)
        .filter(Favourite.user_id == user_id, Favourite.listing_id == listing_id)
        .delete()
    )
    db.commit()
    return deleted > 0

def get_token_set(db: Session, token: str) -> Optional[TokenSet]:
    return db.query(TokenSet).filter(TokenSet.token == token).first()

def ids_predicate(listing_ids: Iterable[int]) -> Predicate:
    return Or(tuple(Eq("id", listing_id) for listing_id in sorted(listing_ids)))
