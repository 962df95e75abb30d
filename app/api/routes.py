# app/api/routes.py
import os
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session
from typing import Iterable, List, Optional
from .. import crud, schemas, services
from ..db import get_db
from ..models import TokenSet
from ..query import And, InvalidParameterError, build_filter, build_sort
from ..utils import logger
from .deps import get_current_user, get_optional_user

DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", 50))

router = APIRouter()

def _search(request: Request):
    params = request.query_params
    try:
        return build_filter(params), build_sort(params)
    except InvalidParameterError as e:
        logger.info("Rejected search parameter %s: %s", e.param, e)
        raise HTTPException(status_code=400, detail=str(e))

def _out(items: Iterable, favourite_ids=frozenset()) -> List[schemas.ListingOut]:
    res = []
    for obj in items:
        out = schemas.ListingOut.model_validate(obj)
        out.is_favourite = obj.id in favourite_ids
        res.append(out)
    return res

def _require_listing(obj):
    if not obj:
        raise HTTPException(status_code=404, detail="Listing not found")
    return obj

@router.get("/health")
def health():
    return {"status": "ok"}

@router.get("/listings", response_model=List[schemas.ListingOut])
def listings(
    request: Request,
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    user: Optional[TokenSet] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    predicate, sort = _search(request)
    res = crud.list_listings(db, predicate, sort, skip=skip, limit=limit)
    favourite_ids = crud.get_favourite_ids(db, user.user_id) if user else frozenset()
    return _out(res["items"], favourite_ids)


@router.get("/listings/favourites", response_model=List[schemas.ListingOut])
def favourites(
    request: Request,
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    user: TokenSet = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    predicate, sort = _search(request)
    favourite_ids = crud.get_favourite_ids(db, user.user_id)
    if not favourite_ids:
        return []
    predicate = And((crud.ids_predicate(favourite_ids), predicate))
    res = crud.list_listings(db, predicate, sort, skip=skip, limit=limit)
    return _out(res["items"], favourite_ids)


@router.post("/listings/favourites/{listing_id}")
def add_favourite(listing_id: int, user: TokenSet = Depends(get_current_user), db: Session = Depends(get_db)):
    _require_listing(crud.get_listing(db, listing_id))
    crud.add_favourite(db, user.user_id, listing_id)
    return {"status": "added"}


@router.delete("/listings/favourites/{listing_id}")
def remove_favourite(listing_id: int, user: TokenSet = Depends(get_current_user), db: Session = Depends(get_db)):
    if not crud.remove_favourite(db, user.user_id, listing_id):
        raise HTTPException(status_code=404, detail="Favourite not found")
    return {"status": "removed"}


@router.get("/listings/mine", response_model=schemas.ListingOut)
def get_my_listing(user: TokenSet = Depends(get_current_user), db: Session = Depends(get_db)):
    return _require_listing(crud.get_listing_by_author(db, user.user_id))


@router.put("/listings/mine", response_model=schemas.ListingOut)
def update_my_listing(
    payload: schemas.ListingUpdate,
    user: TokenSet = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    obj = _require_listing(crud.get_listing_by_author(db, user.user_id))
    return services.update_listing_for_user(db, obj, payload)


@router.delete("/listings/mine")
def delete_my_listing(user: TokenSet = Depends(get_current_user), db: Session = Depends(get_db)):
    obj = _require_listing(crud.get_listing_by_author(db, user.user_id))
    services.delete_listing_for_user(db, obj)
    return {"status": "deleted"}


@router.post("/listings/report", response_model=schemas.ListingOut)
def report_listing(
    payload: schemas.ReportRequest,
    user: TokenSet = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _require_listing(services.report(db, payload.id))


@router.post("/listings", response_model=schemas.ListingOut)
def create_listing(
    payload: schemas.ListingCreate,
    user: TokenSet = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        return services.create_listing_for_user(db, user, payload)
    except services.DuplicateListingError:
        raise HTTPException(status_code=400, detail="Cannot have duplicate listings")


@router.get("/listings/{listing_id}", response_model=schemas.ListingOut)
def get_listing(listing_id: int, db: Session = Depends(get_db)):
    return _require_listing(crud.get_listing(db, listing_id))
