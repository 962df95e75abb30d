# app/api/deps.py
from typing import Optional
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from .. import crud
from ..db import get_db
from ..models import TokenSet


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_optional_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Optional[TokenSet]:
    """Token set of the caller, or None for anonymous requests.

    Tokens are issued elsewhere; this only looks them up.
    """
    token = _bearer_token(authorization)
    if token is None:
        return None
    return crud.get_token_set(db, token)


def get_current_user(user: Optional[TokenSet] = Depends(get_optional_user)) -> TokenSet:
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized: missing or unknown token")
    return user
