# app/models.py
"""SQLAlchemy ORM models for persisted entities.

`Listing` is the "looking for teammates" post. Set-valued attributes are
PostgreSQL arrays; enum values are stored by name.
"""
from sqlalchemy import Column, ForeignKey, Integer, Text, TIMESTAMP, func, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import ARRAY
from .db import Base

class Listing(Base):
    __tablename__ = "listings"
    id = Column(Integer, primary_key=True, index=True)
    author = Column(Text, nullable=False)
    author_id = Column(Text, nullable=False, index=True)
    title = Column(Text)
    description = Column(Text, nullable=False, default="")
    skills_possessed = Column(ARRAY(Text), nullable=False, default=list)
    skills_sought = Column(ARRAY(Text), nullable=False, default=list)
    preferred_tools = Column(ARRAY(Text), nullable=False, default=list)
    availability = Column(Text)
    languages = Column(ARRAY(Text), nullable=False, default=list)
    timezone_offsets = Column(ARRAY(Integer), nullable=False, default=list)
    size = Column(Integer, nullable=False, default=1)
    report_count = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(TIMESTAMP(timezone=True), nullable=True)


class Favourite(Base):
    __tablename__ = "favourites"
    id = Column(Integer, primary_key=True)
    user_id = Column(Text, nullable=False, index=True)
    listing_id = Column(Integer, ForeignKey("listings.id"), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "listing_id", name="uq_favourites_user_listing"),
    )


class TokenSet(Base):
    """Bearer token issued elsewhere, mapped to the user it belongs to."""
    __tablename__ = "token_sets"
    id = Column(Integer, primary_key=True)
    token = Column(Text, nullable=False, unique=True, index=True)
    user_id = Column(Text, nullable=False)
    username = Column(Text, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

# one active listing per author; soft-deleted rows don't count
Index(
    "uq_listings_active_author",
    Listing.author_id,
    unique=True,
    postgresql_where=Listing.deleted_at.is_(None),
)
Index("idx_listings_created_at", Listing.created_at)
