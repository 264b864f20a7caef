"""SQLAlchemy ORM models for the house-hunt agent.

All models use SQLite-compatible types:
- String(36) for UUID primary keys
- JSON for structured data (no JSONB)
- DateTime for naive UTC timestamps (no TIMESTAMPTZ)
"""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from house_hunt.infra.database import Base


class Buyer(Base):
    """A home buyer, identified by phone number."""

    __tablename__ = "buyers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    phone = Column(String(50), unique=True, nullable=False, index=True)
    phone_verified = Column(Boolean, nullable=False, default=False)
    verified_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now())

    # Relationships
    saved_searches = relationship("SavedSearch", back_populates="buyer")


class OtpCode(Base):
    """One issued phone-verification challenge."""

    __tablename__ = "otp_codes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    phone = Column(String(50), nullable=False, index=True)
    code = Column(String(6), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now())


class SavedSearch(Base):
    """The buyer's structured search criteria.

    One logical record per buyer; readers always take the earliest-created
    row. ``version`` is bumped on every UPDATE and checked by the ORM, so a
    concurrent writer that flushes second gets a StaleDataError.
    """

    __tablename__ = "saved_searches"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    buyer_id = Column(String(36), ForeignKey("buyers.id"), nullable=False, index=True)
    criteria = Column(JSON, nullable=False, default=dict)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    buyer = relationship("Buyer", back_populates="saved_searches")
