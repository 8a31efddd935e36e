from datetime import datetime, timezone

from sqlalchemy import Column, DateTime

from ..database import Base


def utcnow() -> datetime:
    # Naive UTC; SQLite drops tzinfo on round trip anyway.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BaseModel(Base):
    __abstract__ = True

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
