"""ORM model for registered accounts."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, String, func

from authcore.models.base import Base

ROLES = ("user", "admin")
DEFAULT_ROLE = "user"

# Names are stored HTML-escaped; one input char expands to at most 6 ("&quot;").
NAME_STORED_MAX_LEN = 255 * 6


def new_account_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(UTC)


class Account(Base):
    """
    Identity record created by registration.

    email is the unique key (stored lower-cased); password_hash is a bcrypt
    hash and never leaves the service. role: 'user' or 'admin'.
    """

    __tablename__ = "accounts"

    id = Column(String(32), primary_key=True, default=new_account_id)
    email = Column(String(254), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(NAME_STORED_MAX_LEN), nullable=False)
    role = Column(String(32), nullable=False, default=DEFAULT_ROLE)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
