"""SQLAlchemy ORM models."""

from authcore.models.account import Account
from authcore.models.base import Base

__all__ = ["Account", "Base"]
