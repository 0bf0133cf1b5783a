"""SQLAlchemy declarative Base shared by the ORM models and Alembic."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all ORM models (metadata used by create_all and migrations)."""

    pass
