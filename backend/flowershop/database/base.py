"""
SQLAlchemy declarative base and common model mixins.

This module provides the SQLAlchemy DeclarativeBase shared by every storefront
table, an integer surrogate key mixin and server-managed timestamps.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, MetaData, func
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

# Deterministic constraint names so Alembic and the PL/pgSQL procedures agree
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(AsyncAttrs, DeclarativeBase):
    """
    Base class for all SQLAlchemy models with async support.

    Provides async attribute loading and a readable repr.
    """

    __abstract__ = True

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    def __repr__(self) -> str:
        pk_values = []
        for column in self.__table__.primary_key.columns:
            value = getattr(self, column.name, None)
            if value is not None:
                pk_values.append(f"{column.name}={value!r}")

        pk_str = ", ".join(pk_values) if pk_values else "no primary key"
        return f"<{self.__class__.__name__}({pk_str})>"


class IntegerIdMixin:
    """Mixin for an auto-incrementing integer primary key."""

    @declared_attr
    def id(cls) -> Mapped[int]:
        return mapped_column(
            Integer,
            primary_key=True,
            autoincrement=True,
            comment="Surrogate identifier",
        )


class TimestampMixin:
    """
    Mixin for automatic timestamp management.

    Adds created_at and updated_at columns that are managed by the
    database through server-side defaults.
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
            comment="Timestamp when record was created",
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
            onupdate=func.now(),
            comment="Timestamp when record was last updated",
        )


class BaseModel(Base, IntegerIdMixin, TimestampMixin):
    """
    Base model with integer primary key and timestamps.

    Example:
        class Shop(BaseModel):
            __tablename__ = "shops"

            name: Mapped[str] = mapped_column(String(100))
    """

    __abstract__ = True


class ReferenceModel(Base, IntegerIdMixin):
    """Base for small lookup tables that carry no timestamps."""

    __abstract__ = True
