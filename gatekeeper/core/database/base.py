"""
Declarative base for the role store tables.

Every row is keyed by a 26-character ULID string, so ids sort by creation
time and can be generated before insert.
"""
from datetime import datetime
from sqlalchemy import Column, DateTime, ForeignKey, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from ulid import ULID


ULID_LENGTH = 26


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ULID())


def ulid_reference(name: str, target: str, ondelete: str = "CASCADE", **kwargs) -> Column:
    """Association-table column referencing a ULID-keyed row, e.g. `users.id`."""
    return Column(name, String(ULID_LENGTH), ForeignKey(target, ondelete=ondelete), **kwargs)


class Base(DeclarativeBase):
    pass


class RecordMixin:
    """
    ULID primary key plus creation and update timestamps.

    Usage:
        class Role(Base, RecordMixin):
            __tablename__ = "roles"
            name: Mapped[str] = mapped_column(String(50))
    """
    id: Mapped[str] = mapped_column(String(ULID_LENGTH), primary_key=True, default=generate_ulid)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
