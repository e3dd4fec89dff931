"""Declarative base shared by every learning plans table."""

from __future__ import annotations

from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class PersistentColumnsMixin:
    """Framework-owned columns present on every table backing a persistent class."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timecreated: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    timemodified: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    usermodified: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


__all__ = ["Base", "PersistentColumnsMixin"]
