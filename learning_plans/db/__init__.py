"""Declarative base and table mappings for the learning plans schema.

Engine and session handling live in :mod:`learning_plans.db.session`.
"""

from .base import Base, PersistentColumnsMixin

__all__ = ["Base", "PersistentColumnsMixin"]
