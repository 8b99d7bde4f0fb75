#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixins for the User Auth API.

- UUID primary key (String(36)) generated in Python
- created_at / updated_at timestamps (naive UTC, see utcnow())
- save() that uses the DBStorage singleton
- SoftDeleteMixin: an is_active flag instead of row removal

Notes:
- All datetimes are naive UTC so values read back from SQLite compare cleanly
  with values computed in Python.
- SoftDelete: put the mixin FIRST in the model's inheritance list.
  Example:
    class User(SoftDeleteMixin, BaseModel, Base): ...
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

# Importing 'models' gives access to the global 'storage' instance (DBStorage)
# defined in models/__init__.py.
import models

from sqlalchemy import Boolean, Column, String, DateTime
from sqlalchemy.orm import declarative_base

# Declarative base for all models
Base = declarative_base()


def utcnow() -> datetime:
    """Current UTC time without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


class BaseModel:
    """
    Base mixin for all persistent models: id, created_at, updated_at and save().
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        """
        for key, value in kwargs.items():
            setattr(self, key, value)
        # Ensure an id exists if user passed none
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def __str__(self) -> str:
        return f"[{self.__class__.__name__}] ({self.id})"

    def save(self):
        """Stamp updated_at and commit the instance through DBStorage."""
        self.updated_at = utcnow()
        models.storage.new(self)
        models.storage.save()


class SoftDeleteMixin:
    """
    Adds an is_active flag; deactivated rows are kept but excluded from every
    lookup that gates access.
    IMPORTANT: Place this mixin BEFORE BaseModel in your class base list.
    """

    is_active = Column(Boolean, default=True, nullable=False)

    def deactivate(self):
        """Soft delete: clear is_active and commit."""
        self.is_active = False
        self.save()
