#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixins for the campus analytics API.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps
- delete() that goes through the global DBStorage

Timestamps written by the application are naive UTC (see utcnow()), so the
same values compare correctly on SQLite and PostgreSQL.
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

# Importing 'models' gives access to the global 'storage' instance (DBStorage)
import models

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

# Declarative base for all models
Base = declarative_base()


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BaseModel:
    """
    Base mixin for persistent models.

    - id, created_at, updated_at
    - delete() wired to DBStorage
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session.
        created_at/updated_at are left to the DB defaults unless passed in.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def delete(self):
        """
        Hard delete the current instance using DBStorage.
        The caller decides when to commit.
        """
        models.storage.delete(self)

