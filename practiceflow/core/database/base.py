"""
Base database models and utilities.

This module provides the foundational database components used across
all entities in the database layer using SQLModel.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import ConfigDict
from sqlmodel import SQLModel


def utc_now() -> datetime:
    """Current UTC time as a naive datetime.

    Timestamps are stored without timezone so PostgreSQL ``timestamp`` columns
    and SQLite behave the same.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(SQLModel):
    """Base class for all SQLModel entities."""

    model_config = ConfigDict(arbitrary_types_allowed=True)
