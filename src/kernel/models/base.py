"""
Declarative base for PlanPilot tables.
"""

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    # JSON blobs and timezone-aware datetimes need no explicit column type
    type_annotation_map = {
        Dict[str, Any]: JSON,
        datetime: DateTime(timezone=True),
    }


class TimestampMixin:
    """Row creation and last-update times, set by the database."""

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())
