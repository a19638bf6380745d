"""SQLModel table backing the local blob store."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BlobRecord(SQLModel, table=True):
    """One opaque string value per key."""

    __tablename__ = "blobs"

    key: str = Field(primary_key=True, description="Blob name, e.g. openrouter_models")
    value: str = Field(sa_column=Column(Text, nullable=False))
    updated_at: datetime = Field(default_factory=_utcnow)
