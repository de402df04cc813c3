# region Docstring
"""
clipstash.models.history
Persistence and domain models for clipboard history entries.
Overview:
- Provides the SQLAlchemy entity persisting one captured clipboard text snapshot.
- Provides the Pydantic model mirroring the persisted entity for safe I/O.
Contents:
- SQLAlchemy entities:
    - HistoryEntryEntity:
        Row of the `history` table: an AUTOINCREMENT id, the captured text and the
        capture timestamp. The .model property converts it to a HistoryEntry.
- Pydantic models:
    - HistoryEntry:
        Read-only view of an entry returned by listing and search operations.
Design notes:
- AUTOINCREMENT keeps ids strictly increasing and never reused, even after every
    row has been deleted.
- Content is stored exactly as captured; no trimming or normalisation happens here.
- SQLite drops timezone information, so timestamps are written as UTC and
    re-attached to UTC when read back.
"""
# endregion
# region Imports
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from clipstash.database import Base
from clipstash.utils import as_utc, truncate


# endregion
# region SQLAlchemy Model
class HistoryEntryEntity(Base):
    """
    Model representing a captured clipboard entry.
    Attributes:
        id (int): Primary key, assigned on insert.
        content (str): The clipboard text.
        created_at (datetime): Capture time, assigned by the writer.
    """

    __tablename__ = "history"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    def __repr__(self) -> str:
        return f"<HistoryEntry(id={self.id}, created_at={self.created_at})>"

    @property
    def model(self) -> "HistoryEntry":
        return HistoryEntry(
            id=self.id,
            content=self.content,
            created_at=as_utc(self.created_at) if self.created_at else None,
        )


# endregion
# region Pydantic Model
class HistoryEntry(BaseModel):
    id: Optional[int] = Field(None, description="The unique ID of the history entry")
    content: str = Field(
        ..., min_length=1, description="The captured clipboard text"
    )
    created_at: Optional[datetime] = Field(
        None, description="Timestamp of when the entry was captured"
    )

    model_config = ConfigDict(from_attributes=True)

    def preview(self, width: int = 80) -> str:
        """Content cut to `width` characters with an ellipsis marker."""
        return truncate(self.content, width)


# endregion

__all__ = ["HistoryEntryEntity", "HistoryEntry"]
