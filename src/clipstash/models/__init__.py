"""
clipstash.models
Pydantic models and SQLAlchemy entities for clipstash.
"""

from .history import HistoryEntry, HistoryEntryEntity  # noqa: F401

__entities__ = ["HistoryEntryEntity"]
__models__ = ["HistoryEntry"]
__all__ = [*__entities__, *__models__]
