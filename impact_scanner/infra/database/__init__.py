"""Database infrastructure — SQLModel engine, session, table models, repositories."""

from .engine import get_engine, get_session
from .models import ScanRecordDB, WatchlistDB
from .repositories import ScanRepository, WatchlistRepository

__all__ = [
    "get_engine",
    "get_session",
    "ScanRecordDB",
    "WatchlistDB",
    "ScanRepository",
    "WatchlistRepository",
]
