"""Record store SPI and implementations."""

from .base import RecordStore
from .memory_store import MemoryRecordStore
from .sqlite_store import SQLiteRecordStore

__all__ = ["MemoryRecordStore", "RecordStore", "SQLiteRecordStore"]
