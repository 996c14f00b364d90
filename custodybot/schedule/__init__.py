"""Custody schedule management module."""

from .exceptions import ScheduleError, ScheduleStoreError
from .manager import CustodyScheduleManager
from .store import InMemoryRecordStore, RecordStore

__all__ = [
    "CustodyScheduleManager",
    "InMemoryRecordStore",
    "RecordStore",
    "ScheduleError",
    "ScheduleStoreError",
]
