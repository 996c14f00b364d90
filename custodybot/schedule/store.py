"""Keyed record store used to hold custody schedules."""

import logging
from typing import Optional, Protocol, runtime_checkable

from ..models import CustodySchedule
from .exceptions import ScheduleStoreError

logger = logging.getLogger(__name__)


@runtime_checkable
class RecordStore(Protocol):
    """Collection of schedules keyed by ``id``.

    Persistence and sync live outside this package; anything offering these
    operations can back the schedule manager.
    """

    def get_all(self) -> list[CustodySchedule]: ...

    def get(self, record_id: str) -> Optional[CustodySchedule]: ...

    def insert(self, record: CustodySchedule) -> None: ...

    def update(self, record: CustodySchedule) -> None: ...

    def delete(self, record_id: str) -> bool: ...


class InMemoryRecordStore:
    """Dictionary-backed record store.

    Records are copied on the way in and out so callers cannot mutate stored
    state behind the manager's back. Insertion order is preserved.
    """

    def __init__(self, records: Optional[list[CustodySchedule]] = None) -> None:
        self._records: dict[str, CustodySchedule] = {}
        for record in records or []:
            self.insert(record)

    def __len__(self) -> int:
        return len(self._records)

    def get_all(self) -> list[CustodySchedule]:
        return [record.model_copy(deep=True) for record in self._records.values()]

    def get(self, record_id: str) -> Optional[CustodySchedule]:
        record = self._records.get(record_id)
        return record.model_copy(deep=True) if record is not None else None

    def insert(self, record: CustodySchedule) -> None:
        if record.id in self._records:
            raise ScheduleStoreError(
                "Record already exists", record_id=record.id, operation="insert"
            )
        self._records[record.id] = record.model_copy(deep=True)

    def update(self, record: CustodySchedule) -> None:
        if record.id not in self._records:
            raise ScheduleStoreError("Record not found", record_id=record.id, operation="update")
        self._records[record.id] = record.model_copy(deep=True)

    def delete(self, record_id: str) -> bool:
        if self._records.pop(record_id, None) is None:
            logger.debug(f"Record {record_id} not in store, nothing to delete")
            return False
        return True
