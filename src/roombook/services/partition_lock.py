import logging
import threading
from contextlib import contextmanager
from datetime import date
from typing import Dict, Tuple

from roombook.utils.custom_exceptions import StoreUnavailable

logger = logging.getLogger(__name__)

PartitionKey = Tuple[str, date]


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = threading.Lock()
        self.holders = 0


class PartitionLocks:
    """One mutex per (room_id, date), created on demand and dropped when idle.

    Distinct partitions never contend with each other; only the small
    registry lock is shared, and it is held just long enough to look up or
    reference-count an entry.
    """

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout
        self._registry_lock = threading.Lock()
        self._entries: Dict[PartitionKey, _Entry] = {}

    def _checkout(self, key: PartitionKey) -> _Entry:
        with self._registry_lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.holders += 1
            return entry

    def _release(self, key: PartitionKey, entry: _Entry):
        with self._registry_lock:
            entry.holders -= 1
            if entry.holders == 0:
                self._entries.pop(key, None)

    @contextmanager
    def hold(self, room_id: str, booking_date: date):
        key = (room_id, booking_date)
        entry = self._checkout(key)
        try:
            if not entry.lock.acquire(timeout=self.timeout):
                logger.error(
                    f"Timed out after {self.timeout}s waiting for room {room_id} on {booking_date}"
                )
                raise StoreUnavailable(
                    f"room '{room_id}' on {booking_date} is busy, try again"
                )
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._release(key, entry)

    def __len__(self):
        with self._registry_lock:
            return len(self._entries)
