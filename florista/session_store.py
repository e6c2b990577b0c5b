from __future__ import annotations

# =========================================
# session_store.py
# Florista - in-process workflow records
# =========================================
# Records are keyed by a random id kept in the Flask session cookie.
# The store is bounded two ways:
#   - records idle longer than `idle_seconds` are dropped
#   - past `max_records`, the least recently used record is dropped
# Nothing survives a restart.
# =========================================

import time
import uuid
from collections import OrderedDict
from threading import Lock
from typing import Any, Callable, Optional


class RecordStore:
    def __init__(self, max_records: int, idle_seconds: float,
                 clock: Callable[[], float] = time.monotonic):
        self.max_records = max_records
        self.idle_seconds = idle_seconds
        self._clock = clock
        # id -> (last_seen, record), oldest first
        self._records: OrderedDict = OrderedDict()
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, wid) -> bool:
        with self._lock:
            return wid in self._records

    def clear(self):
        with self._lock:
            self._records.clear()

    def get(self, wid: Optional[str]) -> Optional[Any]:
        """Returns the record for `wid` and marks it as used, or None."""
        with self._lock:
            self._expire()
            entry = self._records.get(wid) if wid else None
            if entry is None:
                return None
            self._records[wid] = (self._clock(), entry[1])
            self._records.move_to_end(wid)
            return entry[1]

    def add(self, record) -> str:
        """Stores `record` under a new id and returns the id."""
        wid = uuid.uuid4().hex
        with self._lock:
            self._expire()
            self._records[wid] = (self._clock(), record)
            while len(self._records) > self.max_records:
                self._records.popitem(last=False)
        return wid

    def discard(self, wid: Optional[str]):
        with self._lock:
            self._records.pop(wid, None)

    def _expire(self):
        cutoff = self._clock() - self.idle_seconds
        while self._records:
            wid, (seen, _) = next(iter(self._records.items()))
            if seen >= cutoff:
                break
            del self._records[wid]
