"""In-memory correlation state between build triggers and build results.

All methods of :class:`CorrelationStore` are synchronous and never await, so
each call runs as one indivisible step on the event loop. Handlers must go
through these methods instead of combining ``get`` with a later write.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
import logging
from typing import Callable, Optional

import cachetools
import pydantic

from buildbridge.metric import cache_size, eviction_counter

logger = logging.getLogger("buildbridge")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordState(str, Enum):
    pending = "pending"
    reported = "reported"


class CorrelationRecord(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(validate_assignment=True)

    pull_request_id: int = pydantic.Field(frozen=True)
    revision: str = pydantic.Field(frozen=True)
    state: RecordState = RecordState.pending
    created_at: datetime = pydantic.Field(default_factory=_utcnow)
    updated_at: datetime = pydantic.Field(default_factory=_utcnow)

    @property
    def is_pending(self) -> bool:
        return self.state == RecordState.pending

    def __str__(self) -> str:
        return (
            f"Record(#{self.pull_request_id}@{self.revision[:7]}, {self.state.value})"
        )


class _RecordCache(cachetools.LRUCache):
    def popitem(self):
        key, record = super().popitem()
        if record.is_pending:
            logger.info(
                "Evicting pending %s (%s), its result will not be posted", record, key
            )
        else:
            logger.debug("Evicting %s (%s)", record, key)
        eviction_counter.labels(state=record.state.value).inc()
        return key, record


class CorrelationStore:
    capacity: int

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("Store capacity must be at least 1")
        self.capacity = capacity
        self._cache = _RecordCache(maxsize=capacity)

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    def get(self, key: str) -> Optional[CorrelationRecord]:
        return self._cache.get(key)

    def get_or_create(
        self, key: str, factory: Callable[[], CorrelationRecord]
    ) -> CorrelationRecord:
        record = self._cache.get(key)
        if record is not None:
            record.updated_at = _utcnow()
            logger.debug("Reusing %s for key %s", record, key)
            return record

        record = factory()
        self._cache[key] = record
        cache_size.set(len(self._cache))
        logger.debug("Created %s for key %s", record, key)
        return record

    def mark_reported(self, key: str) -> bool:
        record = self._cache.get(key)
        if record is None or not record.is_pending:
            return False
        record.state = RecordState.reported
        record.updated_at = _utcnow()
        return True
