"""In-process RC record store.

Serves as the fallback when the durable store is unreachable, and as a
lightweight store in tests. Records live for the lifetime of the process.
The map is not locked; all access happens on one event loop. Records are
deep-copied on the way in and out, so callers never share mutable state
(such as ``challan_details``) with the store.
"""

from copy import deepcopy
from dataclasses import replace
from datetime import UTC, datetime

import structlog

from rcgateway.repositories.base import CacheStats, RecordStore
from rcgateway.services.normalizer import RCRecord

logger = structlog.get_logger(__name__)


class InMemoryRCDetailsRepository(RecordStore):
    """Dict-backed RecordStore with the same contract as the durable store."""

    def __init__(self) -> None:
        self._records: dict[str, RCRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def lookup(self, key: str) -> RCRecord | None:
        record = self._records.get(key)
        if record is None:
            return None
        return deepcopy(record)

    async def upsert(self, key: str, record: RCRecord) -> None:
        now = datetime.now(UTC)
        existing = self._records.get(key)
        created_at = existing.created_at if existing else now
        self._records[key] = replace(
            deepcopy(record), rc_number=key, created_at=created_at, updated_at=now
        )
        logger.debug("rc_memory_upsert", rc_number=key, replaced=existing is not None)

    async def exists(self, key: str) -> bool:
        return key in self._records

    async def delete(self, key: str) -> None:
        self._records.pop(key, None)

    async def stats(self) -> CacheStats:
        last_updated = max(
            (r.updated_at for r in self._records.values() if r.updated_at),
            default=None,
        )
        return CacheStats(total_records=len(self._records), last_updated=last_updated)
