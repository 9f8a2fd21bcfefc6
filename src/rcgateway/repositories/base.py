"""Record store interface shared by the durable and in-memory RC caches.

This module provides:
- RecordStore: abstract async store keyed by registration number
- CacheStats: aggregate statistics over the stored records

Usage:
    from rcgateway.repositories import InMemoryRCDetailsRepository

    store: RecordStore = InMemoryRCDetailsRepository()
    await store.upsert(record.rc_number, record)
    cached = await store.lookup("MH12AB1234")
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from rcgateway.services.normalizer import RCRecord


@dataclass
class CacheStats:
    """Aggregate statistics computed on demand from the record set."""

    total_records: int
    last_updated: datetime | None


class RecordStore(ABC):
    """Keyed storage of RC records.

    Implementations must give identical observable behaviour: ``upsert`` is
    insert-or-replace (applying the same record twice equals applying it
    once), ``delete`` of an absent key is a no-op, and ``lookup`` never
    reaches upstream.
    """

    @abstractmethod
    async def lookup(self, key: str) -> RCRecord | None:
        """Get the record stored under a registration number.

        Args:
            key: Registration number, case-sensitive as supplied

        Returns:
            The record if present, None otherwise
        """

    @abstractmethod
    async def upsert(self, key: str, record: RCRecord) -> None:
        """Insert or replace the record stored under a registration number.

        Args:
            key: Registration number
            record: Normalized record to store
        """

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if a record is stored under a registration number."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the record stored under a registration number, if any."""

    @abstractmethod
    async def stats(self) -> CacheStats:
        """Compute total record count and the latest update time."""
