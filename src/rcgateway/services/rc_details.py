"""RCDetailsService - read-through cache in front of the upstream RC API.

Lookup order for ``get_or_fetch``:
1. The record store (durable, or in-memory while the database is down)
2. On a miss, the upstream API; successful results are normalized and
   upserted before the upstream envelope is returned unchanged

Failures are returned as ``status=False`` envelopes and never cached.
Concurrent misses for the same registration number may both reach
upstream; the later upsert wins.
"""

from typing import Any, Protocol

import structlog

from rcgateway.core.exceptions import RCDetailsNotFoundError
from rcgateway.repositories.base import CacheStats, RecordStore
from rcgateway.schemas.rc import RCApiEnvelope, is_success_envelope
from rcgateway.services.normalizer import RCRecord, to_external, to_internal
from rcgateway.services.upstream import RCUpstreamError

logger = structlog.get_logger(__name__)

CACHE_HIT_MESSAGE = "RC details retrieved from cache"


class RCFetcher(Protocol):
    """Anything that can look up RC details upstream."""

    async def fetch_rc_details(
        self, rc_number: str, *, authorization: str | None = None
    ) -> dict[str, Any]: ...


class RCDetailsService:
    """Read-through orchestration over a RecordStore and an RCFetcher.

    Usage:
        ```python
        service = RCDetailsService(store=repository, fetcher=upstream_client)
        envelope = await service.get_or_fetch("MH12AB1234", authorization=token)
        ```
    """

    def __init__(self, store: RecordStore, fetcher: RCFetcher) -> None:
        """Initialize the service.

        Args:
            store: Record store to read from and populate
            fetcher: Upstream RC lookup
        """
        self.store = store
        self.fetcher = fetcher

    async def get_or_fetch(
        self,
        rc_number: str,
        *,
        authorization: str | None = None,
    ) -> dict[str, Any]:
        """Get RC details from the cache, falling through to upstream.

        Args:
            rc_number: Registration number (non-empty, format unchecked)
            authorization: Authorization header to forward upstream

        Returns:
            The cache envelope on a hit, otherwise the upstream envelope
        """
        record = await self.store.lookup(rc_number)
        if record is not None:
            logger.info("rc_cache_hit", rc_number=rc_number)
            return self._cache_envelope(record)

        logger.info("rc_cache_miss", rc_number=rc_number)
        envelope = await self._fetch(rc_number, authorization)

        if not is_success_envelope(envelope):
            logger.info(
                "rc_upstream_unsuccessful",
                rc_number=rc_number,
                statuscode=envelope.get("statuscode"),
            )
            return envelope

        data = envelope["data"]
        upstream_rc_number = data.get("rc_number")
        if upstream_rc_number and upstream_rc_number != rc_number:
            logger.warning(
                "rc_number_mismatch",
                rc_number=rc_number,
                upstream_rc_number=upstream_rc_number,
            )

        await self.store.upsert(rc_number, to_internal(data, rc_number=rc_number))
        logger.info("rc_cached", rc_number=rc_number)
        return envelope

    async def fetch_uncached(
        self,
        rc_number: str,
        *,
        authorization: str | None = None,
    ) -> dict[str, Any]:
        """Look up RC details upstream without touching the cache."""
        return await self._fetch(rc_number, authorization)

    # -------------------------------------------------------------------------
    # Cache Administration
    # -------------------------------------------------------------------------

    async def get_cached(self, rc_number: str) -> dict[str, Any]:
        """Get a cached record without falling through to upstream.

        Raises:
            RCDetailsNotFoundError: If the registration number is not cached
        """
        record = await self.store.lookup(rc_number)
        if record is None:
            raise RCDetailsNotFoundError(rc_number=rc_number)
        return self._cache_envelope(record)

    async def evict(self, rc_number: str) -> bool:
        """Remove a cached record.

        Returns:
            True if a record was present
        """
        existed = await self.store.exists(rc_number)
        await self.store.delete(rc_number)
        logger.info("rc_cache_evicted", rc_number=rc_number, existed=existed)
        return existed

    async def cache_stats(self) -> CacheStats:
        """Get aggregate statistics over the cached records."""
        return await self.store.stats()

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    async def _fetch(
        self, rc_number: str, authorization: str | None
    ) -> dict[str, Any]:
        """Call upstream, converting errors to a failure envelope."""
        try:
            return await self.fetcher.fetch_rc_details(
                rc_number, authorization=authorization
            )
        except RCUpstreamError as e:
            return _failure_envelope(e)

    @staticmethod
    def _cache_envelope(record: RCRecord) -> dict[str, Any]:
        return RCApiEnvelope(
            reference_id=0,
            statuscode=200,
            message=CACHE_HIT_MESSAGE,
            status=True,
            data=to_external(record),
        ).to_response_dict()


def _failure_envelope(error: RCUpstreamError) -> dict[str, Any]:
    """Build the envelope returned for an upstream error.

    An upstream ``status=False`` body is forwarded as is; otherwise the
    error is summarised without exposing transport details.
    """
    if error.payload is not None and error.payload.get("status") is False:
        return error.payload

    return RCApiEnvelope(
        status=False,
        statuscode=error.upstream_status or error.status_code,
        message=error.message,
    ).to_response_dict()
