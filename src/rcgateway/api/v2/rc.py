"""RC verification endpoints, v2.

Provides the cached RC lookup and the cache administration endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path
from fastapi.responses import JSONResponse

from rcgateway.api.responses import envelope_response
from rcgateway.core.exceptions import RCDetailsNotFoundError
from rcgateway.core.logging import get_logger, log_context
from rcgateway.dependencies import (
    AuthorizationDep,
    RCDetailsServiceDep,
    require_api_key,
)
from rcgateway.schemas.common import ErrorResponse, MessageResponse
from rcgateway.schemas.rc import CacheStatsResponse, RCApiEnvelope, RCVerifyRequest

logger = get_logger(__name__)

router = APIRouter()

RCNumberPath = Annotated[
    str, Path(min_length=1, max_length=32, description="Registration number")
]


# =============================================================================
# Lookup
# =============================================================================


@router.post(
    "/rc_verify",
    response_model=RCApiEnvelope,
    summary="Get vehicle RC details (cached)",
    description=(
        "Serve RC details from the cache, falling through to the upstream API "
        "on a miss. Successful upstream results are cached for later lookups."
    ),
    responses={
        200: {"description": "RC details retrieved (from cache or upstream)"},
        401: {"model": ErrorResponse, "description": "Missing Authorization header"},
        502: {"model": RCApiEnvelope, "description": "Upstream failure"},
    },
)
async def verify_rc(
    request: RCVerifyRequest,
    authorization: AuthorizationDep,
    service: RCDetailsServiceDep,
) -> JSONResponse:
    """Look up RC details through the read-through cache."""
    with log_context(api_version="v2"):
        envelope = await service.get_or_fetch(
            request.id_number, authorization=authorization
        )
    return envelope_response(envelope)


# =============================================================================
# Cache Administration
# =============================================================================


@router.get(
    "/cache/stats",
    response_model=CacheStatsResponse,
    summary="Cache statistics",
    dependencies=[Depends(require_api_key)],
    responses={401: {"model": ErrorResponse, "description": "Invalid API key"}},
)
async def get_cache_stats(service: RCDetailsServiceDep) -> CacheStatsResponse:
    """Get the number of cached records and the latest update time."""
    stats = await service.cache_stats()
    return CacheStatsResponse(
        total_records=stats.total_records,
        last_updated=stats.last_updated,
    )


@router.get(
    "/cache/{rc_number}",
    response_model=RCApiEnvelope,
    summary="Get a cached record",
    description="Return a cached record without calling upstream.",
    dependencies=[Depends(require_api_key)],
    responses={
        401: {"model": ErrorResponse, "description": "Invalid API key"},
        404: {"model": ErrorResponse, "description": "Not cached"},
    },
)
async def get_cached_rc(
    rc_number: RCNumberPath,
    service: RCDetailsServiceDep,
) -> JSONResponse:
    """Get a cached record by registration number."""
    envelope = await service.get_cached(rc_number)
    return envelope_response(envelope)


@router.delete(
    "/cache/{rc_number}",
    response_model=MessageResponse,
    summary="Evict a cached record",
    description="Remove a record so the next lookup refreshes it from upstream.",
    dependencies=[Depends(require_api_key)],
    responses={
        401: {"model": ErrorResponse, "description": "Invalid API key"},
        404: {"model": ErrorResponse, "description": "Not cached"},
    },
)
async def evict_cached_rc(
    rc_number: RCNumberPath,
    service: RCDetailsServiceDep,
) -> MessageResponse:
    """Evict a cached record by registration number."""
    if not await service.evict(rc_number):
        raise RCDetailsNotFoundError(rc_number=rc_number)

    logger.info("rc_cache_evict_request", rc_number=rc_number)
    return MessageResponse(message=f"RC details for {rc_number} evicted from cache")
