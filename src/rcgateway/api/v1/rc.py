"""RC verification endpoints, v1.

v1 is a plain proxy to the upstream RC API with no caching. It is also
mounted at the unversioned ``/api/rc`` path for older clients.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from rcgateway.api.responses import envelope_response
from rcgateway.core.logging import get_logger
from rcgateway.dependencies import AuthorizationDep, RCDetailsServiceDep
from rcgateway.schemas.common import ErrorResponse
from rcgateway.schemas.rc import RCApiEnvelope, RCVerifyRequest

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/rc_verify",
    response_model=RCApiEnvelope,
    summary="Get vehicle RC details (no caching)",
    description="Forward an RC lookup to the upstream API and return its envelope.",
    responses={
        200: {"description": "RC details retrieved successfully"},
        401: {"model": ErrorResponse, "description": "Missing Authorization header"},
        502: {"model": RCApiEnvelope, "description": "Upstream failure"},
    },
)
async def verify_rc(
    request: RCVerifyRequest,
    authorization: AuthorizationDep,
    service: RCDetailsServiceDep,
) -> JSONResponse:
    """Look up RC details directly from upstream."""
    logger.info("rc_verify_v1_request", rc_number=request.id_number)
    envelope = await service.fetch_uncached(
        request.id_number, authorization=authorization
    )
    return envelope_response(envelope)
