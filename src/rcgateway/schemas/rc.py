"""RC lookup API schemas.

Upstream envelopes are not modelled here: they are decoded JSON objects
forwarded to callers exactly as received (see ``is_success_envelope``).
The models below describe the envelopes this service builds itself, a
cache hit or a summarised failure, and document the wire format in the
OpenAPI schema. The strict internal shape lives in
``rcgateway.services.normalizer.RCRecord``.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from rcgateway.schemas.common import BaseSchema

# =============================================================================
# Requests
# =============================================================================


class RCVerifyRequest(BaseSchema):
    """Request body for an RC lookup.

    ``id_number`` is the cache key, so it is kept exactly as supplied.

    Attributes:
        id_number: Vehicle registration number (format is not validated)
    """

    model_config = ConfigDict(str_strip_whitespace=False)

    id_number: str = Field(
        ...,
        min_length=1,
        max_length=32,
        description="RTO vehicle registration number",
        json_schema_extra={"example": "MH12AB1234"},
    )


# =============================================================================
# Envelopes
# =============================================================================


def is_success_envelope(envelope: Mapping[str, Any]) -> bool:
    """Check if an envelope carries RC details worth caching.

    Only ``status`` and the presence of a ``data`` object are considered;
    the content of ``data`` is never validated.
    """
    return envelope.get("status") is True and isinstance(envelope.get("data"), dict)


class RCData(BaseModel):
    """RC details in wire format, as rendered from a cached record.

    Strings, dates and numbers are strings (``""`` when absent), the
    ``less_info`` and ``masked_name`` flags are booleans and
    ``challan_details`` is passed through untouched.
    """

    model_config = ConfigDict(extra="allow")

    rc_number: str | None = None
    fit_up_to: str | None = None
    registration_date: str | None = None
    owner_name: str | None = None
    father_name: str | None = None
    present_address: str | None = None
    permanent_address: str | None = None
    mobile_number: str | None = None
    vehicle_category: str | None = None
    vehicle_chasi_number: str | None = None
    vehicle_engine_number: str | None = None
    maker_description: str | None = None
    maker_model: str | None = None
    body_type: str | None = None
    fuel_type: str | None = None
    color: str | None = None
    norms_type: str | None = None
    financer: str | None = None
    financed: str | None = None
    insurance_company: str | None = None
    insurance_policy_number: str | None = None
    insurance_upto: str | None = None
    manufacturing_date: str | None = None
    manufacturing_date_formatted: str | None = None
    registered_at: str | None = None
    latest_by: str | None = None
    less_info: bool | None = None
    tax_upto: str | None = None
    tax_paid_upto: str | None = None
    cubic_capacity: str | None = None
    vehicle_gross_weight: str | None = None
    no_cylinders: str | None = None
    seat_capacity: str | None = None
    sleeper_capacity: str | None = None
    standing_capacity: str | None = None
    wheelbase: str | None = None
    unladen_weight: str | None = None
    vehicle_category_description: str | None = None
    pucc_number: str | None = None
    pucc_upto: str | None = None
    permit_number: str | None = None
    permit_issue_date: str | None = None
    permit_valid_from: str | None = None
    permit_valid_upto: str | None = None
    permit_type: str | None = None
    national_permit_number: str | None = None
    national_permit_issue_date: str | None = None
    national_permit_upto: str | None = None
    national_permit_issued_by: str | None = None
    non_use_status: str | None = None
    non_use_from: str | None = None
    non_use_to: str | None = None
    blacklist_status: str | None = None
    noc_details: str | None = None
    owner_number: str | None = None
    rc_status: str | None = None
    masked_name: bool | None = None
    challan_details: Any = None
    variant: str | None = None


class RCApiEnvelope(BaseModel):
    """Envelope wrapping every RC result, success or failure."""

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "reference_id": 0,
                "statuscode": 200,
                "message": "RC details retrieved from cache",
                "status": True,
                "data": {"rc_number": "MH12AB1234", "financed": "false"},
            }
        },
    )

    status: bool = Field(..., description="True when data holds RC details")
    statuscode: int | None = Field(None, description="Upstream status code")
    message: str = Field("", description="Human-readable status message")
    reference_id: int | None = Field(None, description="Upstream reference id")
    data: RCData | None = Field(None, description="Vehicle details")

    def to_response_dict(self) -> dict[str, Any]:
        """Serialize with only the keys that were actually set."""
        return self.model_dump(mode="json", exclude_unset=True)


# =============================================================================
# Cache Administration
# =============================================================================


class CacheStatsResponse(BaseModel):
    """Aggregate statistics over the cached RC records."""

    total_records: int = Field(..., ge=0, description="Number of cached records")
    last_updated: datetime | None = Field(
        None, description="Most recent update across all records"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "total_records": 1532,
                "last_updated": "2026-10-18T09:12:44+00:00",
            }
        }
    )
