"""Field normalizer - conversion between wire and stored RC representations.

Upstream sends RC attributes loosely typed: dates may be ``"null"`` or
``"N/A"``, booleans are ``"0"``/``"1"``/``"true"``/``"false"`` and numbers
are numeric strings or JSON numbers. This module is the single conversion
boundary between the decoded upstream ``data`` object and the strict
internal record (``RCRecord``) kept by the repositories.

Everything here is pure: no I/O, and no function raises on malformed input.
A value that cannot be parsed, including one of an unexpected JSON type,
becomes ``None`` without affecting the other fields.

Usage:
    ```python
    record = to_internal(envelope["data"], rc_number="MH12AB1234")
    await store.upsert(record.rc_number, record)
    ...
    data = to_external(record)
    ```
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, NamedTuple

from rcgateway.schemas.rc import RCData

# -----------------------------------------------------------------------------
# Field Classes
# -----------------------------------------------------------------------------

STRING_FIELDS: tuple[str, ...] = (
    "owner_name",
    "father_name",
    "present_address",
    "permanent_address",
    "mobile_number",
    "vehicle_category",
    "vehicle_chasi_number",
    "vehicle_engine_number",
    "maker_description",
    "maker_model",
    "body_type",
    "fuel_type",
    "color",
    "norms_type",
    "financer",
    "insurance_company",
    "insurance_policy_number",
    "registered_at",
    "vehicle_category_description",
    "pucc_number",
    "permit_number",
    "permit_type",
    "national_permit_number",
    "national_permit_issued_by",
    "non_use_status",
    "blacklist_status",
    "noc_details",
    "rc_status",
    "variant",
)

DATE_FIELDS: tuple[str, ...] = (
    "fit_up_to",
    "registration_date",
    "insurance_upto",
    "latest_by",
    "tax_upto",
    "tax_paid_upto",
    "pucc_upto",
    "permit_issue_date",
    "permit_valid_from",
    "permit_valid_upto",
    "national_permit_issue_date",
    "national_permit_upto",
    "non_use_from",
    "non_use_to",
)

INT_FIELDS: tuple[str, ...] = (
    "vehicle_gross_weight",
    "no_cylinders",
    "seat_capacity",
    "sleeper_capacity",
    "standing_capacity",
    "wheelbase",
    "unladen_weight",
    "owner_number",
)

FLOAT_FIELDS: tuple[str, ...] = ("cubic_capacity",)

BOOL_FIELDS: tuple[str, ...] = ("less_info", "masked_name")

# Upstream spells missing dates in several ways
_DATE_SENTINELS = frozenset({"", "n/a", "null"})

# Non-ISO spellings seen in RTO data
_DATE_FORMATS = ("%d-%m-%Y", "%d/%m/%Y", "%d-%b-%Y")

# Tri-state spellings are matched exactly, with no case folding or trimming
_TRUE_SPELLINGS = ("1", "true")
_FALSE_SPELLINGS = ("0", "false")


# -----------------------------------------------------------------------------
# Internal Record
# -----------------------------------------------------------------------------


class MonthDate(NamedTuple):
    """A month-only date as received plus its first-of-month form."""

    raw: str | None
    normalized: date | None


@dataclass
class RCRecord:
    """Cached RC details in their strict internal shape.

    ``financed`` is tri-state (1, 0 or None). Timestamps are maintained by
    the store and are ignored on upsert.
    """

    rc_number: str

    # Strings
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
    insurance_company: str | None = None
    insurance_policy_number: str | None = None
    registered_at: str | None = None
    vehicle_category_description: str | None = None
    pucc_number: str | None = None
    permit_number: str | None = None
    permit_type: str | None = None
    national_permit_number: str | None = None
    national_permit_issued_by: str | None = None
    non_use_status: str | None = None
    blacklist_status: str | None = None
    noc_details: str | None = None
    rc_status: str | None = None
    variant: str | None = None

    # Dates
    fit_up_to: date | None = None
    registration_date: date | None = None
    insurance_upto: date | None = None
    latest_by: date | None = None
    tax_upto: date | None = None
    tax_paid_upto: date | None = None
    pucc_upto: date | None = None
    permit_issue_date: date | None = None
    permit_valid_from: date | None = None
    permit_valid_upto: date | None = None
    national_permit_issue_date: date | None = None
    national_permit_upto: date | None = None
    non_use_from: date | None = None
    non_use_to: date | None = None

    # Manufacturing month
    manufacturing_date: str | None = None
    manufacturing_date_formatted: date | None = None

    # Flags
    financed: int | None = None
    less_info: bool | None = None
    masked_name: bool | None = None

    # Numbers
    vehicle_gross_weight: int | None = None
    no_cylinders: int | None = None
    seat_capacity: int | None = None
    sleeper_capacity: int | None = None
    standing_capacity: int | None = None
    wheelbase: int | None = None
    unladen_weight: int | None = None
    owner_number: int | None = None
    cubic_capacity: float | None = None

    # Opaque
    challan_details: Any = None

    # Store-maintained
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_row(self) -> dict[str, Any]:
        """Column values for an upsert, without store-maintained timestamps."""
        return {name: getattr(self, name) for name in RECORD_COLUMNS}

    @classmethod
    def from_row(cls, row: Any) -> "RCRecord":
        """Create from a database row mapping (or any mapping of columns)."""
        values = {name: row[name] for name in RECORD_COLUMNS if name in row}
        values["created_at"] = row.get("created_at")
        values["updated_at"] = row.get("updated_at")
        return cls(**values)


RECORD_COLUMNS: tuple[str, ...] = (
    "rc_number",
    *STRING_FIELDS,
    *DATE_FIELDS,
    "manufacturing_date",
    "manufacturing_date_formatted",
    "financed",
    *BOOL_FIELDS,
    *INT_FIELDS,
    *FLOAT_FIELDS,
    "challan_details",
)


# -----------------------------------------------------------------------------
# Field Conversions
# -----------------------------------------------------------------------------


def to_internal_date(raw: Any) -> date | None:
    """Parse an upstream date string.

    Args:
        raw: Date as sent by upstream

    Returns:
        The parsed date, or None for missing, sentinel, malformed or
        non-string input.
    """
    if not isinstance(raw, str):
        return None
    value = raw.strip()
    if value.lower() in _DATE_SENTINELS:
        return None

    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def to_internal_month_date(raw: Any) -> MonthDate:
    """Parse an ``MM/YYYY`` month date.

    The raw string is kept verbatim even when it cannot be parsed.
    """
    if not isinstance(raw, str) or raw.strip().lower() in _DATE_SENTINELS:
        return MonthDate(None, None)

    parts = raw.split("/")
    if len(parts) != 2:
        return MonthDate(raw, None)
    try:
        month, year = int(parts[0]), int(parts[1])
        return MonthDate(raw, date(year, month, 1))
    except ValueError:
        return MonthDate(raw, None)


def to_internal_tri_state_bool(raw: Any) -> int | None:
    """Map exactly ``"1"``/``"true"`` to 1 and ``"0"``/``"false"`` to 0.

    Any other value, including other casings, padded strings and JSON
    booleans, is unknown (None).
    """
    if raw in _TRUE_SPELLINGS:
        return 1
    if raw in _FALSE_SPELLINGS:
        return 0
    return None


def to_external_tri_state_bool(stored: int | None) -> str:
    """Render a tri-state flag in word form.

    Outbound always uses ``"true"``/``"false"``/``""``, never ``"1"``/``"0"``.
    """
    if stored == 1:
        return "true"
    if stored == 0:
        return "false"
    return ""


def to_internal_number(raw: Any, *, as_float: bool = False) -> int | float | None:
    """Parse a numeric string or JSON number.

    Integer fields drop any fractional part.

    Args:
        raw: Numeric value from upstream
        as_float: Keep the value as a float

    Returns:
        The number, or None for missing or non-numeric input.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        number = float(raw)
    elif isinstance(raw, str):
        try:
            number = float(raw.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number if as_float else int(number)


def _to_internal_string(raw: Any) -> str | None:
    if isinstance(raw, str):
        return raw or None
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return _to_external_number(raw)
    return None


def _to_internal_flag(raw: Any) -> bool | None:
    if isinstance(raw, bool):
        return raw
    flag = to_internal_tri_state_bool(raw)
    return None if flag is None else bool(flag)


def _to_external_number(value: int | float | None) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_external_date(value: date | None) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


# -----------------------------------------------------------------------------
# Record Conversions
# -----------------------------------------------------------------------------


def to_internal(
    external: Mapping[str, Any], *, rc_number: str | None = None
) -> RCRecord:
    """Convert an upstream ``data`` object to an internal record.

    Each field is parsed on its own; the input mapping is not modified.

    Args:
        external: RC details as decoded from the upstream envelope
        rc_number: Cache key to store under; defaults to the payload's own
            ``rc_number``

    Returns:
        RCRecord ready for upsert

    Raises:
        ValueError: If no registration number is available
    """
    key = rc_number or _to_internal_string(external.get("rc_number"))
    if not key:
        raise ValueError("rc_number is required to build an RC record")

    values: dict[str, Any] = {"rc_number": key}
    for name in STRING_FIELDS:
        values[name] = _to_internal_string(external.get(name))
    for name in DATE_FIELDS:
        values[name] = to_internal_date(external.get(name))
    for name in INT_FIELDS:
        values[name] = to_internal_number(external.get(name))
    for name in FLOAT_FIELDS:
        values[name] = to_internal_number(external.get(name), as_float=True)
    for name in BOOL_FIELDS:
        values[name] = _to_internal_flag(external.get(name))

    month = to_internal_month_date(external.get("manufacturing_date"))
    values["manufacturing_date"] = month.raw
    values["manufacturing_date_formatted"] = month.normalized
    values["financed"] = to_internal_tri_state_bool(external.get("financed"))
    values["challan_details"] = external.get("challan_details")

    return RCRecord(**values)


def to_external(record: RCRecord) -> RCData:
    """Convert an internal record back to the upstream wire shape.

    Absent values become ``""`` for strings, dates and numbers and ``False``
    for boolean flags. ``challan_details`` is returned untouched.
    """
    values: dict[str, Any] = {"rc_number": record.rc_number}
    for name in STRING_FIELDS:
        values[name] = getattr(record, name) or ""
    for name in DATE_FIELDS:
        values[name] = _to_external_date(getattr(record, name))
    for name in (*INT_FIELDS, *FLOAT_FIELDS):
        values[name] = _to_external_number(getattr(record, name))
    for name in BOOL_FIELDS:
        values[name] = bool(getattr(record, name))

    values["manufacturing_date"] = record.manufacturing_date or ""
    values["manufacturing_date_formatted"] = _to_external_date(
        record.manufacturing_date_formatted
    )
    values["financed"] = to_external_tri_state_bool(record.financed)
    values["challan_details"] = record.challan_details

    return RCData(**values)
