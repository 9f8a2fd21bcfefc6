"""RCDetails model - relational cache of upstream RC lookups.

One row per registration number. Columns hold the normalized (internal)
representation produced by ``rcgateway.services.normalizer``:
dates as DATE, numeric strings as INTEGER/FLOAT, the tri-state ``financed``
flag as a small integer, and ``challan_details`` as opaque JSON.

The table name is deployment configuration (``RC_DB_TABLE``); use
``rc_details_table()`` to get the table under the configured name.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    Float,
    Integer,
    MetaData,
    SmallInteger,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from rcgateway.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

DEFAULT_TABLE_NAME = "rc_details"


class RCDetails(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Cached registration certificate details.

    Attributes:
        rc_number: Registration number as supplied by the caller (unique)
        financed: 1, 0 or NULL (unknown)
        manufacturing_date: Raw "MM/YYYY" string from upstream
        manufacturing_date_formatted: First day of the manufacturing month
        challan_details: Upstream challan/dispute payload, uninterpreted
    """

    __tablename__ = DEFAULT_TABLE_NAME

    rc_number: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        nullable=False,
        index=True,
    )

    # Registration
    fit_up_to: Mapped[date | None] = mapped_column(Date)
    registration_date: Mapped[date | None] = mapped_column(Date)
    registered_at: Mapped[str | None] = mapped_column(String(255))
    latest_by: Mapped[date | None] = mapped_column(Date)
    rc_status: Mapped[str | None] = mapped_column(String(50))

    # Owner
    owner_name: Mapped[str | None] = mapped_column(String(255))
    father_name: Mapped[str | None] = mapped_column(String(255))
    present_address: Mapped[str | None] = mapped_column(Text)
    permanent_address: Mapped[str | None] = mapped_column(Text)
    mobile_number: Mapped[str | None] = mapped_column(String(20))
    owner_number: Mapped[int | None] = mapped_column(Integer)
    masked_name: Mapped[bool | None] = mapped_column(Boolean)

    # Vehicle
    vehicle_category: Mapped[str | None] = mapped_column(String(50))
    vehicle_category_description: Mapped[str | None] = mapped_column(String(255))
    vehicle_chasi_number: Mapped[str | None] = mapped_column(String(100))
    vehicle_engine_number: Mapped[str | None] = mapped_column(String(100))
    maker_description: Mapped[str | None] = mapped_column(String(255))
    maker_model: Mapped[str | None] = mapped_column(String(255))
    variant: Mapped[str | None] = mapped_column(String(255))
    body_type: Mapped[str | None] = mapped_column(String(100))
    fuel_type: Mapped[str | None] = mapped_column(String(50))
    color: Mapped[str | None] = mapped_column(String(50))
    norms_type: Mapped[str | None] = mapped_column(String(100))
    manufacturing_date: Mapped[str | None] = mapped_column(String(20))
    manufacturing_date_formatted: Mapped[date | None] = mapped_column(Date)

    # Specifications
    cubic_capacity: Mapped[float | None] = mapped_column(Float)
    vehicle_gross_weight: Mapped[int | None] = mapped_column(Integer)
    unladen_weight: Mapped[int | None] = mapped_column(Integer)
    no_cylinders: Mapped[int | None] = mapped_column(Integer)
    seat_capacity: Mapped[int | None] = mapped_column(Integer)
    sleeper_capacity: Mapped[int | None] = mapped_column(Integer)
    standing_capacity: Mapped[int | None] = mapped_column(Integer)
    wheelbase: Mapped[int | None] = mapped_column(Integer)

    # Finance and insurance
    financer: Mapped[str | None] = mapped_column(String(255))
    financed: Mapped[int | None] = mapped_column(SmallInteger)
    insurance_company: Mapped[str | None] = mapped_column(String(255))
    insurance_policy_number: Mapped[str | None] = mapped_column(String(100))
    insurance_upto: Mapped[date | None] = mapped_column(Date)

    # Tax and pollution
    tax_upto: Mapped[date | None] = mapped_column(Date)
    tax_paid_upto: Mapped[date | None] = mapped_column(Date)
    pucc_number: Mapped[str | None] = mapped_column(String(100))
    pucc_upto: Mapped[date | None] = mapped_column(Date)

    # Permits
    permit_number: Mapped[str | None] = mapped_column(String(100))
    permit_type: Mapped[str | None] = mapped_column(String(255))
    permit_issue_date: Mapped[date | None] = mapped_column(Date)
    permit_valid_from: Mapped[date | None] = mapped_column(Date)
    permit_valid_upto: Mapped[date | None] = mapped_column(Date)
    national_permit_number: Mapped[str | None] = mapped_column(String(100))
    national_permit_issue_date: Mapped[date | None] = mapped_column(Date)
    national_permit_upto: Mapped[date | None] = mapped_column(Date)
    national_permit_issued_by: Mapped[str | None] = mapped_column(String(255))

    # Status flags
    non_use_status: Mapped[str | None] = mapped_column(String(100))
    non_use_from: Mapped[date | None] = mapped_column(Date)
    non_use_to: Mapped[date | None] = mapped_column(Date)
    blacklist_status: Mapped[str | None] = mapped_column(String(255))
    noc_details: Mapped[str | None] = mapped_column(Text)
    less_info: Mapped[bool | None] = mapped_column(Boolean)

    # Opaque upstream payload; None is stored as SQL NULL, not JSON null
    challan_details: Mapped[Any | None] = mapped_column(JSON(none_as_null=True))

    def __repr__(self) -> str:
        return f"<RCDetails(rc_number='{self.rc_number}', rc_status='{self.rc_status}')>"


def rc_details_table(name: str = DEFAULT_TABLE_NAME) -> Table:
    """Return the RC details table under the given name.

    Args:
        name: Configured table name

    Returns:
        The mapped table itself for the default name, otherwise a copy
        bound to a private MetaData.
    """
    table = RCDetails.__table__
    if name == table.name:
        return table
    return table.to_metadata(MetaData(), name=name)
