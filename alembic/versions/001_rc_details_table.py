"""Create the rc_details cache table.

Revision ID: 001_rc_details_table
Revises:
Create Date: 2026-10-19

One row per registration number, holding the normalized RC details served
by the v2 lookup. ``rc_number`` carries a unique index because upserts
conflict on it.
"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_rc_details_table"
down_revision = None
branch_labels = None
depends_on = None

TABLE = "rc_details"


def upgrade() -> None:
    """Create the rc_details table."""
    op.create_table(
        TABLE,
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("rc_number", sa.String(32), nullable=False),
        # Registration
        sa.Column("fit_up_to", sa.Date()),
        sa.Column("registration_date", sa.Date()),
        sa.Column("registered_at", sa.String(255)),
        sa.Column("latest_by", sa.Date()),
        sa.Column("rc_status", sa.String(50)),
        # Owner
        sa.Column("owner_name", sa.String(255)),
        sa.Column("father_name", sa.String(255)),
        sa.Column("present_address", sa.Text()),
        sa.Column("permanent_address", sa.Text()),
        sa.Column("mobile_number", sa.String(20)),
        sa.Column("owner_number", sa.Integer()),
        sa.Column("masked_name", sa.Boolean()),
        # Vehicle
        sa.Column("vehicle_category", sa.String(50)),
        sa.Column("vehicle_category_description", sa.String(255)),
        sa.Column("vehicle_chasi_number", sa.String(100)),
        sa.Column("vehicle_engine_number", sa.String(100)),
        sa.Column("maker_description", sa.String(255)),
        sa.Column("maker_model", sa.String(255)),
        sa.Column("variant", sa.String(255)),
        sa.Column("body_type", sa.String(100)),
        sa.Column("fuel_type", sa.String(50)),
        sa.Column("color", sa.String(50)),
        sa.Column("norms_type", sa.String(100)),
        sa.Column("manufacturing_date", sa.String(20)),
        sa.Column("manufacturing_date_formatted", sa.Date()),
        # Specifications
        sa.Column("cubic_capacity", sa.Float()),
        sa.Column("vehicle_gross_weight", sa.Integer()),
        sa.Column("unladen_weight", sa.Integer()),
        sa.Column("no_cylinders", sa.Integer()),
        sa.Column("seat_capacity", sa.Integer()),
        sa.Column("sleeper_capacity", sa.Integer()),
        sa.Column("standing_capacity", sa.Integer()),
        sa.Column("wheelbase", sa.Integer()),
        # Finance and insurance
        sa.Column("financer", sa.String(255)),
        sa.Column("financed", sa.SmallInteger()),
        sa.Column("insurance_company", sa.String(255)),
        sa.Column("insurance_policy_number", sa.String(100)),
        sa.Column("insurance_upto", sa.Date()),
        # Tax and pollution
        sa.Column("tax_upto", sa.Date()),
        sa.Column("tax_paid_upto", sa.Date()),
        sa.Column("pucc_number", sa.String(100)),
        sa.Column("pucc_upto", sa.Date()),
        # Permits
        sa.Column("permit_number", sa.String(100)),
        sa.Column("permit_type", sa.String(255)),
        sa.Column("permit_issue_date", sa.Date()),
        sa.Column("permit_valid_from", sa.Date()),
        sa.Column("permit_valid_upto", sa.Date()),
        sa.Column("national_permit_number", sa.String(100)),
        sa.Column("national_permit_issue_date", sa.Date()),
        sa.Column("national_permit_upto", sa.Date()),
        sa.Column("national_permit_issued_by", sa.String(255)),
        # Status flags
        sa.Column("non_use_status", sa.String(100)),
        sa.Column("non_use_from", sa.Date()),
        sa.Column("non_use_to", sa.Date()),
        sa.Column("blacklist_status", sa.String(255)),
        sa.Column("noc_details", sa.Text()),
        sa.Column("less_info", sa.Boolean()),
        sa.Column("challan_details", sa.JSON()),
        # Timestamps
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_rc_details_rc_number", TABLE, ["rc_number"], unique=True
    )
    op.create_index("ix_rc_details_updated_at", TABLE, ["updated_at"])


def downgrade() -> None:
    """Drop the rc_details table."""
    op.drop_index("ix_rc_details_updated_at", table_name=TABLE)
    op.drop_index("ix_rc_details_rc_number", table_name=TABLE)
    op.drop_table(TABLE)
