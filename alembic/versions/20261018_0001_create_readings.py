"""create readings table

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None

_MEASUREMENT_COLUMNS = (
    ("co", "Carbon Monoxide (mg/m3)"),
    ("pt08_s1_co", "PT08.S1 (CO) sensor response"),
    ("nmhc", "Non-Methanic Hydrocarbons (ug/m3)"),
    ("c6h6", "Benzene (ug/m3)"),
    ("pt08_s2_nmhc", "PT08.S2 (NMHC) sensor response"),
    ("nox", "Nitrogen Oxides (ppb)"),
    ("pt08_s3_nox", "PT08.S3 (NOx) sensor response"),
    ("no2", "Nitrogen Dioxide (ug/m3)"),
    ("pt08_s4_no2", "PT08.S4 (NO2) sensor response"),
    ("pt08_s5_o3", "PT08.S5 (O3) sensor response"),
    ("temperature", "Temperature (C)"),
    ("relative_humidity", "Relative Humidity (%)"),
    ("absolute_humidity", "Absolute Humidity"),
)

_SINGLE_COLUMN_INDEXES = (
    "date",
    "ingestion_id",
    "co",
    "c6h6",
    "nox",
    "no2",
    "nmhc",
    "temperature",
    "relative_humidity",
)


def upgrade() -> None:
    op.create_table(
        "readings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("date", sa.Date(), nullable=False, comment="Date of the reading"),
        sa.Column(
            "time",
            sa.String(length=8),
            nullable=False,
            comment="Time of the reading in HH:MM:SS format",
        ),
        sa.Column(
            "ingestion_id",
            sa.Uuid(),
            nullable=True,
            comment="Ingestion call that stored this row",
        ),
        *(
            sa.Column(name, sa.Numeric(precision=10, scale=2), nullable=True, comment=comment)
            for name, comment in _MEASUREMENT_COLUMNS
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_readings"),
    )
    op.create_index("ix_readings_date_time", "readings", ["date", "time"], unique=False)
    for column in _SINGLE_COLUMN_INDEXES:
        op.create_index(f"ix_readings_{column}", "readings", [column], unique=False)


def downgrade() -> None:
    for column in reversed(_SINGLE_COLUMN_INDEXES):
        op.drop_index(f"ix_readings_{column}", table_name="readings")
    op.drop_index("ix_readings_date_time", table_name="readings")
    op.drop_table("readings")
