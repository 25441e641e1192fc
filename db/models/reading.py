"""
db/models/reading.py

One air-quality sensor measurement at one timestamp.
"""

from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy import Date, Index, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


def _measurement(comment: str) -> Mapped[float | None]:
    return mapped_column(
        Numeric(10, 2, asdecimal=False),
        nullable=True,
        comment=comment,
    )


class Reading(Base, TimestampMixin):
    __tablename__ = "readings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, comment="Date of the reading")
    time: Mapped[str] = mapped_column(
        String(8),
        nullable=False,
        comment="Time of the reading in HH:MM:SS format",
    )
    ingestion_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        nullable=True,
        comment="Ingestion call that stored this row",
    )

    co: Mapped[float | None] = _measurement("Carbon Monoxide (mg/m3)")
    pt08_s1_co: Mapped[float | None] = _measurement("PT08.S1 (CO) sensor response")
    nmhc: Mapped[float | None] = _measurement("Non-Methanic Hydrocarbons (ug/m3)")
    c6h6: Mapped[float | None] = _measurement("Benzene (ug/m3)")
    pt08_s2_nmhc: Mapped[float | None] = _measurement("PT08.S2 (NMHC) sensor response")
    nox: Mapped[float | None] = _measurement("Nitrogen Oxides (ppb)")
    pt08_s3_nox: Mapped[float | None] = _measurement("PT08.S3 (NOx) sensor response")
    no2: Mapped[float | None] = _measurement("Nitrogen Dioxide (ug/m3)")
    pt08_s4_no2: Mapped[float | None] = _measurement("PT08.S4 (NO2) sensor response")
    pt08_s5_o3: Mapped[float | None] = _measurement("PT08.S5 (O3) sensor response")
    temperature: Mapped[float | None] = _measurement("Temperature (C)")
    relative_humidity: Mapped[float | None] = _measurement("Relative Humidity (%)")
    absolute_humidity: Mapped[float | None] = _measurement("Absolute Humidity")

    __table_args__ = (
        Index("ix_readings_date_time", "date", "time"),
        Index("ix_readings_date", "date"),
        Index("ix_readings_ingestion_id", "ingestion_id"),
        Index("ix_readings_co", "co"),
        Index("ix_readings_c6h6", "c6h6"),
        Index("ix_readings_nox", "nox"),
        Index("ix_readings_no2", "no2"),
        Index("ix_readings_nmhc", "nmhc"),
        Index("ix_readings_temperature", "temperature"),
        Index("ix_readings_relative_humidity", "relative_humidity"),
    )
