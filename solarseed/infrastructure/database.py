"""Persistence of solar units and their energy generation records."""
from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Generator, Optional

from sqlalchemy import CheckConstraint, Date, DateTime, Float, ForeignKey, Integer, String, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, relationship

UNIT_STATUSES = ("ACTIVE", "INACTIVE", "MAINTENANCE", "FAULT")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class SolarUnit(Base):
    __tablename__ = "solar_units"
    __table_args__ = (CheckConstraint("capacity > 0", name="ck_solar_units_capacity_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True, index=True)
    serial_number: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    installation_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    capacity: Mapped[float] = mapped_column(Float)
    status: Mapped[str] = mapped_column(String(16), default="INACTIVE")

    records: Mapped[list["EnergyGenerationRecord"]] = relationship(
        back_populates="solar_unit",
        cascade="all, delete-orphan",
    )


class EnergyGenerationRecord(Base):
    __tablename__ = "energy_generation_records"
    __table_args__ = (
        CheckConstraint("energy_produced >= 0", name="ck_records_energy_non_negative"),
        CheckConstraint("interval_hours >= 0.1 AND interval_hours <= 24", name="ck_records_interval_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    solar_unit_id: Mapped[int] = mapped_column(ForeignKey("solar_units.id"), index=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, default=_utcnow)
    energy_produced: Mapped[float] = mapped_column(Float)
    interval_hours: Mapped[float] = mapped_column(Float, default=2.0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    solar_unit: Mapped[SolarUnit] = relationship(back_populates="records")


def init_engine(database_url: str, *, echo: bool = False) -> Engine:
    engine = create_engine(database_url, echo=echo, future=True)
    Base.metadata.create_all(engine)
    return engine


@contextmanager
def get_session(engine: Engine) -> Generator[Session, None, None]:
    session = Session(engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
