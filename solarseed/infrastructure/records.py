"""Queries and bulk writes for solar units and energy records."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

import pandas as pd
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from .database import UNIT_STATUSES, EnergyGenerationRecord, SolarUnit

RECORD_COLUMNS = ["id", "solar_unit_id", "timestamp", "energy_produced", "interval_hours"]


class SolarUnitNotFound(LookupError):
    """No solar unit matches the requested identifier."""


class RecordNotFound(LookupError):
    """No energy generation record matches the requested id."""


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _check_status(status: str) -> str:
    value = status.upper()
    if value not in UNIT_STATUSES:
        raise ValueError(f"Invalid status {status!r}; must be one of {', '.join(UNIT_STATUSES)}")
    return value


def _check_capacity(capacity: float) -> float:
    if capacity <= 0:
        raise ValueError("Capacity must be a positive number")
    return float(capacity)


def _check_energy(energy_produced: float) -> float:
    if energy_produced < 0:
        raise ValueError("Energy produced must be non-negative")
    return float(energy_produced)


def _check_interval(interval_hours: float) -> float:
    if not 0.1 <= interval_hours <= 24:
        raise ValueError("Interval must be between 0.1 and 24 hours")
    return float(interval_hours)


def clear_all(session: Session) -> None:
    session.execute(delete(EnergyGenerationRecord))
    session.execute(delete(SolarUnit))


def create_solar_unit(
    session: Session,
    *,
    serial_number: str,
    capacity: float,
    user_id: Optional[str],
    status: str = "INACTIVE",
    installation_date: Optional[date] = None,
) -> SolarUnit:
    unit = SolarUnit(
        serial_number=serial_number,
        capacity=_check_capacity(capacity),
        user_id=user_id,
        status=_check_status(status),
        installation_date=installation_date,
    )
    session.add(unit)
    session.flush()
    return unit


def get_solar_unit(session: Session, serial_number: str) -> SolarUnit:
    unit = session.scalars(select(SolarUnit).where(SolarUnit.serial_number == serial_number)).first()
    if unit is None:
        raise SolarUnitNotFound(f"Solar unit {serial_number} not found")
    return unit


def insert_records(session: Session, solar_unit_id: int, readings: Iterable[object]) -> int:
    """Bulk-insert readings exposing ``timestamp``, ``energy_produced`` and ``interval_hours``."""
    rows = [
        {
            "solar_unit_id": solar_unit_id,
            "timestamp": _to_utc(reading.timestamp),
            "energy_produced": float(reading.energy_produced),
            "interval_hours": float(reading.interval_hours),
        }
        for reading in readings
    ]
    if rows:
        session.execute(EnergyGenerationRecord.__table__.insert(), rows)
    return len(rows)


def count_records(session: Session, solar_unit_id: int) -> int:
    statement = select(func.count(EnergyGenerationRecord.id)).where(
        EnergyGenerationRecord.solar_unit_id == solar_unit_id
    )
    return int(session.scalar(statement) or 0)


def latest_record(session: Session, solar_unit_id: int) -> Optional[EnergyGenerationRecord]:
    statement = (
        select(EnergyGenerationRecord)
        .where(EnergyGenerationRecord.solar_unit_id == solar_unit_id)
        .order_by(EnergyGenerationRecord.timestamp.desc())
        .limit(1)
    )
    return session.scalars(statement).first()


def load_records_frame(
    session: Session,
    solar_unit_id: int,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> pd.DataFrame:
    """Records for a unit as a frame with a UTC ``timestamp`` column, ascending."""
    statement = select(
        EnergyGenerationRecord.id,
        EnergyGenerationRecord.solar_unit_id,
        EnergyGenerationRecord.timestamp,
        EnergyGenerationRecord.energy_produced,
        EnergyGenerationRecord.interval_hours,
    ).where(EnergyGenerationRecord.solar_unit_id == solar_unit_id)
    if start is not None:
        statement = statement.where(EnergyGenerationRecord.timestamp >= _to_utc(start))
    if end is not None:
        statement = statement.where(EnergyGenerationRecord.timestamp <= _to_utc(end))
    statement = statement.order_by(EnergyGenerationRecord.timestamp)

    frame = pd.DataFrame(session.execute(statement).all(), columns=RECORD_COLUMNS)
    frame["timestamp"] = pd.to_datetime(frame["timestamp"], utc=True)
    return frame


def get_solar_unit_by_id(session: Session, unit_id: int) -> SolarUnit:
    unit = session.get(SolarUnit, unit_id)
    if unit is None:
        raise SolarUnitNotFound(f"Solar unit {unit_id} not found")
    return unit


def list_solar_units(
    session: Session,
    *,
    status: Optional[str] = None,
    user_id: Optional[str] = None,
    unassigned: bool = False,
) -> List[SolarUnit]:
    """Solar units ordered by serial number, optionally filtered."""
    statement = select(SolarUnit)
    if status is not None:
        statement = statement.where(SolarUnit.status == _check_status(status))
    if user_id is not None:
        statement = statement.where(SolarUnit.user_id == user_id)
    if unassigned:
        statement = statement.where(SolarUnit.user_id.is_(None))
    return list(session.scalars(statement.order_by(SolarUnit.serial_number)))


def update_solar_unit(
    session: Session,
    serial_number: str,
    *,
    capacity: Optional[float] = None,
    installation_date: Optional[date] = None,
    status: Optional[str] = None,
) -> SolarUnit:
    unit = get_solar_unit(session, serial_number)
    if capacity is not None:
        unit.capacity = _check_capacity(capacity)
    if installation_date is not None:
        unit.installation_date = installation_date
    if status is not None:
        unit.status = _check_status(status)
    session.flush()
    return unit


def set_solar_unit_status(session: Session, serial_number: str, status: str) -> SolarUnit:
    return update_solar_unit(session, serial_number, status=status)


def assign_user(session: Session, serial_number: str, user_id: str) -> SolarUnit:
    if not user_id:
        raise ValueError("User ID is required")
    unit = get_solar_unit(session, serial_number)
    unit.user_id = user_id
    session.flush()
    return unit


def unassign_user(session: Session, serial_number: str) -> SolarUnit:
    unit = get_solar_unit(session, serial_number)
    unit.user_id = None
    session.flush()
    return unit


def delete_solar_unit(session: Session, serial_number: str) -> int:
    """Delete a unit and its records; returns the number of records removed."""
    unit = get_solar_unit(session, serial_number)
    removed = session.execute(
        delete(EnergyGenerationRecord).where(EnergyGenerationRecord.solar_unit_id == unit.id)
    ).rowcount
    session.execute(delete(SolarUnit).where(SolarUnit.id == unit.id))
    session.expunge(unit)
    return int(removed or 0)


@dataclass(slots=True)
class RecordPage:
    records: List[EnergyGenerationRecord] = field(default_factory=list)
    page: int = 1
    limit: int = 100
    total: int = 0

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def create_record(
    session: Session,
    solar_unit_id: int,
    *,
    energy_produced: float,
    timestamp: Optional[datetime] = None,
    interval_hours: float = 2.0,
) -> EnergyGenerationRecord:
    """Store one reading for an existing unit; ``timestamp`` defaults to now."""
    get_solar_unit_by_id(session, solar_unit_id)
    record = EnergyGenerationRecord(
        solar_unit_id=solar_unit_id,
        energy_produced=_check_energy(energy_produced),
        interval_hours=_check_interval(interval_hours),
    )
    if timestamp is not None:
        record.timestamp = _to_utc(timestamp)
    session.add(record)
    session.flush()
    return record


def get_record(session: Session, record_id: int) -> EnergyGenerationRecord:
    record = session.get(EnergyGenerationRecord, record_id)
    if record is None:
        raise RecordNotFound(f"Energy generation record {record_id} not found")
    return record


def update_record(
    session: Session,
    record_id: int,
    *,
    energy_produced: Optional[float] = None,
    timestamp: Optional[datetime] = None,
    interval_hours: Optional[float] = None,
) -> EnergyGenerationRecord:
    record = get_record(session, record_id)
    if energy_produced is not None:
        record.energy_produced = _check_energy(energy_produced)
    if timestamp is not None:
        record.timestamp = _to_utc(timestamp)
    if interval_hours is not None:
        record.interval_hours = _check_interval(interval_hours)
    session.flush()
    return record


def delete_record(session: Session, record_id: int) -> None:
    session.delete(get_record(session, record_id))
    session.flush()


def list_records_page(session: Session, solar_unit_id: int, *, limit: int = 100, page: int = 1) -> RecordPage:
    """Newest records first, ``limit`` per page; pages are numbered from 1."""
    if limit < 1 or page < 1:
        raise ValueError("limit and page must be positive")
    statement = (
        select(EnergyGenerationRecord)
        .where(EnergyGenerationRecord.solar_unit_id == solar_unit_id)
        .order_by(EnergyGenerationRecord.timestamp.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    return RecordPage(
        records=list(session.scalars(statement)),
        page=page,
        limit=limit,
        total=count_records(session, solar_unit_id),
    )
