from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from solarseed.generation import Reading
from solarseed.infrastructure import (
    RecordNotFound,
    SolarUnitNotFound,
    assign_user,
    clear_all,
    count_records,
    create_record,
    create_solar_unit,
    delete_record,
    delete_solar_unit,
    get_record,
    get_session,
    get_solar_unit,
    get_solar_unit_by_id,
    init_engine,
    insert_records,
    latest_record,
    list_records_page,
    list_solar_units,
    load_records_frame,
    set_solar_unit_status,
    unassign_user,
    update_record,
    update_solar_unit,
)

from tests.conftest import get_test_logger
from tests.helpers import make_readings

logger = get_test_logger(__name__)
logger.info("Starting tests for record storage")


@pytest.fixture
def engine(database_url: str):
    return init_engine(database_url)


def test_unit_and_records_roundtrip(engine) -> None:
    readings = make_readings([0, 0, 0, 1200, 8000, 9100])
    with get_session(engine) as session:
        unit = create_solar_unit(
            session,
            serial_number="SU-1",
            capacity=5000,
            user_id="user_1",
            status="ACTIVE",
            installation_date=date(2024, 1, 15),
        )
        assert unit.id is not None
        assert insert_records(session, unit.id, readings) == 6

    with get_session(engine) as session:
        unit = get_solar_unit(session, "SU-1")
        assert unit.status == "ACTIVE"
        assert count_records(session, unit.id) == 6
        latest = latest_record(session, unit.id)
        assert latest is not None and latest.energy_produced == 9100
        frame = load_records_frame(session, unit.id)

    assert list(frame.columns) == ["id", "solar_unit_id", "timestamp", "energy_produced", "interval_hours"]
    assert str(frame["timestamp"].dt.tz) == "UTC"
    assert frame["timestamp"].iloc[0] == datetime(2025, 6, 1, tzinfo=timezone.utc)
    assert frame["energy_produced"].sum() == 18300


def test_frame_time_filter(engine) -> None:
    readings = make_readings([100.0] * 24)
    with get_session(engine) as session:
        unit = create_solar_unit(session, serial_number="SU-2", capacity=3000, user_id="u")
        insert_records(session, unit.id, readings)
        start = datetime(2025, 6, 1, 6, tzinfo=timezone.utc)
        frame = load_records_frame(session, unit.id, start=start, end=start + timedelta(hours=6))
    assert len(frame) == 4
    assert frame["timestamp"].is_monotonic_increasing


def test_non_utc_timestamps_are_stored_as_utc(engine) -> None:
    local = timezone(timedelta(hours=3))
    readings = [Reading(timestamp=datetime(2025, 6, 1, 12, tzinfo=local), energy_produced=500.0)]
    with get_session(engine) as session:
        unit = create_solar_unit(session, serial_number="SU-3", capacity=3000, user_id="u")
        insert_records(session, unit.id, readings)
        frame = load_records_frame(session, unit.id)
    assert frame["timestamp"].iloc[0] == datetime(2025, 6, 1, 9, tzinfo=timezone.utc)


def test_unknown_unit_raises(engine) -> None:
    with get_session(engine) as session:
        with pytest.raises(SolarUnitNotFound):
            get_solar_unit(session, "missing")


def test_duplicate_serial_rolls_back(engine) -> None:
    with get_session(engine) as session:
        create_solar_unit(session, serial_number="SU-4", capacity=3000, user_id="u")

    with pytest.raises(IntegrityError):
        with get_session(engine) as session:
            unit = create_solar_unit(session, serial_number="SU-5", capacity=3000, user_id="u")
            insert_records(session, unit.id, make_readings([1.0, 2.0]))
            create_solar_unit(session, serial_number="SU-4", capacity=3000, user_id="u")

    with get_session(engine) as session:
        with pytest.raises(SolarUnitNotFound):
            get_solar_unit(session, "SU-5")


def test_clear_all(engine) -> None:
    with get_session(engine) as session:
        unit = create_solar_unit(session, serial_number="SU-6", capacity=3000, user_id="u")
        insert_records(session, unit.id, make_readings([1.0, 2.0, 3.0]))
        unit_id = unit.id
    with get_session(engine) as session:
        clear_all(session)
    with get_session(engine) as session:
        assert count_records(session, unit_id) == 0
        with pytest.raises(SolarUnitNotFound):
            get_solar_unit(session, "SU-6")


def _seed_units(engine) -> None:
    with get_session(engine) as session:
        create_solar_unit(session, serial_number="SU-A", capacity=5000, user_id="alice", status="ACTIVE")
        create_solar_unit(session, serial_number="SU-B", capacity=3000, user_id="bob", status="FAULT")
        create_solar_unit(session, serial_number="SU-C", capacity=4000, user_id=None)


def test_list_units_with_filters(engine) -> None:
    _seed_units(engine)
    with get_session(engine) as session:
        assert [u.serial_number for u in list_solar_units(session)] == ["SU-A", "SU-B", "SU-C"]
        assert [u.serial_number for u in list_solar_units(session, status="fault")] == ["SU-B"]
        assert [u.serial_number for u in list_solar_units(session, user_id="alice")] == ["SU-A"]
        assert [u.serial_number for u in list_solar_units(session, unassigned=True)] == ["SU-C"]
        assert list_solar_units(session, status="MAINTENANCE") == []
        with pytest.raises(ValueError, match="Invalid status"):
            list_solar_units(session, status="BROKEN")


def test_unit_updates_status_and_assignment(engine) -> None:
    _seed_units(engine)
    with get_session(engine) as session:
        unit = update_solar_unit(session, "SU-A", capacity=6500, installation_date=date(2023, 5, 1))
        assert unit.capacity == 6500
        assert set_solar_unit_status(session, "SU-A", "maintenance").status == "MAINTENANCE"
        assert assign_user(session, "SU-C", "carol").user_id == "carol"
        assert unassign_user(session, "SU-B").user_id is None
        unit_id = unit.id

    with get_session(engine) as session:
        unit = get_solar_unit_by_id(session, unit_id)
        assert (unit.status, unit.capacity, unit.installation_date) == ("MAINTENANCE", 6500, date(2023, 5, 1))
        assert [u.serial_number for u in list_solar_units(session, unassigned=True)] == ["SU-B"]
        with pytest.raises(ValueError):
            set_solar_unit_status(session, "SU-A", "OFFLINE")
        with pytest.raises(ValueError):
            update_solar_unit(session, "SU-A", capacity=0)
        with pytest.raises(SolarUnitNotFound):
            set_solar_unit_status(session, "SU-Z", "ACTIVE")


def test_delete_unit_removes_its_records(engine) -> None:
    _seed_units(engine)
    with get_session(engine) as session:
        keep = get_solar_unit(session, "SU-A")
        insert_records(session, keep.id, make_readings([1.0, 2.0]))
        doomed = get_solar_unit(session, "SU-B")
        insert_records(session, doomed.id, make_readings([5.0, 6.0, 7.0]))
        keep_id, doomed_id = keep.id, doomed.id

    with get_session(engine) as session:
        assert delete_solar_unit(session, "SU-B") == 3

    with get_session(engine) as session:
        assert count_records(session, doomed_id) == 0
        assert count_records(session, keep_id) == 2
        with pytest.raises(SolarUnitNotFound):
            get_solar_unit(session, "SU-B")


def test_record_lifecycle(engine) -> None:
    with get_session(engine) as session:
        unit = create_solar_unit(session, serial_number="SU-R", capacity=5000, user_id="u")
        stamp = datetime(2025, 6, 1, 10, tzinfo=timezone.utc)
        record = create_record(session, unit.id, energy_produced=4200, timestamp=stamp)
        defaulted = create_record(session, unit.id, energy_produced=0, interval_hours=1)
        record_id, defaulted_id, unit_id = record.id, defaulted.id, unit.id

    with get_session(engine) as session:
        record = get_record(session, record_id)
        assert record.energy_produced == 4200
        assert record.interval_hours == 2.0
        assert get_record(session, defaulted_id).timestamp is not None
        updated = update_record(session, record_id, energy_produced=3900, interval_hours=1.5)
        assert (updated.energy_produced, updated.interval_hours) == (3900, 1.5)
        with pytest.raises(ValueError, match="non-negative"):
            update_record(session, record_id, energy_produced=-1)
        with pytest.raises(ValueError, match="between 0.1 and 24"):
            create_record(session, unit_id, energy_produced=10, interval_hours=30)
        with pytest.raises(SolarUnitNotFound):
            create_record(session, 9999, energy_produced=10)

    with get_session(engine) as session:
        delete_record(session, record_id)
    with get_session(engine) as session:
        with pytest.raises(RecordNotFound):
            get_record(session, record_id)
        assert count_records(session, unit_id) == 1


def test_records_are_paged_newest_first(engine) -> None:
    with get_session(engine) as session:
        unit = create_solar_unit(session, serial_number="SU-P", capacity=5000, user_id="u")
        insert_records(session, unit.id, make_readings([float(value) for value in range(25)]))
        first = list_records_page(session, unit.id, limit=10, page=1)
        last = list_records_page(session, unit.id, limit=10, page=3)
        beyond = list_records_page(session, unit.id, limit=10, page=4)
        first_values = [record.energy_produced for record in first.records]
        last_values = [record.energy_produced for record in last.records]

    assert (first.total, first.pages) == (25, 3)
    assert first_values == [float(value) for value in range(24, 14, -1)]
    assert last_values == [4.0, 3.0, 2.0, 1.0, 0.0]
    assert beyond.records == []
    with pytest.raises(ValueError):
        with get_session(engine) as session:
            list_records_page(session, 1, limit=0)
