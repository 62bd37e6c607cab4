"""Storage for solar units and energy generation records."""

from .database import UNIT_STATUSES, Base, EnergyGenerationRecord, SolarUnit, get_session, init_engine
from .records import (
    RecordNotFound,
    RecordPage,
    SolarUnitNotFound,
    assign_user,
    clear_all,
    count_records,
    create_record,
    create_solar_unit,
    delete_record,
    delete_solar_unit,
    get_record,
    get_solar_unit,
    get_solar_unit_by_id,
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

__all__ = [
    "UNIT_STATUSES",
    "Base",
    "EnergyGenerationRecord",
    "SolarUnit",
    "get_session",
    "init_engine",
    "RecordNotFound",
    "RecordPage",
    "SolarUnitNotFound",
    "assign_user",
    "clear_all",
    "count_records",
    "create_record",
    "create_solar_unit",
    "delete_record",
    "delete_solar_unit",
    "get_record",
    "get_solar_unit",
    "get_solar_unit_by_id",
    "insert_records",
    "latest_record",
    "list_records_page",
    "list_solar_units",
    "load_records_frame",
    "set_solar_unit_status",
    "unassign_user",
    "update_record",
    "update_solar_unit",
]
