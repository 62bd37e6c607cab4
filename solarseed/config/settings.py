"""Central configuration for seeding and analytics."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from solarseed.infrastructure.database import UNIT_STATUSES


class ConfigurationError(RuntimeError):
    """Raised when the configuration file is missing or invalid."""


@dataclass(slots=True)
class StorageConfig:
    database_url: str = "sqlite:///./solarseed.db"
    echo: bool = False


@dataclass(slots=True)
class SolarUnitConfig:
    serial_number: str = "SU-2024-001"
    capacity: float = 5000.0
    status: str = "ACTIVE"
    user_id: str = "user_test123"
    installation_date: Optional[date] = date(2024, 1, 15)


@dataclass(slots=True)
class GenerationConfig:
    start: date = date(2025, 6, 1)
    interval_hours: float = 2.0
    timezone: str = "UTC"
    seed: Optional[int] = None
    backfill: bool = True
    keep_existing: bool = False


@dataclass(slots=True)
class AnomalyConfig:
    min_per_category: int = 5
    max_per_category: int = 20
    base_rate: float = 0.08
    late_rate: float = 0.30
    late_progress: float = 0.7


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    log_dir: Path = Path("logs")


@dataclass(slots=True)
class Settings:
    storage: StorageConfig = field(default_factory=StorageConfig)
    unit: SolarUnitConfig = field(default_factory=SolarUnitConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    anomalies: AnomalyConfig = field(default_factory=AnomalyConfig)
    log: LoggingConfig = field(default_factory=LoggingConfig)
    source: Optional[Path] = None

    @property
    def log_level(self) -> int:
        level = logging.getLevelName(self.log.level.upper())
        return level if isinstance(level, int) else logging.INFO


def _load_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"Configuration file {path} does not exist")
    text = path.read_text(encoding="utf-8")
    try:
        suffix = path.suffix.lower()
        if suffix in {".yaml", ".yml"}:
            return yaml.safe_load(text) or {}
        if suffix == ".json":
            return json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Invalid configuration format: {exc}") from exc
    raise ConfigurationError("Unsupported configuration format; use YAML or JSON")


def _coerce_date(value: Any, key: str) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise ConfigurationError(f"`{key}` must be an ISO date, got {value!r}") from exc


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"`{name}` must be a mapping")
    return dict(value)


def _validate(settings: Settings) -> None:
    if settings.unit.capacity <= 0:
        raise ConfigurationError("Solar unit capacity must be positive")
    if settings.unit.status not in UNIT_STATUSES:
        raise ConfigurationError(f"Solar unit status must be one of {', '.join(UNIT_STATUSES)}")
    if not settings.unit.serial_number:
        raise ConfigurationError("Solar unit serial number is mandatory")

    interval = settings.generation.interval_hours
    if not 0.1 <= interval <= 24:
        raise ConfigurationError("Interval must be between 0.1 and 24 hours")
    per_day = 24 / interval
    if abs(per_day - round(per_day)) > 1e-9:
        raise ConfigurationError("Interval hours must divide a day evenly")

    anomalies = settings.anomalies
    if anomalies.min_per_category < 0 or anomalies.max_per_category < anomalies.min_per_category:
        raise ConfigurationError("Anomaly quota requires 0 <= min_per_category <= max_per_category")
    for name in ("base_rate", "late_rate", "late_progress"):
        value = getattr(anomalies, name)
        if not 0.0 <= value <= 1.0:
            raise ConfigurationError(f"`anomalies.{name}` must be within [0, 1]")


def parse_settings(raw: Dict[str, Any], source: Optional[Path] = None) -> Settings:
    if not isinstance(raw, dict):
        raise ConfigurationError("Configuration root must be a mapping")
    try:
        storage = StorageConfig(**_section(raw, "storage"))

        unit_data = _section(raw, "unit")
        if "installation_date" in unit_data:
            unit_data["installation_date"] = _coerce_date(unit_data["installation_date"], "unit.installation_date")
        if "capacity" in unit_data:
            unit_data["capacity"] = float(unit_data["capacity"])
        unit = SolarUnitConfig(**unit_data)

        generation_data = _section(raw, "generation")
        if "start" in generation_data:
            generation_data["start"] = _coerce_date(generation_data["start"], "generation.start")
        if "interval_hours" in generation_data:
            generation_data["interval_hours"] = float(generation_data["interval_hours"])
        generation = GenerationConfig(**generation_data)

        anomalies = AnomalyConfig(**_section(raw, "anomalies"))

        logging_data = _section(raw, "logging")
        if logging_data.get("log_dir"):
            logging_data["log_dir"] = Path(logging_data["log_dir"])
        logging_cfg = LoggingConfig(**logging_data)
    except TypeError as exc:
        raise ConfigurationError(f"Unknown or invalid configuration key: {exc}") from exc
    except ValueError as exc:
        raise ConfigurationError(f"Invalid configuration value: {exc}") from exc

    env_url = os.getenv("DATABASE_URL")
    if env_url:
        storage.database_url = env_url

    settings = Settings(
        storage=storage,
        unit=unit,
        generation=generation,
        anomalies=anomalies,
        log=logging_cfg,
        source=source,
    )
    _validate(settings)
    return settings


def load_settings(path: Optional[Path | str] = None) -> Settings:
    """Resolve the configuration file and parse it.

    Lookup order: explicit ``path``, ``SOLARSEED_CONFIG``, ``config/settings.yaml``.
    An explicit path that does not exist is an error; otherwise, when nothing
    is found, defaults are returned.
    """
    if path:
        candidate = Path(path)
        return parse_settings(_load_file(candidate), source=candidate)

    candidate_paths: List[Path] = []
    env_path = os.getenv("SOLARSEED_CONFIG")
    if env_path:
        candidate_paths.append(Path(env_path))
    candidate_paths.append(Path("config/settings.yaml"))

    for candidate in candidate_paths:
        if candidate.exists():
            return parse_settings(_load_file(candidate), source=candidate)
    if env_path:
        raise ConfigurationError(f"SOLARSEED_CONFIG points to missing file {env_path}")
    return parse_settings({})
