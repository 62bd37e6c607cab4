from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path

import pytest

from solarseed.config import ConfigurationError, load_settings, parse_settings

from tests.conftest import get_test_logger

logger = get_test_logger(__name__)
logger.info("Starting tests for settings loading")


def test_defaults_when_nothing_configured(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    settings = load_settings()
    assert settings.source is None
    assert settings.unit.serial_number == "SU-2024-001"
    assert settings.unit.capacity == 5000.0
    assert settings.generation.start == date(2025, 6, 1)
    assert settings.generation.interval_hours == 2.0
    assert settings.anomalies.min_per_category == 5
    assert settings.anomalies.max_per_category == 20
    assert settings.log_level == logging.INFO


def test_yaml_file_is_parsed(settings_file: Path, database_url: str) -> None:
    settings = load_settings(settings_file)
    assert settings.source == settings_file
    assert settings.storage.database_url == database_url
    assert settings.unit.serial_number == "SU-TEST-001"
    assert settings.generation.seed == 42
    assert settings.log_level == logging.DEBUG
    assert isinstance(settings.log.log_dir, Path)


def test_json_file_is_parsed(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"unit": {"capacity": 7500, "installation_date": "2023-03-01"}}), encoding="utf-8")
    settings = load_settings(path)
    assert settings.unit.capacity == 7500.0
    assert settings.unit.installation_date == date(2023, 3, 1)


def test_environment_lookup(settings_file: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SOLARSEED_CONFIG", str(settings_file))
    monkeypatch.setenv("DATABASE_URL", "sqlite:///override.db")
    settings = load_settings()
    assert settings.source == settings_file
    assert settings.storage.database_url == "sqlite:///override.db"


def test_missing_env_file_is_an_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SOLARSEED_CONFIG", str(tmp_path / "nope.yaml"))
    with pytest.raises(ConfigurationError):
        load_settings()


def test_missing_explicit_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="does not exist"):
        load_settings(tmp_path / "absent.yaml")


@pytest.mark.parametrize(
    "raw, message",
    [
        ({"unit": {"capacity": 0}}, "capacity"),
        ({"unit": {"status": "BROKEN"}}, "status"),
        ({"generation": {"interval_hours": 5}}, "divide"),
        ({"generation": {"interval_hours": 48}}, "between"),
        ({"anomalies": {"min_per_category": 10, "max_per_category": 3}}, "quota"),
        ({"anomalies": {"late_rate": 1.5}}, "late_rate"),
        ({"generation": {"start": "June first"}}, "ISO date"),
        ({"unit": {"colour": "blue"}}, "configuration key"),
        ({"storage": ["sqlite://"]}, "mapping"),
    ],
)
def test_invalid_values_are_rejected(raw: dict, message: str) -> None:
    with pytest.raises(ConfigurationError, match=message):
        parse_settings(raw)


def test_non_mapping_root_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        parse_settings(["not", "a", "mapping"])  # type: ignore[arg-type]
