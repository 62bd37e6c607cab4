"""Shared helper utilities for the solarseed test-suite."""

from .data import build_fake_records_frame, make_readings, write_settings_file

__all__ = [
    "build_fake_records_frame",
    "make_readings",
    "write_settings_file",
]
