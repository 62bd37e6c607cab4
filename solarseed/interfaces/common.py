from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console

_CONSOLE = Console()


def console() -> Console:
    return _CONSOLE


def setup_logging(level: int = logging.INFO, log_dir: Path = Path("logs"), name: str = "solarseed") -> Path:
    """Configure a rotating file logger plus console echo."""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"{name}.log"
    handler = RotatingFileHandler(
        log_path,
        maxBytes=1_000_000,
        backupCount=3,
        encoding="utf-8",
    )
    console_handler = logging.StreamHandler()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        handlers=[handler, console_handler],
        force=True,
    )
    return log_path
