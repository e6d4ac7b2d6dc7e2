"""Завантаження YAML конфігурацій та налаштувань SARFI."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/sarfi.yaml"


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Зчитує YAML файл та повертає його вміст як dict.

    Args:
        path: Шлях до файлу.

    Returns:
        Вміст файлу як словник.

    Raises:
        FileNotFoundError: Якщо файл не знайдено.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")
    with p.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    log.debug("Loaded config %s (%d top-level keys)", p.name, len(data or {}))
    return data or {}


@dataclass(slots=True)
class Settings:
    """Engine settings from ``config/sarfi.yaml``; every key has a default."""

    weight_tolerance: float = 1e-9
    percent_decimals: int = 4
    voltage_level: str = "All"
    exclude_special_events: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, cfg: dict[str, Any]) -> Settings:
        engine = cfg.get("engine", {}) or {}
        export = cfg.get("export", {}) or {}
        report = cfg.get("report", {}) or {}
        logging_cfg = cfg.get("logging", {}) or {}
        return cls(
            weight_tolerance=float(engine.get("weight_tolerance", 1e-9)),
            percent_decimals=int(export.get("percent_decimals", 4)),
            voltage_level=str(report.get("voltage_level", "All")),
            exclude_special_events=bool(report.get("exclude_special_events", False)),
            log_level=str(logging_cfg.get("level", "INFO")),
        )


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings; a missing file at the default path yields defaults."""
    if path is None:
        path = DEFAULT_CONFIG_PATH
        if not Path(path).exists():
            log.debug("No %s — using built-in defaults", path)
            return Settings()
    return Settings.from_dict(load_yaml(path))
