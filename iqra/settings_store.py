from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .constants import BACKUP_DIR, DATA_JSON_PATH, EXPORT_XLSX_PATH, SETTINGS_JSON_PATH


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


@dataclass
class Settings:
    data_file: str = DATA_JSON_PATH.name
    backup_dir: str = BACKUP_DIR.name
    export_file: str = EXPORT_XLSX_PATH.name
    recent_limit: int = 5
    default_year: int = 0  # 0 = current year from the clock
    default_month: int = 0  # 1..12, 0 = current month from the clock

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Settings":
        try:
            recent_limit = _clamp(int(d.get("recent_limit", 5)), 1, 50)
        except Exception:
            recent_limit = 5
        try:
            default_year = int(d.get("default_year", 0))
        except Exception:
            default_year = 0
        try:
            default_month = int(d.get("default_month", 0))
        except Exception:
            default_month = 0
        if not 0 <= default_month <= 12:
            default_month = 0
        return Settings(
            data_file=str(d.get("data_file") or DATA_JSON_PATH.name),
            backup_dir=str(d.get("backup_dir") or BACKUP_DIR.name),
            export_file=str(d.get("export_file") or EXPORT_XLSX_PATH.name),
            recent_limit=recent_limit,
            default_year=max(default_year, 0),
            default_month=default_month,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "data_file": self.data_file,
            "backup_dir": self.backup_dir,
            "export_file": self.export_file,
            "recent_limit": self.recent_limit,
            "default_year": self.default_year,
            "default_month": self.default_month,
        }

    @staticmethod
    def resolve(base: Path, value: str) -> Path:
        """Relative paths in settings are relative to the settings file."""
        p = Path(value)
        return p if p.is_absolute() else base / p


class SettingsStore:
    def __init__(self, path: Path = SETTINGS_JSON_PATH):
        self.path = path

    @property
    def base_dir(self) -> Path:
        return self.path.parent

    def load(self) -> Settings:
        if not self.path.exists():
            settings = Settings()
            self.save(settings)
            return settings

        with self.path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return Settings.from_dict(data if isinstance(data, dict) else {})

    def save(self, settings: Settings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(settings.to_dict(), f, indent=2)
            f.write("\n")
