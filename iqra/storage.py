from __future__ import annotations

import logging
import os
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from openpyxl import Workbook

from .aggregator import expense_by_category, yearly_series
from .codec import encode
from .constants import BACKUP_PREFIX, DATA_JSON_PATH, EXPENSES, FEES, STAFF, STUDENTS
from .store import EntityStore

logger = logging.getLogger(__name__)


class JsonFileStorage:
    """Snapshot text kept in a single file, overwritten on every save."""

    def __init__(self, path: Path = DATA_JSON_PATH):
        self.path = path

    def read_text(self) -> Optional[str]:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def write_text(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, self.path)


class MemoryStorage:
    def __init__(self, text: Optional[str] = None):
        self.text = text
        self.writes = 0

    def read_text(self) -> Optional[str]:
        return self.text

    def write_text(self, text: str) -> None:
        self.text = text
        self.writes += 1


# ---------------- Backup ----------------
def backup_filename(day: date) -> str:
    return f"{BACKUP_PREFIX}{day.isoformat()}.json"


def write_backup(store: EntityStore, directory: Path, day: date) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / backup_filename(day)
    path.write_text(encode(store), encoding="utf-8")
    logger.info("backup written to %s", path)
    return path


# ---------------- Excel export ----------------
STUDENT_HEADERS = ["id", "name", "roll", "parent_name", "batch", "phone", "address", "status", "joined"]
FEE_HEADERS = ["id", "student_id", "amount", "month", "date", "mode"]
EXPENSE_HEADERS = ["id", "title", "category", "amount", "date"]
STAFF_HEADERS = ["id", "name", "role", "phone", "salary", "joined"]

SHEETS = [
    (STUDENTS, STUDENT_HEADERS),
    (FEES, FEE_HEADERS),
    (EXPENSES, EXPENSE_HEADERS),
    (STAFF, STAFF_HEADERS),
]


def _cell_value(value: Any) -> Any:
    # Excel has no timezone support.
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


def export_workbook(store: EntityStore, path: Path, year: int) -> Path:
    """Write every collection plus a yearly report to an .xlsx file.

    Each collection gets a sheet with a header row. The ``report`` sheet holds
    month-by-month income/expense for ``year`` and the expense categories.
    """

    wb = Workbook()
    # remove default sheet
    wb.remove(wb.active)

    for sheet_name, headers in SHEETS:
        ws = wb.create_sheet(sheet_name)
        ws.append(headers)
        for record in store.collection(sheet_name):
            ws.append([_cell_value(getattr(record, h)) for h in headers])

    ws = wb.create_sheet("report")
    series = yearly_series(store.fees, store.expenses, year)
    ws.append(["month", "income", "expense"])
    for label, income, expense in zip(series.labels, series.income, series.expense):
        ws.append([label, income, expense])
    ws.append([])
    ws.append(["category", "amount"])
    for category, amount in expense_by_category(store.expenses).items():
        ws.append([category, amount])

    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    logger.info("workbook exported to %s", path)
    return path
