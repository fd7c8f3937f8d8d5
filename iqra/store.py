from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from .constants import COLLECTIONS, EXPENSES, FEES, SCHEMA_VERSION, SCHEMA_VERSION_KEY, STAFF, STUDENTS
from .errors import SchemaError
from .migrations import migrate
from .models import Expense, FeePayment, StaffMember, Student

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

RECORD_TYPES: dict[str, Any] = {
    STUDENTS: Student,
    FEES: FeePayment,
    EXPENSES: Expense,
    STAFF: StaffMember,
}


def is_recognizable(data: Any) -> bool:
    if not isinstance(data, dict):
        return False
    return SCHEMA_VERSION_KEY in data or any(name in data for name in COLLECTIONS)


def _build_collection(name: str, raw: Any) -> list[Any]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise SchemaError(f"'{name}' must be a list, got {type(raw).__name__}")
    record_type = RECORD_TYPES[name]
    records = []
    for pos, item in enumerate(raw):
        if not isinstance(item, dict):
            raise SchemaError(f"'{name}'[{pos}] is not an object")
        if item.get("id") in (None, ""):
            raise SchemaError(f"'{name}'[{pos}] has no id")
        records.append(record_type.from_dict(item))
    return records


def _highest_numeric_id(built: dict[str, list[Any]], floor: int) -> int:
    highest = floor
    for records in built.values():
        for record in records:
            try:
                highest = max(highest, int(record.id))
            except ValueError:
                continue
    return highest


class EntityStore:
    """The four ordered collections plus identity allocation.

    One store belongs to one session. Collections keep insertion order; any
    display ordering is computed by the aggregator or the search engine.
    """

    def __init__(self, clock: Clock = datetime.now):
        self.clock = clock
        self.students: list[Student] = []
        self.fees: list[FeePayment] = []
        self.expenses: list[Expense] = []
        self.staff: list[StaffMember] = []
        # Bumped on every committed change; lets callers detect stale views.
        self.version = 0
        self._last_id = 0

    def next_id(self) -> str:
        candidate = int(self.clock().timestamp() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return str(candidate)

    def collection(self, name: str) -> list[Any]:
        if name not in RECORD_TYPES:
            raise KeyError(name)
        return getattr(self, name)

    def find_student(self, student_id: str) -> Optional[Student]:
        for s in self.students:
            if s.id == student_id:
                return s
        return None

    def load(self, snapshot: dict[str, Any]) -> None:
        """Replace every collection from a decoded snapshot.

        Raises SchemaError without touching the current state if the snapshot
        is not recognizable or any record is malformed.
        """

        if not is_recognizable(snapshot):
            raise SchemaError("snapshot is not a recognizable store shape")
        data = migrate(snapshot)
        built = {name: _build_collection(name, data.get(name)) for name in COLLECTIONS}
        last_id = _highest_numeric_id(built, self._last_id)

        self.students, self.fees, self.expenses, self.staff, self._last_id = (
            built[STUDENTS],
            built[FEES],
            built[EXPENSES],
            built[STAFF],
            last_id,
        )
        self.version += 1
        logger.info(
            "loaded snapshot: %d students, %d fees, %d expenses, %d staff",
            len(self.students),
            len(self.fees),
            len(self.expenses),
            len(self.staff),
        )

    def snapshot(self) -> dict[str, Any]:
        out: dict[str, Any] = {SCHEMA_VERSION_KEY: SCHEMA_VERSION}
        for name in COLLECTIONS:
            out[name] = [record.to_dict() for record in getattr(self, name)]
        return out
