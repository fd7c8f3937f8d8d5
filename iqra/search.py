from __future__ import annotations

from typing import Callable, Iterable, TypeVar

from .models import StaffMember, Student

T = TypeVar("T")


def _matching(records: Iterable[T], query: str, fields: Callable[[T], Iterable[str]]) -> list[T]:
    if not (query or "").strip():
        return list(records)
    q = query.lower()
    return [r for r in records if any(q in (value or "").lower() for value in fields(r))]


def filter_students(students: Iterable[Student], query: str) -> list[Student]:
    """Students whose name, roll or batch contains ``query`` (case-insensitive)."""

    return _matching(students, query, lambda s: (s.name, s.roll, s.batch))


def filter_staff(staff: Iterable[StaffMember], query: str) -> list[StaffMember]:
    return _matching(staff, query, lambda s: (s.name, s.role, s.phone))
