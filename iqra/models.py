from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .constants import DEFAULT_STUDENT_STATUS


def parse_amount(value: Any) -> Optional[Decimal]:
    """Parse a stored monetary value into a Decimal.

    Returns None for missing, blank, non-numeric or non-finite input. Floats go
    through ``str`` so 0.1 stays 0.1 rather than its binary expansion.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        value = str(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def parse_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        # Accept both "2024-03-05" and full timestamps.
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _amount_text(value: Optional[Decimal], raw: str = "") -> str:
    return raw if value is None else str(value)


def _unparsed(raw: Any, parsed: Optional[Decimal]) -> str:
    # Unusable stored amounts are written back as they were found.
    return _text(raw) if parsed is None else ""


def _date_text(value: Optional[date]) -> str:
    return "" if value is None else value.isoformat()


@dataclass
class Student:
    id: str
    name: str
    roll: str
    batch: str
    parent_name: str = ""
    phone: str = ""
    address: str = ""
    status: str = DEFAULT_STUDENT_STATUS
    joined: Optional[datetime] = None

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Student":
        return Student(
            id=_text(d.get("id")),
            name=_text(d.get("name")),
            roll=_text(d.get("roll")),
            batch=_text(d.get("batch")),
            parent_name=_text(d.get("parentName")),
            phone=_text(d.get("phone")),
            address=_text(d.get("address")),
            status=_text(d.get("status")) or DEFAULT_STUDENT_STATUS,
            joined=parse_timestamp(d.get("joined")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "roll": self.roll,
            "parentName": self.parent_name,
            "batch": self.batch,
            "phone": self.phone,
            "address": self.address,
            "status": self.status,
            "joined": "" if self.joined is None else self.joined.isoformat(),
        }


@dataclass
class FeePayment:
    id: str
    student_id: str
    amount: Optional[Decimal]
    date: Optional[date]
    month: str = ""
    mode: str = ""
    raw_amount: str = field(default="", compare=False, repr=False)

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "FeePayment":
        amount = parse_amount(d.get("amount"))
        return FeePayment(
            id=_text(d.get("id")),
            student_id=_text(d.get("studentId")),
            amount=amount,
            date=parse_date(d.get("date")),
            month=_text(d.get("month")),
            mode=_text(d.get("mode")),
            raw_amount=_unparsed(d.get("amount"), amount),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "studentId": self.student_id,
            "amount": _amount_text(self.amount, self.raw_amount),
            "month": self.month,
            "date": _date_text(self.date),
            "mode": self.mode,
        }


@dataclass
class Expense:
    id: str
    title: str
    category: str
    amount: Optional[Decimal]
    date: Optional[date]
    raw_amount: str = field(default="", compare=False, repr=False)

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Expense":
        amount = parse_amount(d.get("amount"))
        return Expense(
            id=_text(d.get("id")),
            title=_text(d.get("title")),
            category=_text(d.get("category")),
            amount=amount,
            date=parse_date(d.get("date")),
            raw_amount=_unparsed(d.get("amount"), amount),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "amount": _amount_text(self.amount, self.raw_amount),
            "date": _date_text(self.date),
        }


@dataclass
class StaffMember:
    id: str
    name: str
    role: str
    phone: str
    salary: Optional[Decimal]
    joined: Optional[datetime] = None
    raw_salary: str = field(default="", compare=False, repr=False)

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "StaffMember":
        salary = parse_amount(d.get("salary"))
        return StaffMember(
            id=_text(d.get("id")),
            name=_text(d.get("name")),
            role=_text(d.get("role")),
            phone=_text(d.get("phone")),
            salary=salary,
            joined=parse_timestamp(d.get("joined")),
            raw_salary=_unparsed(d.get("salary"), salary),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "phone": self.phone,
            "salary": _amount_text(self.salary, self.raw_salary),
            "joined": "" if self.joined is None else self.joined.isoformat(),
        }
