"""Derived financial views.

Every function here is pure: it reads the records it is given and returns new
plain data. Sums are Decimal. A record whose amount is missing or unparsable
contributes zero instead of failing the whole report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional, TypeVar

from .constants import FEE_CATEGORY, MONTHS, UNKNOWN_STUDENT
from .models import Expense, FeePayment, StaffMember, Student, parse_amount
from .store import EntityStore

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

T = TypeVar("T")


@dataclass
class MonthlyTotals:
    income: Decimal = ZERO
    expense: Decimal = ZERO

    @property
    def profit(self) -> Decimal:
        return self.income - self.expense


@dataclass
class Transaction:
    kind: str  # "Fee" | "Expense"
    record_id: str
    description: str
    category: str
    amount: Decimal
    date: Optional[date]


@dataclass
class YearlySeries:
    year: int
    labels: list[str] = field(default_factory=lambda: list(MONTHS))
    income: list[Decimal] = field(default_factory=lambda: [ZERO] * 12)
    expense: list[Decimal] = field(default_factory=lambda: [ZERO] * 12)


@dataclass
class DashboardStats:
    total_students: int
    total_staff: int
    totals: MonthlyTotals
    recent: list[Transaction]


def safe_amount(value: Any) -> Decimal:
    """Amount as Decimal, or zero when it is missing or not a number."""

    amount = parse_amount(value)
    if amount is None:
        logger.debug("treating unusable amount %r as 0", value)
        return ZERO
    return amount


def _in_month(d: Optional[date], year: int, month_index: int) -> bool:
    return d is not None and d.year == year and d.month == month_index + 1


def _check_month_index(month_index: int) -> None:
    if not 0 <= month_index <= 11:
        raise ValueError(f"month_index must be 0..11, got {month_index}")


def _sort_key(d: Optional[date]) -> date:
    return date.min if d is None else d


def monthly_totals(
    fees: Iterable[FeePayment], expenses: Iterable[Expense], year: int, month_index: int
) -> MonthlyTotals:
    _check_month_index(month_index)
    totals = MonthlyTotals()
    for f in fees:
        if _in_month(f.date, year, month_index):
            totals.income += safe_amount(f.amount)
    for e in expenses:
        if _in_month(e.date, year, month_index):
            totals.expense += safe_amount(e.amount)
    return totals


def student_name(students: Iterable[Student], student_id: str) -> str:
    for s in students:
        if s.id == student_id:
            return s.name
    return UNKNOWN_STUDENT


def recent_transactions(
    fees: Iterable[FeePayment],
    expenses: Iterable[Expense],
    limit: int = 5,
    *,
    students: Iterable[Student] = (),
) -> list[Transaction]:
    names = {s.id: s.name for s in students}
    merged = [
        Transaction(
            kind="Fee",
            record_id=f.id,
            description=f"Fee from {names.get(f.student_id, UNKNOWN_STUDENT)}",
            category=FEE_CATEGORY,
            amount=safe_amount(f.amount),
            date=f.date,
        )
        for f in fees
    ]
    merged.extend(
        Transaction(
            kind="Expense",
            record_id=e.id,
            description=e.title,
            category=e.category,
            amount=safe_amount(e.amount),
            date=e.date,
        )
        for e in expenses
    )
    # sorted() is stable, also with reverse=True.
    merged = sorted(merged, key=lambda t: _sort_key(t.date), reverse=True)
    return merged[: max(limit, 0)]


def yearly_series(fees: Iterable[FeePayment], expenses: Iterable[Expense], year: int) -> YearlySeries:
    series = YearlySeries(year=year)
    for f in fees:
        if f.date is not None and f.date.year == year:
            series.income[f.date.month - 1] += safe_amount(f.amount)
    for e in expenses:
        if e.date is not None and e.date.year == year:
            series.expense[e.date.month - 1] += safe_amount(e.amount)
    return series


def expense_by_category(expenses: Iterable[Expense]) -> dict[str, Decimal]:
    categories: dict[str, Decimal] = {}
    for e in expenses:
        categories[e.category] = categories.get(e.category, ZERO) + safe_amount(e.amount)
    return categories


def sorted_by_date(records: Iterable[T]) -> list[T]:
    """Newest first; records without a date go last."""

    return sorted(records, key=lambda r: _sort_key(getattr(r, "date", None)), reverse=True)


def student_fee_history(fees: Iterable[FeePayment], student_id: str) -> list[FeePayment]:
    return sorted_by_date(f for f in fees if f.student_id == student_id)


def total_monthly_salary(staff: Iterable[StaffMember]) -> Decimal:
    return sum((safe_amount(s.salary) for s in staff), ZERO)


def dashboard_stats(store: EntityStore, year: int, month_index: int, limit: int = 5) -> DashboardStats:
    students = store.students
    return DashboardStats(
        total_students=len(students),
        total_staff=len(store.staff),
        totals=monthly_totals(store.fees, store.expenses, year, month_index),
        recent=recent_transactions(store.fees, store.expenses, limit, students=students),
    )
