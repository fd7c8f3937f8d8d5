from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional, Protocol

from .codec import encode, load_text
from .constants import DEFAULT_STUDENT_STATUS, EXPENSES, FEES, STAFF, STUDENTS
from .errors import ValidationError
from .logger import AppEvent
from .models import Expense, FeePayment, StaffMember, Student, parse_amount, parse_date
from .store import EntityStore

logger = logging.getLogger(__name__)

Listener = Callable[[AppEvent], None]


class TextStorage(Protocol):
    def read_text(self) -> Optional[str]: ...

    def write_text(self, text: str) -> None: ...


def _field(fields: Mapping[str, Any], key: str) -> str:
    value = fields.get(key)
    return "" if value is None else str(value).strip()


def _required(fields: Mapping[str, Any], key: str, label: str) -> str:
    value = _field(fields, key)
    if not value:
        raise ValidationError(key, f"{label} is required")
    return value


def _required_amount(fields: Mapping[str, Any], key: str, label: str) -> Decimal:
    raw = fields.get(key)
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError(key, f"{label} is required")
    amount = parse_amount(raw)
    if amount is None:
        raise ValidationError(key, f"{label} must be a number, got {raw!r}")
    if amount < 0:
        raise ValidationError(key, f"{label} cannot be negative")
    return amount


def _date_field(fields: Mapping[str, Any], key: str, label: str):
    raw = fields.get(key)
    parsed = parse_date(raw)
    if parsed is None:
        raise ValidationError(key, f"{label} must be a date (YYYY-MM-DD), got {raw!r}")
    return parsed


class Repository:
    """Validated add/delete operations over an EntityStore.

    Each successful change is persisted as a full snapshot through
    ``storage.write_text`` and then announced to subscribers.
    """

    def __init__(self, store: EntityStore, storage: TextStorage):
        self.store = store
        self.storage = storage
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _stamp(self) -> str:
        return self.store.clock().isoformat(timespec="seconds")

    # ---------------- Commit ----------------
    def _commit(self, event: AppEvent, undo: Callable[[], None]) -> None:
        self.store.version += 1
        try:
            self.storage.write_text(encode(self.store))
        except Exception:
            undo()
            self.store.version -= 1
            raise
        logger.info("%s %s:%s %s", event.action, event.entity_type, event.entity_id, event.details)
        for listener in list(self._listeners):
            listener(event)

    def replace_all(self, text: str, action: str = "restore") -> None:
        """Swap the whole store for a snapshot in ``text`` and persist it.

        A SchemaError leaves both the store and the stored text untouched.
        """

        previous = self.store.snapshot()
        load_text(self.store, text)
        event = AppEvent(timestamp=self._stamp(), action=action, entity_type="store", entity_id="*")
        self._commit(event, undo=lambda: self.store.load(previous))

    def _append(self, collection: str, record: Any, details: str) -> None:
        items = self.store.collection(collection)
        items.append(record)
        event = AppEvent(timestamp=self._stamp(), action="add", entity_type=collection, entity_id=record.id, details=details)
        self._commit(event, undo=lambda: items.remove(record))

    def _delete(self, collection: str, record_id: str, confirmed: bool) -> bool:
        if not confirmed:
            return False
        items = self.store.collection(collection)
        for pos, record in enumerate(items):
            if record.id == record_id:
                break
        else:
            return False
        del items[pos]
        event = AppEvent(timestamp=self._stamp(), action="delete", entity_type=collection, entity_id=record_id)
        self._commit(event, undo=lambda: items.insert(pos, record))
        return True

    # ---------------- Students ----------------
    def add_student(self, fields: Mapping[str, Any]) -> Student:
        name = _required(fields, "name", "Name")
        roll = _required(fields, "roll", "Roll number")
        batch = _required(fields, "batch", "Batch")
        student = Student(
            id=self.store.next_id(),
            name=name,
            roll=roll,
            batch=batch,
            parent_name=_field(fields, "parent_name"),
            phone=_field(fields, "phone"),
            address=_field(fields, "address"),
            status=_field(fields, "status") or DEFAULT_STUDENT_STATUS,
            joined=self.store.clock(),
        )
        self._append(STUDENTS, student, name)
        return student

    def delete_student(self, student_id: str, confirmed: bool = True) -> bool:
        # Fee payments that reference the student are kept.
        return self._delete(STUDENTS, student_id, confirmed)

    # ---------------- Fees ----------------
    def add_fee_payment(self, fields: Mapping[str, Any]) -> FeePayment:
        student_id = _field(fields, "student_id")
        if not student_id:
            raise ValidationError("student_id", "no student selected")
        amount = _required_amount(fields, "amount", "Amount")
        if not _field(fields, "date"):
            paid_on = self.store.clock().date()
        else:
            paid_on = _date_field(fields, "date", "Date")
        fee = FeePayment(
            id=self.store.next_id(),
            student_id=student_id,
            amount=amount,
            date=paid_on,
            month=_field(fields, "month"),
            mode=_field(fields, "mode"),
        )
        self._append(FEES, fee, f"{amount} for {student_id}")
        return fee

    def delete_fee_payment(self, fee_id: str, confirmed: bool = True) -> bool:
        return self._delete(FEES, fee_id, confirmed)

    # ---------------- Expenses ----------------
    def add_expense(self, fields: Mapping[str, Any]) -> Expense:
        title = _required(fields, "title", "Title")
        category = _required(fields, "category", "Category")
        amount = _required_amount(fields, "amount", "Amount")
        _required(fields, "date", "Date")
        spent_on = _date_field(fields, "date", "Date")
        expense = Expense(id=self.store.next_id(), title=title, category=category, amount=amount, date=spent_on)
        self._append(EXPENSES, expense, f"{title} ({category})")
        return expense

    def delete_expense(self, expense_id: str, confirmed: bool = True) -> bool:
        return self._delete(EXPENSES, expense_id, confirmed)

    # ---------------- Staff ----------------
    def add_staff_member(self, fields: Mapping[str, Any]) -> StaffMember:
        name = _required(fields, "name", "Name")
        role = _required(fields, "role", "Role")
        phone = _required(fields, "phone", "Phone")
        salary = _required_amount(fields, "salary", "Salary")
        member = StaffMember(
            id=self.store.next_id(),
            name=name,
            role=role,
            phone=phone,
            salary=salary,
            joined=self.store.clock(),
        )
        self._append(STAFF, member, f"{name} ({role})")
        return member

    def delete_staff_member(self, staff_id: str, confirmed: bool = True) -> bool:
        return self._delete(STAFF, staff_id, confirmed)
