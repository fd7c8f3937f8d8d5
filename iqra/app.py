from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Callable, Optional

from . import aggregator
from .codec import load_text
from .constants import APP_NAME
from .errors import SchemaError
from .logger import ErrorLogger, configure_logging
from .models import Expense, FeePayment, StaffMember, Student
from .repository import Listener, Repository, TextStorage
from .search import filter_staff, filter_students
from .settings_store import Settings, SettingsStore
from .storage import JsonFileStorage, export_workbook, write_backup
from .store import EntityStore

logger = logging.getLogger(__name__)


class IqraSession:
    """One working session over the institute's records.

    Owns the store and wires it to storage, settings and the clock. The
    presentation layer calls ``repo`` for changes and the read methods here
    for views; it should re-read views after any event passed to
    ``subscribe`` callbacks.
    """

    def __init__(
        self,
        settings_store: Optional[SettingsStore] = None,
        storage: Optional[TextStorage] = None,
        clock: Callable[[], datetime] = datetime.now,
        err_logger: Optional[ErrorLogger] = None,
    ):
        self.err_logger = err_logger or ErrorLogger()
        self.settings_store = settings_store or SettingsStore()
        self.settings = self.settings_store.load()
        self.clock = clock

        if storage is None:
            storage = JsonFileStorage(self._path(self.settings.data_file))
        self.storage = storage
        self.store = EntityStore(clock)
        self.repo = Repository(self.store, self.storage)

    def _path(self, value: str) -> Path:
        return Settings.resolve(self.settings_store.base_dir, value)

    # ---------------- Lifecycle ----------------
    def open(self) -> bool:
        """Load the stored snapshot, if there is one."""

        text = self.storage.read_text()
        if text is None:
            return False
        try:
            load_text(self.store, text)
        except SchemaError as e:
            self.err_logger.log_exception(e, "open: stored snapshot rejected")
            raise
        return True

    def restore(self, text: str) -> None:
        try:
            self.repo.replace_all(text)
        except SchemaError as e:
            self.err_logger.log_exception(e, "restore")
            raise

    def backup(self) -> Path:
        return write_backup(self.store, self._path(self.settings.backup_dir), self.clock().date())

    def export(self, year: Optional[int] = None) -> Path:
        if year is None:
            year = self.current_period()[0]
        return export_workbook(self.store, self._path(self.settings.export_file), year)

    def subscribe(self, listener: Listener) -> None:
        self.repo.subscribe(listener)

    # ---------------- Views ----------------
    def current_period(self) -> tuple[int, int]:
        """(year, 0-based month index) used for the dashboard."""

        now = self.clock()
        year = self.settings.default_year or now.year
        month = self.settings.default_month or now.month
        return year, month - 1

    def dashboard(self) -> aggregator.DashboardStats:
        year, month_index = self.current_period()
        return aggregator.dashboard_stats(self.store, year, month_index, limit=self.settings.recent_limit)

    def yearly_report(self, year: Optional[int] = None) -> aggregator.YearlySeries:
        if year is None:
            year = self.current_period()[0]
        return aggregator.yearly_series(self.store.fees, self.store.expenses, year)

    def category_report(self) -> dict[str, Decimal]:
        return aggregator.expense_by_category(self.store.expenses)

    def students(self, query: str = "") -> list[Student]:
        return filter_students(self.store.students, query)

    def staff(self, query: str = "") -> list[StaffMember]:
        return filter_staff(self.store.staff, query)

    def student_detail(self, student_id: str) -> tuple[Optional[Student], list[FeePayment]]:
        return self.store.find_student(student_id), aggregator.student_fee_history(self.store.fees, student_id)

    def fee_table(self) -> list[FeePayment]:
        return aggregator.sorted_by_date(self.store.fees)

    def expense_table(self) -> list[Expense]:
        return aggregator.sorted_by_date(self.store.expenses)

    def payroll(self) -> Decimal:
        return aggregator.total_monthly_salary(self.store.staff)


def open_session(settings_path: Optional[Path] = None) -> IqraSession:
    configure_logging()
    session = IqraSession(SettingsStore(settings_path) if settings_path else None)
    session.open()
    logger.info("%s: session opened with %d students", APP_NAME, len(session.store.students))
    return session
