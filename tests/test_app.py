from __future__ import annotations

import json
from decimal import Decimal

import pytest

from iqra.app import IqraSession
from iqra.errors import SchemaError
from iqra.logger import ErrorLogger
from iqra.settings_store import Settings, SettingsStore


@pytest.fixture
def session(tmp_path, clock):
    return IqraSession(
        settings_store=SettingsStore(tmp_path / "settings.json"),
        clock=clock,
        err_logger=ErrorLogger(tmp_path / "error_log.txt"),
    )


def test_open_without_data(session):
    assert session.open() is False
    assert session.store.students == []


def test_changes_persist_across_sessions(session, tmp_path, clock):
    student = session.repo.add_student({"name": "Ayesha", "roll": "R5", "batch": "Batch-A"})
    session.repo.add_fee_payment({"student_id": student.id, "amount": "100", "date": "2024-03-05"})
    assert (tmp_path / "iqra_data.json").exists()

    again = IqraSession(settings_store=SettingsStore(tmp_path / "settings.json"), clock=clock)
    assert again.open() is True
    assert [s.name for s in again.students()] == ["Ayesha"]
    assert again.store.fees[0].amount == Decimal("100")


def test_open_rejects_bad_snapshot_and_logs(session, tmp_path):
    (tmp_path / "iqra_data.json").write_text("{broken", encoding="utf-8")
    with pytest.raises(SchemaError):
        session.open()
    assert session.store.students == []
    assert "open: stored snapshot rejected" in (tmp_path / "error_log.txt").read_text(encoding="utf-8")


def test_dashboard_uses_clock_period(session):
    student = session.repo.add_student({"name": "Ayesha", "roll": "R5", "batch": "Batch-A"})
    session.repo.add_fee_payment({"student_id": student.id, "amount": "100", "date": "2024-03-05"})
    session.repo.add_fee_payment({"student_id": student.id, "amount": "75", "date": "2024-04-01"})
    assert session.current_period() == (2024, 2)
    stats = session.dashboard()
    assert stats.totals.income == Decimal("100")
    assert len(stats.recent) == 2


def test_configured_period_overrides_clock(tmp_path, clock):
    settings_store = SettingsStore(tmp_path / "settings.json")
    settings_store.save(Settings(default_year=2023, default_month=12))
    session = IqraSession(settings_store=settings_store, clock=clock)
    assert session.current_period() == (2023, 11)


def test_restore_replaces_and_persists(session, tmp_path):
    events = []
    session.subscribe(events.append)
    session.repo.add_student({"name": "Old", "roll": "1", "batch": "B"})
    backup_text = json.dumps({"students": [{"id": "5", "name": "Restored", "roll": "2", "batch": "C"}]})

    session.restore(backup_text)

    assert [s.name for s in session.students()] == ["Restored"]
    assert session.students()[0].parent_name == ""
    stored = json.loads((tmp_path / "iqra_data.json").read_text(encoding="utf-8"))
    assert stored["students"][0]["name"] == "Restored"
    assert events[-1].action == "restore"


def test_restore_with_bad_text_keeps_store(session, tmp_path):
    session.repo.add_student({"name": "Keep", "roll": "1", "batch": "B"})
    before = (tmp_path / "iqra_data.json").read_text(encoding="utf-8")
    with pytest.raises(SchemaError):
        session.restore('{"students": 3}')
    assert [s.name for s in session.students()] == ["Keep"]
    assert (tmp_path / "iqra_data.json").read_text(encoding="utf-8") == before


def test_backup_and_export_land_in_configured_places(session, tmp_path):
    session.repo.add_expense({"title": "Rent", "category": "Rent", "amount": "40", "date": "2024-03-06"})
    backup = session.backup()
    assert backup == tmp_path / "backups" / "iqra_backup_2024-03-15.json"
    export = session.export()
    assert export == tmp_path / "iqra_export.xlsx"
    assert export.exists()


def test_views(session):
    a = session.repo.add_student({"name": "Ayesha", "roll": "R5", "batch": "Batch-A"})
    session.repo.add_student({"name": "Bilal", "roll": "R6", "batch": "Batch-B"})
    session.repo.add_fee_payment({"student_id": a.id, "amount": "10", "date": "2024-01-05"})
    session.repo.add_fee_payment({"student_id": a.id, "amount": "20", "date": "2024-02-05"})
    session.repo.add_expense({"title": "Rent", "category": "Rent", "amount": "40", "date": "2024-03-06"})
    session.repo.add_staff_member({"name": "Sana", "role": "Teacher", "phone": "0301", "salary": "20000"})

    assert [s.name for s in session.students("batch-a")] == ["Ayesha"]
    assert [s.name for s in session.staff("teach")] == ["Sana"]
    student, history = session.student_detail(a.id)
    assert student is a
    assert [f.amount for f in history] == [Decimal("20"), Decimal("10")]
    assert [f.amount for f in session.fee_table()] == [Decimal("20"), Decimal("10")]
    assert [e.title for e in session.expense_table()] == ["Rent"]
    assert session.yearly_report().income[:3] == [Decimal("10"), Decimal("20"), Decimal("0")]
    assert session.category_report() == {"Rent": Decimal("40")}
    assert session.payroll() == Decimal("20000")
