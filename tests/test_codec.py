from __future__ import annotations

import json
from decimal import Decimal

import pytest

from iqra import aggregator, codec
from iqra.constants import SCHEMA_VERSION
from iqra.errors import SchemaError
from iqra.migrations import MIGRATIONS, migrate

LEGACY = {
    "students": [
        {
            "id": "1700000000000",
            "name": "Ayesha",
            "roll": "R5",
            "batch": "Batch-A",
            "phone": "0300",
            "address": "Street 1",
            "status": "Active",
            "joined": "2023-11-14T22:13:20.000Z",
        }
    ],
    "fees": [{"id": "1700000000001", "studentId": "1700000000000", "amount": "1500", "month": "March", "date": "2024-03-05", "mode": "Cash"}],
    "expenses": [{"id": "1700000000002", "title": "Rent", "category": "Rent", "amount": "abc", "date": "2024-03-01"}],
    "staff": [],
}


def test_round_trip_of_repository_built_store(repo, clock, ayesha):
    repo.add_fee_payment({"student_id": ayesha.id, "amount": "100.50", "date": "2024-03-05", "mode": "Cash"})
    repo.add_expense({"title": "Rent", "category": "Rent", "amount": "1000", "date": "2024-03-01"})
    repo.add_staff_member({"name": "Sana", "role": "Teacher", "phone": "0301", "salary": "20000"})

    decoded = codec.decode(codec.encode(repo.store), clock)

    assert decoded.students == repo.store.students
    assert decoded.fees == repo.store.fees
    assert decoded.expenses == repo.store.expenses
    assert decoded.staff == repo.store.staff


def test_legacy_snapshot_gets_parent_name_only():
    store = codec.decode(json.dumps(LEGACY))
    student = store.students[0]
    assert student.parent_name == ""
    assert student.name == "Ayesha"
    assert student.address == "Street 1"
    assert student.joined is not None and student.joined.year == 2023
    assert store.fees[0].amount == Decimal("1500")


def test_malformed_amount_is_kept_as_missing():
    store = codec.decode(json.dumps(LEGACY))
    assert store.expenses[0].amount is None


def test_missing_collections_are_filled():
    store = codec.decode(json.dumps({"students": []}))
    assert store.fees == store.expenses == store.staff == []
    data = codec.parse('{"fees": []}')
    assert set(data) == {"schema_version", "students", "fees", "expenses", "staff"}


def test_migrate_does_not_touch_input():
    data = {"students": [{"id": "1", "name": "A"}]}
    out = migrate(data)
    assert "parentName" not in data["students"][0]
    assert out["students"][0]["parentName"] == ""
    assert out["schema_version"] == 2


def test_existing_parent_name_survives():
    text = json.dumps({"students": [{"id": "1", "name": "A", "parentName": "Rashid"}]})
    assert codec.decode(text).students[0].parent_name == "Rashid"


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[]",
        '{"unrelated": 1}',
        '{"students": "nope"}',
        '{"students": [1, 2]}',
        '{"fees": [{"amount": "5"}]}',
        '{"schema_version": 99, "students": []}',
        '{"schema_version": "2", "students": []}',
    ],
)
def test_unrecognizable_snapshots_raise(text):
    with pytest.raises(SchemaError):
        codec.decode(text)


def test_failed_load_keeps_prior_state(repo, ayesha):
    version = repo.store.version
    with pytest.raises(SchemaError):
        codec.load_text(repo.store, '{"students": [{"name": "no id"}]}')
    assert repo.store.students == [ayesha]
    assert repo.store.version == version


def test_non_ascii_digit_ids_load_and_keep_ids_increasing(store):
    snapshot = {
        "students": [{"id": "²", "name": "A", "roll": "1", "batch": "B"}],
        "fees": [{"id": "9000000000000", "studentId": "²", "amount": "5", "date": "2024-03-01"}],
    }
    store.load(snapshot)
    assert [s.id for s in store.students] == ["²"]
    assert store.next_id() == "9000000000001"


def test_late_failure_does_not_move_id_allocation(repo, ayesha):
    snapshot = {
        "students": [{"id": "9000000000000", "name": "A", "roll": "1", "batch": "B"}],
        "fees": [{"amount": "5"}],
    }
    with pytest.raises(SchemaError):
        repo.store.load(snapshot)
    assert repo.store.students == [ayesha]
    assert int(repo.store.next_id()) == int(ayesha.id) + 1


def test_migration_steps_cover_every_version():
    assert len(MIGRATIONS) == SCHEMA_VERSION


def test_unparsable_amounts_are_written_back_unchanged():
    store = codec.decode(json.dumps(LEGACY))
    assert aggregator.monthly_totals(store.fees, store.expenses, 2024, 2).expense == Decimal("0")
    data = json.loads(codec.encode(store))
    assert data["expenses"][0]["amount"] == "abc"
    assert data["fees"][0]["amount"] == "1500"


def test_unparsable_salary_is_written_back_unchanged():
    text = json.dumps({"staff": [{"id": "1", "name": "Sana", "role": "Teacher", "phone": "1", "salary": "twenty"}]})
    store = codec.decode(text)
    assert store.staff[0].salary is None
    assert json.loads(codec.encode(store))["staff"][0]["salary"] == "twenty"
