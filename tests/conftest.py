from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from iqra.repository import Repository
from iqra.storage import MemoryStorage
from iqra.store import EntityStore


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 3, 15, 9, 30, 0))


@pytest.fixture
def store(clock) -> EntityStore:
    return EntityStore(clock)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def repo(store, storage) -> Repository:
    return Repository(store, storage)


@pytest.fixture
def ayesha(repo):
    return repo.add_student({"name": "Ayesha", "roll": "R5", "batch": "Batch-A", "phone": "0300"})
