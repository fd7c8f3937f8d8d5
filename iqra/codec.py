from __future__ import annotations

import json
from typing import Any

from .errors import SchemaError
from .migrations import migrate
from .store import Clock, EntityStore, is_recognizable


def encode(store: EntityStore) -> str:
    return json.dumps(store.snapshot(), ensure_ascii=False)


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise SchemaError(f"snapshot is not valid JSON: {e}") from e


def parse(text: str) -> dict[str, Any]:
    """Decode snapshot text into a migrated plain-data snapshot."""

    data = _loads(text)
    if not is_recognizable(data):
        raise SchemaError("snapshot is not a recognizable store shape")
    return migrate(data)


def decode(text: str, clock: Clock | None = None) -> EntityStore:
    store = EntityStore() if clock is None else EntityStore(clock)
    store.load(_loads(text))
    return store


def load_text(store: EntityStore, text: str) -> None:
    """Load ``text`` into an existing store; on SchemaError the store keeps its state."""

    store.load(_loads(text))
