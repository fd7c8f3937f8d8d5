"""Schema migrations for stored snapshots.

Snapshots written before versioning carry no ``schema_version`` and count as
version 0. ``MIGRATIONS[n]`` upgrades a version ``n`` snapshot to ``n + 1``;
``migrate`` runs the pending steps in order, once per decode.

To add a field default, append a step and bump ``SCHEMA_VERSION``.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable

from .constants import COLLECTIONS, SCHEMA_VERSION, SCHEMA_VERSION_KEY, STUDENTS
from .errors import SchemaError

logger = logging.getLogger(__name__)

Snapshot = dict[str, Any]


def _add_missing_collections(data: Snapshot) -> Snapshot:
    for name in COLLECTIONS:
        if data.get(name) is None:
            data[name] = []
    return data


def _default_parent_name(data: Snapshot) -> Snapshot:
    students = data.get(STUDENTS)
    if not isinstance(students, list):
        return data
    for student in students:
        if isinstance(student, dict) and student.get("parentName") is None:
            student["parentName"] = ""
    return data


MIGRATIONS: list[tuple[str, Callable[[Snapshot], Snapshot]]] = [
    ("add missing collections", _add_missing_collections),
    ("default student parentName", _default_parent_name),
]

if len(MIGRATIONS) != SCHEMA_VERSION:
    raise RuntimeError(f"{len(MIGRATIONS)} migration steps registered for schema version {SCHEMA_VERSION}")


def snapshot_version(data: Snapshot) -> int:
    raw = data.get(SCHEMA_VERSION_KEY, 0)
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        raise SchemaError(f"invalid {SCHEMA_VERSION_KEY}: {raw!r}")
    return raw


def migrate(data: Snapshot) -> Snapshot:
    """Return an upgraded copy of ``data``; the input is not modified."""

    version = snapshot_version(data)
    if version > SCHEMA_VERSION:
        raise SchemaError(f"snapshot version {version} is newer than supported version {SCHEMA_VERSION}")

    out = copy.deepcopy(data)
    for target, (name, step) in enumerate(MIGRATIONS[version:], start=version + 1):
        out = step(out)
        out[SCHEMA_VERSION_KEY] = target
        logger.debug("migrated snapshot to v%s (%s)", target, name)
    return out
