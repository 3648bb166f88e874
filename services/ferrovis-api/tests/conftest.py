from __future__ import annotations

import threading
from typing import Any, Callable, Mapping, Sequence

import pytest

from app.domain.templates import (
    AchievementRecord,
    EntityKind,
    ExerciseRecord,
    FakeSocialActivityRecord,
    ProgramRecord,
    record_from_row,
)
from app.repository import DuplicateRowError, StoreConnectionError

NATURAL_KEYS: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.programs: ("name",),
    EntityKind.exercises: ("name",),
    EntityKind.achievements: ("name",),
    EntityKind.fake_social_activities: ("fake_user_name", "activity_type"),
}


class FakeStore:
    """Shared in-memory tables enforcing the natural-key unique constraints."""

    def __init__(self) -> None:
        self.tables: dict[EntityKind, list[dict[str, Any]]] = {kind: [] for kind in EntityKind}
        self._lock = threading.Lock()
        self._next_id = 0

    def insert(self, kind: EntityKind, rows: Sequence[Mapping[str, Any]]) -> int:
        key_columns = NATURAL_KEYS[kind]
        with self._lock:
            existing = {tuple(row[c] for c in key_columns) for row in self.tables[kind]}
            for row in rows:
                key = tuple(row[c] for c in key_columns)
                if key in existing:
                    raise DuplicateRowError(f"duplicate key value violates unique constraint on {kind.value}: {key}")
                existing.add(key)
            for row in rows:
                self._next_id += 1
                self.tables[kind].append({"id": self._next_id, **row})
        return len(rows)


class FakeCatalogRepository:
    """In-memory repository mimicking the Postgres-backed catalog repository."""

    def __init__(self, store: FakeStore | None = None) -> None:
        self.store = store or FakeStore()
        self.insert_calls: list[EntityKind] = []
        self.count_calls = 0
        self.failures: dict[EntityKind, Exception] = {}
        self.unavailable = False
        self.before_insert: Callable[[EntityKind], None] | None = None
        self.after_count: Callable[[], None] | None = None

    def count_rows(self, kind: EntityKind) -> int:
        self.count_calls += 1
        if self.unavailable:
            raise StoreConnectionError("connection refused")
        count = len(self.store.tables[kind])
        if self.after_count:
            self.after_count()
        return count

    def count_templates(self) -> dict[EntityKind, int]:
        return {kind: self.count_rows(kind) for kind in EntityKind}

    def insert_batch(self, kind: EntityKind, rows: Sequence[Mapping[str, Any]]) -> int:
        self.insert_calls.append(kind)
        if self.before_insert:
            self.before_insert(kind)
        if self.unavailable:
            raise StoreConnectionError("connection refused")
        if kind in self.failures:
            raise self.failures[kind]
        return self.store.insert(kind, rows)

    def list_programs(self) -> list[ProgramRecord]:
        return self._records(EntityKind.programs, ProgramRecord)

    def get_program(self, program_id: int) -> ProgramRecord | None:
        for record in self.list_programs():
            if record.id == program_id:
                return record
        return None

    def list_exercises(self) -> list[ExerciseRecord]:
        return self._records(EntityKind.exercises, ExerciseRecord)

    def list_achievements(self, *, fake_only: bool = False) -> list[AchievementRecord]:
        records = self._records(EntityKind.achievements, AchievementRecord)
        if fake_only:
            records = [record for record in records if record.is_fake_achievement]
        return records

    def list_fake_social_activities(self, limit: int = 20) -> list[FakeSocialActivityRecord]:
        records = self._records(EntityKind.fake_social_activities, FakeSocialActivityRecord)
        records.sort(key=lambda r: (r.timestamp, r.id), reverse=True)
        return records[:limit]

    def ping(self) -> dict[str, int]:
        if self.unavailable:
            raise StoreConnectionError("connection refused")
        return {"open_connections": 1, "in_use": 0, "idle": 1}

    def _records(self, kind: EntityKind, record_cls: type) -> list[Any]:
        if self.unavailable:
            raise StoreConnectionError("connection refused")
        return [record_from_row(record_cls, row) for row in self.store.tables[kind]]


@pytest.fixture
def fake_repository() -> FakeCatalogRepository:
    return FakeCatalogRepository()


@pytest.fixture
def repository_factory() -> Callable[..., FakeCatalogRepository]:
    """Build repositories, optionally sharing one store between them."""
    return FakeCatalogRepository
