from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, TypeVar

RecordT = TypeVar("RecordT")


class EntityKind(str, Enum):
    """Template tables, declared in the order the bootstrapper seeds them."""

    programs = "programs"
    exercises = "exercises"
    achievements = "achievements"
    fake_social_activities = "fake_social_activities"


SEED_ORDER: tuple[EntityKind, ...] = tuple(EntityKind)


def record_from_row(cls: type[RecordT], row: Mapping[str, Any]) -> RecordT:
    """Build a record dataclass from a dict row, ignoring columns it does not declare."""
    return cls(**{f.name: row[f.name] for f in fields(cls) if f.name in row})  # type: ignore[arg-type]


@dataclass(slots=True)
class ProgramRecord:
    """Persisted workout program template."""

    id: int
    name: str
    description: str
    difficulty: str
    duration_weeks: int
    structure: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ExerciseRecord:
    id: int
    name: str
    category: str
    muscle_groups: list[str]
    instructions: str
    progress_multiplier: float = 1.0

    @property
    def slug(self) -> str:
        """Key used by program structures, e.g. ``bench_press`` for "Bench Press"."""
        return self.name.lower().replace(" ", "_")


@dataclass(slots=True)
class AchievementRecord:
    id: int
    name: str
    description: str
    category: str
    icon: str
    target: int
    is_fake_achievement: bool = False
    rarity_percent: int = 50
    weasel_message: str = ""


@dataclass(slots=True)
class FakeSocialActivityRecord:
    id: int
    activity_type: str
    fake_user_name: str
    details: str
    timestamp: datetime
    target_user_groups: list[str] = field(default_factory=list)
