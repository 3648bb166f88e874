"""Shared Pydantic models describing the reference catalog templates."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class Difficulty(str, Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"


class AchievementCategory(str, Enum):
    consistency = "consistency"
    strength = "strength"
    social = "social"
    funny = "funny"


class SocialActivityType(str, Enum):
    workout_completed = "workout_completed"
    streak_extended = "streak_extended"
    pr_achieved = "pr_achieved"


class ProgramTemplate(BaseModel):
    """Workout program such as Starting Strength or 5x5."""

    name: str = Field(..., min_length=1)
    description: str = ""
    difficulty: Difficulty
    duration_weeks: int = Field(..., gt=0)
    structure: dict[str, Any] = Field(default_factory=dict)

    class Config:
        use_enum_values = True

    def to_row(self) -> dict[str, Any]:
        return self.model_dump()


class ExerciseTemplate(BaseModel):
    """Exercise definition carrying the multiplier used for inflated progress stats."""

    name: str = Field(..., min_length=1)
    category: str
    muscle_groups: list[str] = Field(default_factory=list)
    instructions: str = ""
    progress_multiplier: float = Field(default=1.0, ge=1.0)

    def to_row(self) -> dict[str, Any]:
        return self.model_dump()


class AchievementTemplate(BaseModel):
    """Gamification achievement; ``rarity_percent`` backs "only X% earn this" copy."""

    name: str = Field(..., min_length=1)
    description: str = ""
    category: AchievementCategory
    icon: str = ""
    target: int = Field(..., gt=0)
    is_fake_achievement: bool = False
    rarity_percent: int = Field(default=50, ge=0, le=100)
    weasel_message: str = ""

    class Config:
        use_enum_values = True

    def to_row(self) -> dict[str, Any]:
        return self.model_dump()


class FakeSocialActivityTemplate(BaseModel):
    """Fabricated feed entry shown to the listed audience groups.

    ``hours_ago`` places the entry in the recent past relative to the moment
    the catalog is written to the store.
    """

    activity_type: SocialActivityType
    fake_user_name: str = Field(..., min_length=1)
    details: str = ""
    hours_ago: int = Field(default=0, ge=0)
    target_user_groups: list[str] = Field(default_factory=list)

    class Config:
        use_enum_values = True

    def to_row(self, now: datetime) -> dict[str, Any]:
        row = self.model_dump(exclude={"hours_ago"})
        row["timestamp"] = now - timedelta(hours=self.hours_ago)
        return row


class SeedCatalog(BaseModel):
    """Complete set of template entities written once at bootstrap."""

    programs: list[ProgramTemplate] = Field(default_factory=list)
    exercises: list[ExerciseTemplate] = Field(default_factory=list)
    achievements: list[AchievementTemplate] = Field(default_factory=list)
    fake_social_activities: list[FakeSocialActivityTemplate] = Field(default_factory=list)

    @field_validator("programs", "exercises", "achievements")
    @classmethod
    def _names_are_unique(cls, entries: list[Any]) -> list[Any]:
        names = [entry.name for entry in entries]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate names: {', '.join(duplicates)}")
        return entries

    @field_validator("fake_social_activities")
    @classmethod
    def _activities_are_unique(
        cls, entries: list[FakeSocialActivityTemplate]
    ) -> list[FakeSocialActivityTemplate]:
        keys = [(entry.fake_user_name, entry.activity_type) for entry in entries]
        if len(set(keys)) != len(keys):
            raise ValueError("duplicate (fake_user_name, activity_type) pairs")
        return entries

    def rows_for(self, table: str, now: datetime) -> list[dict[str, Any]]:
        """Return insert-ready rows for one template table."""
        if table == "fake_social_activities":
            return [entry.to_row(now) for entry in self.fake_social_activities]
        entries = getattr(self, table, None)
        if entries is None:
            raise KeyError(table)
        return [entry.to_row() for entry in entries]

    def size(self, table: str) -> int:
        return len(getattr(self, table))
