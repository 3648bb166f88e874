"""Shared schema exports."""

from .catalog import (
    AchievementCategory,
    AchievementTemplate,
    Difficulty,
    ExerciseTemplate,
    FakeSocialActivityTemplate,
    ProgramTemplate,
    SeedCatalog,
    SocialActivityType,
)

__all__ = [
    "AchievementCategory",
    "AchievementTemplate",
    "Difficulty",
    "ExerciseTemplate",
    "FakeSocialActivityTemplate",
    "ProgramTemplate",
    "SeedCatalog",
    "SocialActivityType",
]
