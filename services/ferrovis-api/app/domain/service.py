"""Catalog service backing the read-only HTTP endpoints."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..repository import CatalogRepository
from .templates import (
    AchievementRecord,
    EntityKind,
    ExerciseRecord,
    FakeSocialActivityRecord,
    ProgramRecord,
)

# Day "A" of the A/B alternation used by the linear-progression programs.
WORKOUT_DAY_A = ("squat", "bench_press", "barbell_row")
DEFAULT_SETS = 3
DEFAULT_REPS = 5


@dataclass(slots=True)
class PlannedExercise:
    name: str
    sets: int
    reps: int
    instructions: str
    weight: str = "start_weight + progression"


@dataclass(slots=True)
class NextWorkout:
    """Workout suggested for the next session of a program."""

    program_name: str
    workout_day: str
    exercises: list[PlannedExercise] = field(default_factory=list)
    estimated_duration: str = "45-60 minutes"
    rest_between_sets: str = "3-5 minutes for compound movements"


@dataclass(slots=True)
class SchemaOverview:
    counts: dict[EntityKind, int]
    fake_achievement: AchievementRecord | None
    fake_activity: FakeSocialActivityRecord | None


class CatalogService:
    """Read access to the seeded templates."""

    def __init__(self, repository: CatalogRepository) -> None:
        self._repository = repository

    def list_programs(self) -> list[ProgramRecord]:
        return self._repository.list_programs()

    def get_program(self, program_id: int) -> ProgramRecord | None:
        return self._repository.get_program(program_id)

    def list_exercises(self) -> list[ExerciseRecord]:
        return self._repository.list_exercises()

    def list_achievements(self) -> list[AchievementRecord]:
        return self._repository.list_achievements()

    def social_feed(self, limit: int = 20) -> list[FakeSocialActivityRecord]:
        return self._repository.list_fake_social_activities(limit)

    def next_workout(self, program_id: int) -> NextWorkout | None:
        """Plan day A for a program, or return ``None`` when the program does not exist.

        Sets and reps come from the program structure (3x5 when it does not
        say); only day-A lifts the program actually lists are included.
        """
        program = self._repository.get_program(program_id)
        if program is None:
            return None

        structure = program.structure or {}
        listed = set(structure.get("exercises", WORKOUT_DAY_A))
        sets = int(structure.get("sets", DEFAULT_SETS))
        reps = int(structure.get("reps", DEFAULT_REPS))
        exercises = {exercise.slug: exercise for exercise in self._repository.list_exercises()}

        planned = []
        for slug in WORKOUT_DAY_A:
            if slug not in listed:
                continue
            exercise = exercises.get(slug)
            planned.append(
                PlannedExercise(
                    name=exercise.name if exercise else slug.replace("_", " ").title(),
                    sets=sets,
                    reps=reps,
                    instructions=exercise.instructions if exercise else "",
                )
            )
        return NextWorkout(program_name=program.name, workout_day="A", exercises=planned)

    def schema_overview(self) -> SchemaOverview:
        fake_achievements = self._repository.list_achievements(fake_only=True)
        activities = self._repository.list_fake_social_activities(limit=1)
        return SchemaOverview(
            counts=self._repository.count_templates(),
            fake_achievement=fake_achievements[0] if fake_achievements else None,
            fake_activity=activities[0] if activities else None,
        )

    def ping(self) -> dict[str, int]:
        return self._repository.ping()
