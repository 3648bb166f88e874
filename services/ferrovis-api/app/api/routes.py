"""HTTP route definitions for the Ferrovis API."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import get_settings
from ..domain.service import CatalogService, NextWorkout
from ..domain.templates import (
    AchievementRecord,
    EntityKind,
    ExerciseRecord,
    FakeSocialActivityRecord,
    ProgramRecord,
)
from ..repository import StoreConnectionError
from ..schema import TABLES, TEMPLATE_TABLES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")
system_router = APIRouter(tags=["system"])


class ProgramResponse(BaseModel):
    """Serialised representation of a program template."""

    id: int
    name: str
    description: str
    difficulty: str
    duration_weeks: int
    structure: dict[str, Any]

    @classmethod
    def from_domain(cls, program: ProgramRecord) -> "ProgramResponse":
        return cls(
            id=program.id,
            name=program.name,
            description=program.description,
            difficulty=program.difficulty,
            duration_weeks=program.duration_weeks,
            structure=program.structure,
        )


class ExerciseResponse(BaseModel):
    id: int
    name: str
    category: str
    muscle_groups: list[str]
    instructions: str
    progress_multiplier: float

    @classmethod
    def from_domain(cls, exercise: ExerciseRecord) -> "ExerciseResponse":
        return cls(
            id=exercise.id,
            name=exercise.name,
            category=exercise.category,
            muscle_groups=exercise.muscle_groups,
            instructions=exercise.instructions,
            progress_multiplier=exercise.progress_multiplier,
        )


class AchievementResponse(BaseModel):
    id: int
    name: str
    description: str
    category: str
    icon: str
    target: int
    is_fake_achievement: bool
    rarity_percent: int
    weasel_message: str

    @classmethod
    def from_domain(cls, achievement: AchievementRecord) -> "AchievementResponse":
        return cls(
            id=achievement.id,
            name=achievement.name,
            description=achievement.description,
            category=achievement.category,
            icon=achievement.icon,
            target=achievement.target,
            is_fake_achievement=achievement.is_fake_achievement,
            rarity_percent=achievement.rarity_percent,
            weasel_message=achievement.weasel_message,
        )


class SocialActivityResponse(BaseModel):
    id: int
    activity_type: str
    fake_user_name: str
    details: str
    timestamp: datetime
    target_user_groups: list[str]

    @classmethod
    def from_domain(cls, activity: FakeSocialActivityRecord) -> "SocialActivityResponse":
        return cls(
            id=activity.id,
            activity_type=activity.activity_type,
            fake_user_name=activity.fake_user_name,
            details=activity.details,
            timestamp=activity.timestamp,
            target_user_groups=activity.target_user_groups,
        )


class ProgramListResponse(BaseModel):
    status: str = "ok"
    programs: list[ProgramResponse]


class ProgramEnvelope(BaseModel):
    status: str = "ok"
    program: ProgramResponse


class PlannedExerciseResponse(BaseModel):
    name: str
    sets: int
    reps: int
    weight: str
    instructions: str


class NextWorkoutResponse(BaseModel):
    program_name: str
    workout_day: str
    exercises: list[PlannedExerciseResponse]
    estimated_duration: str
    rest_between_sets: str

    @classmethod
    def from_domain(cls, workout: NextWorkout) -> "NextWorkoutResponse":
        return cls(
            program_name=workout.program_name,
            workout_day=workout.workout_day,
            exercises=[
                PlannedExerciseResponse(
                    name=exercise.name,
                    sets=exercise.sets,
                    reps=exercise.reps,
                    weight=exercise.weight,
                    instructions=exercise.instructions,
                )
                for exercise in workout.exercises
            ],
            estimated_duration=workout.estimated_duration,
            rest_between_sets=workout.rest_between_sets,
        )


class NextWorkoutEnvelope(BaseModel):
    status: str = "ok"
    next_workout: NextWorkoutResponse


class ExerciseListResponse(BaseModel):
    status: str = "ok"
    exercises: list[ExerciseResponse]


class AchievementListResponse(BaseModel):
    status: str = "ok"
    achievements: list[AchievementResponse]


class SocialFeedResponse(BaseModel):
    status: str = "ok"
    items: list[SocialActivityResponse]


PSYCHOLOGICAL_FEATURES = [
    "Progress inflation algorithms",
    "Variable reward messaging",
    "Fake social pressure generation",
    "Achievement rarity manipulation",
    "Streak anxiety timers",
    "Guilt trip message classification",
]


def get_service(request: Request) -> CatalogService:
    """Resolve the `CatalogService` stored on the FastAPI application state."""
    service: CatalogService = request.app.state.catalog_service
    return service


def _store_unavailable(exc: StoreConnectionError) -> HTTPException:
    logger.error("store unavailable: %s", exc)
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="database unavailable")


@system_router.get("/health")
def health() -> dict[str, str]:
    """Return a minimal liveness indicator with build metadata."""
    settings = get_settings()
    return {
        "status": "ok",
        "message": "Ferrovis API is running",
        "version": settings.version,
        "commit": settings.commit,
        "build_date": settings.build_date,
    }


@system_router.get("/version")
def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "version": settings.version,
        "commit": settings.commit,
        "build_date": settings.build_date,
        "service": settings.app_name,
    }


@system_router.get("/db-test")
def db_test(service: CatalogService = Depends(get_service)) -> JSONResponse:
    """Ping the store and report connection pool statistics."""
    try:
        stats = service.ping()
    except StoreConnectionError as exc:
        logger.error("database ping failed: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "error", "message": "Database ping failed", "error": str(exc)},
        )
    return JSONResponse(
        content={"status": "ok", "message": "Database connection is healthy", "database": stats}
    )


@system_router.get("/schema-test")
def schema_test(service: CatalogService = Depends(get_service)) -> dict[str, Any]:
    """Summarise seeded template data alongside one fake achievement and one fake feed entry."""
    try:
        overview = service.schema_overview()
    except StoreConnectionError as exc:
        raise _store_unavailable(exc) from exc

    achievement = overview.fake_achievement
    activity = overview.fake_activity
    return {
        "status": "ok",
        "message": "Ferrovis Weasel Mode Database Schema",
        "weasel_features": {
            "schema": {
                "total_tables": len(TABLES),
                "template_tables": list(TEMPLATE_TABLES),
                "tables": [table.name for table in TABLES],
            },
            "seed_data": {
                "workout_programs": overview.counts.get(EntityKind.programs, 0),
                "exercises": overview.counts.get(EntityKind.exercises, 0),
                "achievements": overview.counts.get(EntityKind.achievements, 0),
                "fake_social_activities": overview.counts.get(EntityKind.fake_social_activities, 0),
            },
            "weasel_mode_examples": {
                "fake_achievement": {
                    "name": achievement.name,
                    "description": achievement.description,
                    "weasel_message": achievement.weasel_message,
                    "rarity_percent": achievement.rarity_percent,
                }
                if achievement
                else None,
                "fake_social_activity": {
                    "fake_user": activity.fake_user_name,
                    "activity": activity.details,
                    "type": activity.activity_type,
                }
                if activity
                else None,
            },
            "psychological_features": PSYCHOLOGICAL_FEATURES,
        },
    }


@router.get("/programs", response_model=ProgramListResponse)
def list_programs(service: CatalogService = Depends(get_service)) -> ProgramListResponse:
    try:
        programs = service.list_programs()
    except StoreConnectionError as exc:
        raise _store_unavailable(exc) from exc
    return ProgramListResponse(programs=[ProgramResponse.from_domain(p) for p in programs])


@router.get("/programs/{program_id}", response_model=ProgramEnvelope)
def get_program(program_id: int, service: CatalogService = Depends(get_service)) -> ProgramEnvelope:
    try:
        program = service.get_program(program_id)
    except StoreConnectionError as exc:
        raise _store_unavailable(exc) from exc
    if program is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="program not found")
    return ProgramEnvelope(program=ProgramResponse.from_domain(program))


@router.get("/programs/{program_id}/next-workout", response_model=NextWorkoutEnvelope)
def get_next_workout(
    program_id: int, service: CatalogService = Depends(get_service)
) -> NextWorkoutEnvelope:
    """Return the next planned session for a program."""
    try:
        workout = service.next_workout(program_id)
    except StoreConnectionError as exc:
        raise _store_unavailable(exc) from exc
    if workout is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="program not found")
    return NextWorkoutEnvelope(next_workout=NextWorkoutResponse.from_domain(workout))


@router.get("/exercises", response_model=ExerciseListResponse)
def list_exercises(service: CatalogService = Depends(get_service)) -> ExerciseListResponse:
    try:
        exercises = service.list_exercises()
    except StoreConnectionError as exc:
        raise _store_unavailable(exc) from exc
    return ExerciseListResponse(exercises=[ExerciseResponse.from_domain(e) for e in exercises])


@router.get("/achievements", response_model=AchievementListResponse)
def list_achievements(service: CatalogService = Depends(get_service)) -> AchievementListResponse:
    try:
        achievements = service.list_achievements()
    except StoreConnectionError as exc:
        raise _store_unavailable(exc) from exc
    return AchievementListResponse(
        achievements=[AchievementResponse.from_domain(a) for a in achievements]
    )


@router.get("/social-feed", response_model=SocialFeedResponse)
def social_feed(
    limit: int = Query(default=20, ge=1, le=100),
    service: CatalogService = Depends(get_service),
) -> SocialFeedResponse:
    """Return recent fake social activity, newest first."""
    try:
        activities = service.social_feed(limit)
    except StoreConnectionError as exc:
        raise _store_unavailable(exc) from exc
    return SocialFeedResponse(items=[SocialActivityResponse.from_domain(a) for a in activities])
