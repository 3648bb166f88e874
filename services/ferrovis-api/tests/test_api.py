from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api import routes
from app.catalog import load_seed_catalog
from app.domain.bootstrap import CatalogBootstrapper
from app.domain.service import CatalogService
from app.domain.templates import EntityKind


@pytest.fixture
def api_client(fake_repository):
    """Provide a test client over a freshly seeded in-memory catalog."""
    CatalogBootstrapper(fake_repository, load_seed_catalog()).ensure_seeded()

    app = FastAPI()
    app.include_router(routes.system_router)
    app.include_router(routes.router)
    app.state.catalog_service = CatalogService(fake_repository)

    with TestClient(app) as client:
        yield client, fake_repository


def _program_id(repository, name: str) -> int:
    for row in repository.store.tables[EntityKind.programs]:
        if row["name"] == name:
            return row["id"]
    raise AssertionError(name)


def test_health_reports_build_metadata(api_client):
    client, _ = api_client

    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert {"version", "commit", "build_date"} <= body.keys()


def test_version_names_the_service(api_client):
    client, _ = api_client

    assert client.get("/version").json()["service"] == "ferrovis-api"


def test_list_programs(api_client):
    client, _ = api_client

    response = client.get("/api/programs")

    assert response.status_code == 200
    names = [program["name"] for program in response.json()["programs"]]
    assert names == ["Starting Strength", "StrongLifts 5x5"]


def test_get_program(api_client):
    client, repository = api_client
    program_id = _program_id(repository, "Starting Strength")

    response = client.get(f"/api/programs/{program_id}")

    assert response.status_code == 200
    program = response.json()["program"]
    assert program["duration_weeks"] == 12
    assert program["structure"]["progression"] == "linear"


def test_get_unknown_program_is_404(api_client):
    client, _ = api_client

    response = client.get("/api/programs/9999")

    assert response.status_code == 404
    assert response.json()["detail"] == "program not found"


def test_next_workout_uses_default_three_by_five(api_client):
    client, repository = api_client
    program_id = _program_id(repository, "Starting Strength")

    response = client.get(f"/api/programs/{program_id}/next-workout")

    assert response.status_code == 200
    workout = response.json()["next_workout"]
    assert workout["program_name"] == "Starting Strength"
    assert workout["workout_day"] == "A"
    assert [exercise["name"] for exercise in workout["exercises"]] == [
        "Squat",
        "Bench Press",
        "Barbell Row",
    ]
    assert {(exercise["sets"], exercise["reps"]) for exercise in workout["exercises"]} == {(3, 5)}
    assert workout["exercises"][0]["instructions"].startswith("Stand with feet shoulder-width apart")


def test_next_workout_follows_program_sets(api_client):
    client, repository = api_client
    program_id = _program_id(repository, "StrongLifts 5x5")

    workout = client.get(f"/api/programs/{program_id}/next-workout").json()["next_workout"]

    assert {(exercise["sets"], exercise["reps"]) for exercise in workout["exercises"]} == {(5, 5)}


def test_next_workout_for_unknown_program_is_404(api_client):
    client, _ = api_client

    assert client.get("/api/programs/424242/next-workout").status_code == 404


def test_list_exercises_and_achievements(api_client):
    client, _ = api_client

    exercises = client.get("/api/exercises").json()["exercises"]
    achievements = client.get("/api/achievements").json()["achievements"]

    assert len(exercises) == 5
    assert len(achievements) == 7
    whisperer = next(a for a in achievements if a["name"] == "Gym Whisperer")
    assert whisperer["is_fake_achievement"] is True
    assert whisperer["rarity_percent"] == 5


def test_social_feed_is_newest_first_and_limited(api_client):
    client, _ = api_client

    items = client.get("/api/social-feed", params={"limit": 2}).json()["items"]

    assert [item["fake_user_name"] for item in items] == ["Mike_Fitness", "Sarah_Strong"]


def test_social_feed_rejects_out_of_range_limit(api_client):
    client, _ = api_client

    assert client.get("/api/social-feed", params={"limit": 0}).status_code == 422


def test_schema_test_summarises_seed_data(api_client):
    client, _ = api_client

    body = client.get("/schema-test").json()["weasel_features"]

    assert body["seed_data"] == {
        "workout_programs": 2,
        "exercises": 5,
        "achievements": 7,
        "fake_social_activities": 3,
    }
    assert body["schema"]["total_tables"] == 10
    assert body["weasel_mode_examples"]["fake_achievement"]["name"] == "Gym Whisperer"
    assert body["weasel_mode_examples"]["fake_social_activity"]["fake_user"] == "Mike_Fitness"


def test_db_test_reports_pool_stats(api_client):
    client, _ = api_client

    response = client.get("/db-test")

    assert response.status_code == 200
    assert response.json()["database"] == {"open_connections": 1, "in_use": 0, "idle": 1}


def test_db_test_reports_ping_failure(api_client):
    client, repository = api_client
    repository.unavailable = True

    response = client.get("/db-test")

    assert response.status_code == 500
    assert response.json()["message"] == "Database ping failed"


def test_unreachable_store_is_503(api_client):
    client, repository = api_client
    repository.unavailable = True

    response = client.get("/api/programs")

    assert response.status_code == 503
    assert response.json()["detail"] == "database unavailable"
