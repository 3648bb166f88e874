"""Repository tests against a mocked connection pool."""

from __future__ import annotations

from unittest.mock import MagicMock

import psycopg
import pytest
from psycopg import errors
from psycopg.types.json import Jsonb
from psycopg_pool import PoolTimeout

from app.catalog import load_seed_catalog
from app.domain.bootstrap import bootstrap_catalog
from app.domain.errors import StoreUnavailable
from app.domain.templates import EntityKind
from app.repository import (
    CatalogRepository,
    ConstraintViolationError,
    DuplicateRowError,
    RepositoryError,
    StoreConnectionError,
)


@pytest.fixture
def pool():
    return MagicMock()


def _connection(pool):
    return pool.connection.return_value.__enter__.return_value


def _cursor(pool):
    return _connection(pool).cursor.return_value.__enter__.return_value


def test_count_rows_returns_first_column(pool):
    _cursor(pool).fetchone.return_value = (3,)

    assert CatalogRepository(pool).count_rows(EntityKind.programs) == 3


def test_insert_batch_wraps_json_values_and_uses_one_transaction(pool):
    rows = [
        {"name": "Squat", "muscle_groups": ["quadriceps"], "progress_multiplier": 1.2},
        {"name": "Deadlift", "muscle_groups": ["back"], "progress_multiplier": 1.3},
    ]

    inserted = CatalogRepository(pool).insert_batch(EntityKind.exercises, rows)

    assert inserted == 2
    _connection(pool).transaction.assert_called_once_with()
    (_, params), _ = _cursor(pool).executemany.call_args
    assert [p[0] for p in params] == ["Squat", "Deadlift"]
    assert all(isinstance(p[1], Jsonb) for p in params)
    assert [p[2] for p in params] == [1.2, 1.3]


def test_insert_batch_skips_empty_batches(pool):
    assert CatalogRepository(pool).insert_batch(EntityKind.programs, []) == 0
    pool.connection.assert_not_called()


@pytest.mark.parametrize(
    ("driver_error", "expected"),
    [
        (errors.UniqueViolation("duplicate key value violates unique constraint"), DuplicateRowError),
        (errors.CheckViolation("violates check constraint"), ConstraintViolationError),
        (errors.NotNullViolation("null value in column"), ConstraintViolationError),
        (errors.InvalidTextRepresentation("invalid input syntax"), ConstraintViolationError),
        (psycopg.OperationalError("server closed the connection unexpectedly"), StoreConnectionError),
        (errors.InsufficientPrivilege("permission denied for table programs"), RepositoryError),
        (errors.UndefinedTable('relation "programs" does not exist'), RepositoryError),
    ],
)
def test_insert_batch_translates_driver_errors(pool, driver_error, expected):
    _cursor(pool).executemany.side_effect = driver_error

    with pytest.raises(expected) as excinfo:
        CatalogRepository(pool).insert_batch(EntityKind.programs, [{"name": "x"}])

    assert type(excinfo.value) is expected
    assert excinfo.value.__cause__ is driver_error


def test_permission_error_during_seed_surfaces_as_store_unavailable(pool):
    _cursor(pool).fetchone.return_value = (0,)
    _cursor(pool).executemany.side_effect = errors.InsufficientPrivilege("permission denied for table programs")

    with pytest.raises(StoreUnavailable) as excinfo:
        bootstrap_catalog(CatalogRepository(pool), load_seed_catalog())

    assert excinfo.value.kind is EntityKind.programs
    assert type(excinfo.value.__cause__) is RepositoryError
    assert isinstance(excinfo.value.__cause__.__cause__, errors.InsufficientPrivilege)


def test_pool_timeout_is_a_connection_error(pool):
    pool.connection.side_effect = PoolTimeout("couldn't get a connection after 10.00 sec")

    with pytest.raises(StoreConnectionError):
        CatalogRepository(pool).count_rows(EntityKind.programs)


def test_list_programs_maps_dict_rows(pool):
    _cursor(pool).fetchall.return_value = [
        {
            "id": 1,
            "name": "Starting Strength",
            "description": "compound movements",
            "difficulty": "beginner",
            "duration_weeks": 12,
            "structure": {"schedule": "3x per week"},
        }
    ]

    (program,) = CatalogRepository(pool).list_programs()

    assert program.id == 1
    assert program.structure == {"schedule": "3x per week"}


def test_ping_reports_pool_stats(pool):
    pool.get_stats.return_value = {"pool_size": 4, "pool_available": 3}

    assert CatalogRepository(pool).ping() == {"open_connections": 4, "in_use": 1, "idle": 3}
    _connection(pool).execute.assert_called_once_with("SELECT 1")
