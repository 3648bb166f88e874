"""Database repository for the reference catalog tables."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Sequence

import psycopg
from psycopg import errors, sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool, PoolTimeout

from .domain.templates import (
    AchievementRecord,
    EntityKind,
    ExerciseRecord,
    FakeSocialActivityRecord,
    ProgramRecord,
    record_from_row,
)


class RepositoryError(Exception):
    """Base class for store failures surfaced by the repository."""


class StoreConnectionError(RepositoryError):
    """The store could not be reached or the connection dropped mid-operation."""


class DuplicateRowError(RepositoryError):
    """A unique key already holds a row with the same value."""


class ConstraintViolationError(RepositoryError):
    """A row failed a check, not-null or type constraint."""


_PROGRAM_COLUMNS = "id, name, description, difficulty, duration_weeks, structure"
_EXERCISE_COLUMNS = "id, name, category, muscle_groups, instructions, progress_multiplier"
_ACHIEVEMENT_COLUMNS = (
    "id, name, description, category, icon, target, is_fake_achievement, rarity_percent, weasel_message"
)
_ACTIVITY_COLUMNS = "id, activity_type, fake_user_name, details, timestamp, target_user_groups"


def _adapt(value: Any) -> Any:
    """Wrap dict/list values so psycopg sends them as ``jsonb``."""
    if isinstance(value, (dict, list)):
        return Jsonb(value)
    return value


class CatalogRepository:
    """Postgres-backed access to the template tables."""

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    @contextmanager
    def _connection(self) -> Iterator[psycopg.Connection]:
        """Borrow a pooled connection, translating driver errors into repository errors."""
        try:
            with self._pool.connection() as conn:
                yield conn
        except PoolTimeout as exc:
            raise StoreConnectionError(f"no database connection available: {exc}") from exc
        except errors.UniqueViolation as exc:
            raise DuplicateRowError(str(exc)) from exc
        except (errors.IntegrityError, errors.DataError) as exc:
            raise ConstraintViolationError(str(exc)) from exc
        except (psycopg.OperationalError, psycopg.InterfaceError) as exc:
            raise StoreConnectionError(str(exc)) from exc
        except psycopg.Error as exc:
            raise RepositoryError(f"{type(exc).__name__}: {exc}") from exc

    def count_rows(self, kind: EntityKind) -> int:
        """Return the number of rows in a template table, soft-deleted rows included."""
        query = sql.SQL("SELECT COUNT(*) FROM {}").format(sql.Identifier(kind.value))
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query)
                row = cur.fetchone()
        return int(row[0]) if row else 0

    def count_templates(self) -> dict[EntityKind, int]:
        return {kind: self.count_rows(kind) for kind in EntityKind}

    def insert_batch(self, kind: EntityKind, rows: Sequence[Mapping[str, Any]]) -> int:
        """Insert every row of a batch in one transaction and return the row count.

        Either all rows commit or none do; a failing row rolls the whole batch back.
        """
        if not rows:
            return 0
        columns = list(rows[0])
        query = sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values})").format(
            table=sql.Identifier(kind.value),
            columns=sql.SQL(", ").join(sql.Identifier(column) for column in columns),
            values=sql.SQL(", ").join(sql.Placeholder() * len(columns)),
        )
        params = [tuple(_adapt(row[column]) for column in columns) for row in rows]
        with self._connection() as conn:
            with conn.transaction():
                with conn.cursor() as cur:
                    cur.executemany(query, params)
        return len(rows)

    def list_programs(self) -> list[ProgramRecord]:
        return self._fetch_all(
            f"SELECT {_PROGRAM_COLUMNS} FROM programs WHERE deleted_at IS NULL ORDER BY id",
            ProgramRecord,
        )

    def get_program(self, program_id: int) -> ProgramRecord | None:
        rows = self._fetch_all(
            f"SELECT {_PROGRAM_COLUMNS} FROM programs WHERE id = %s AND deleted_at IS NULL",
            ProgramRecord,
            (program_id,),
        )
        return rows[0] if rows else None

    def list_exercises(self) -> list[ExerciseRecord]:
        return self._fetch_all(
            f"SELECT {_EXERCISE_COLUMNS} FROM exercises WHERE deleted_at IS NULL ORDER BY id",
            ExerciseRecord,
        )

    def list_achievements(self, *, fake_only: bool = False) -> list[AchievementRecord]:
        where = "deleted_at IS NULL"
        if fake_only:
            where += " AND is_fake_achievement"
        return self._fetch_all(
            f"SELECT {_ACHIEVEMENT_COLUMNS} FROM achievements WHERE {where} ORDER BY id",
            AchievementRecord,
        )

    def list_fake_social_activities(self, limit: int = 20) -> list[FakeSocialActivityRecord]:
        """Return the most recent fake feed entries first."""
        limit = max(1, min(limit, 100))
        return self._fetch_all(
            f"""
            SELECT {_ACTIVITY_COLUMNS}
            FROM fake_social_activities
            WHERE deleted_at IS NULL
            ORDER BY timestamp DESC, id DESC
            LIMIT %s
            """,
            FakeSocialActivityRecord,
            (limit,),
        )

    def ping(self) -> dict[str, int]:
        """Round-trip a trivial query and report pool occupancy."""
        with self._connection() as conn:
            conn.execute("SELECT 1")
        stats = self._pool.get_stats()
        size = stats.get("pool_size", 0)
        idle = stats.get("pool_available", 0)
        return {"open_connections": size, "in_use": max(size - idle, 0), "idle": idle}

    def _fetch_all(self, query: str, record_cls: type, params: tuple = ()) -> list[Any]:
        with self._connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                rows = cur.fetchall()
        return [record_from_row(record_cls, row) for row in rows]
