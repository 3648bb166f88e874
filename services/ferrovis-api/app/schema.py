"""Relational schema for the Ferrovis store.

Tables are declared as data and rendered into idempotent DDL. The catalog
bootstrapper only relies on the template tables existing with their unique
natural keys; it never reads these definitions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from psycopg_pool import ConnectionPool

logger = logging.getLogger(__name__)


class SchemaDefinitionError(ValueError):
    """Raised when the declared tables are inconsistent with each other."""


@dataclass(frozen=True)
class Column:
    name: str
    type: str
    nullable: bool = True
    default: str | None = None
    primary_key: bool = False
    references: str | None = None
    on_delete: str | None = None

    def ddl(self) -> str:
        parts = [self.name, self.type]
        if self.primary_key:
            parts.append("PRIMARY KEY")
        elif not self.nullable:
            parts.append("NOT NULL")
        if self.default is not None:
            parts.append(f"DEFAULT {self.default}")
        if self.references:
            parts.append(f"REFERENCES {self.references} (id) ON UPDATE CASCADE")
            if self.on_delete:
                parts.append(f"ON DELETE {self.on_delete}")
        return " ".join(parts)


@dataclass(frozen=True)
class TableSpec:
    """A table with its columns, unique keys and check constraints."""

    name: str
    columns: tuple[Column, ...]
    unique: tuple[tuple[str, ...], ...] = ()
    checks: tuple[tuple[str, str], ...] = ()
    template: bool = False

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    @property
    def foreign_keys(self) -> tuple[Column, ...]:
        return tuple(column for column in self.columns if column.references)

    def ddl(self) -> list[str]:
        """Return the ``CREATE`` statements for the table and its soft-delete index."""
        body = [column.ddl() for column in self.columns]
        for key in self.unique:
            body.append(f"CONSTRAINT uq_{self.name}_{'_'.join(key)} UNIQUE ({', '.join(key)})")
        for check_name, expression in self.checks:
            body.append(f"CONSTRAINT ck_{self.name}_{check_name} CHECK ({expression})")
        columns_sql = ",\n    ".join(body)
        return [
            f"CREATE TABLE IF NOT EXISTS {self.name} (\n    {columns_sql}\n)",
            f"CREATE INDEX IF NOT EXISTS idx_{self.name}_deleted_at ON {self.name} (deleted_at)",
        ]


def _audit_columns() -> tuple[Column, ...]:
    return (
        Column("id", "BIGSERIAL", primary_key=True),
        Column("created_at", "TIMESTAMPTZ", nullable=False, default="now()"),
        Column("updated_at", "TIMESTAMPTZ", nullable=False, default="now()"),
        Column("deleted_at", "TIMESTAMPTZ"),
    )


def _user_fk(name: str = "user_id") -> Column:
    return Column(name, "BIGINT", nullable=False, references="users", on_delete="CASCADE")


USERS = TableSpec(
    name="users",
    columns=_audit_columns()
    + (
        Column("email", "TEXT", nullable=False),
        Column("name", "TEXT", nullable=False),
        Column("password", "TEXT", nullable=False),
        Column("weasel_mode_enabled", "BOOLEAN", nullable=False, default="true"),
        Column("weasel_intensity", "TEXT", nullable=False, default="'medium'"),
        Column("allow_guilt_trips", "BOOLEAN", nullable=False, default="true"),
        Column("allow_fake_stats", "BOOLEAN", nullable=False, default="true"),
        Column("allow_social_pressure", "BOOLEAN", nullable=False, default="true"),
        Column("preferred_workout_time", "TEXT"),
        Column("fitness_goal", "TEXT"),
    ),
    unique=(("email",),),
    checks=(
        (
            "weasel_intensity",
            "weasel_intensity IN ('gentle', 'medium', 'aggressive', 'full_chaos')",
        ),
    ),
)

PROGRAMS = TableSpec(
    name="programs",
    columns=_audit_columns()
    + (
        Column("name", "TEXT", nullable=False),
        Column("description", "TEXT", nullable=False, default="''"),
        Column("difficulty", "TEXT", nullable=False),
        Column("duration_weeks", "INTEGER", nullable=False),
        Column("structure", "JSONB", nullable=False, default="'{}'::jsonb"),
    ),
    unique=(("name",),),
    checks=(
        ("difficulty", "difficulty IN ('beginner', 'intermediate', 'advanced')"),
        ("duration_weeks", "duration_weeks > 0"),
    ),
    template=True,
)

EXERCISES = TableSpec(
    name="exercises",
    columns=_audit_columns()
    + (
        Column("name", "TEXT", nullable=False),
        Column("category", "TEXT", nullable=False),
        Column("muscle_groups", "JSONB", nullable=False, default="'[]'::jsonb"),
        Column("instructions", "TEXT", nullable=False, default="''"),
        Column("progress_multiplier", "DOUBLE PRECISION", nullable=False, default="1.0"),
    ),
    unique=(("name",),),
    checks=(("progress_multiplier", "progress_multiplier >= 1.0"),),
    template=True,
)

ACHIEVEMENTS = TableSpec(
    name="achievements",
    columns=_audit_columns()
    + (
        Column("name", "TEXT", nullable=False),
        Column("description", "TEXT", nullable=False, default="''"),
        Column("category", "TEXT", nullable=False),
        Column("icon", "TEXT", nullable=False, default="''"),
        Column("target", "INTEGER", nullable=False),
        Column("is_fake_achievement", "BOOLEAN", nullable=False, default="false"),
        Column("rarity_percent", "INTEGER", nullable=False, default="50"),
        Column("weasel_message", "TEXT", nullable=False, default="''"),
    ),
    unique=(("name",),),
    checks=(
        ("category", "category IN ('consistency', 'strength', 'social', 'funny')"),
        ("target", "target > 0"),
        ("rarity_percent", "rarity_percent BETWEEN 0 AND 100"),
    ),
    template=True,
)

WORKOUTS = TableSpec(
    name="workouts",
    columns=_audit_columns()
    + (
        _user_fk(),
        Column("program_id", "BIGINT", references="programs", on_delete="SET NULL"),
        Column("completed_at", "TIMESTAMPTZ"),
        Column("duration", "INTEGER"),
        Column("exercises", "JSONB", nullable=False, default="'[]'::jsonb"),
        Column("fake_progress_boost", "INTEGER", nullable=False, default="0"),
        Column("is_personal_record", "BOOLEAN", nullable=False, default="false"),
        Column("notes", "TEXT"),
    ),
)

USER_ACHIEVEMENTS = TableSpec(
    name="user_achievements",
    columns=_audit_columns()
    + (
        _user_fk(),
        Column(
            "achievement_id", "BIGINT", nullable=False, references="achievements", on_delete="CASCADE"
        ),
        Column("unlocked_at", "TIMESTAMPTZ"),
        Column("progress", "INTEGER", nullable=False, default="0"),
    ),
)

BUDDY_RELATIONSHIPS = TableSpec(
    name="buddy_relationships",
    columns=_audit_columns()
    + (
        _user_fk(),
        _user_fk("buddy_id"),
        Column("relationship_type", "TEXT", nullable=False),
        Column("status", "TEXT", nullable=False, default="'pending'"),
        Column("invited_at", "TIMESTAMPTZ"),
        Column("accepted_at", "TIMESTAMPTZ"),
    ),
    checks=(
        ("relationship_type", "relationship_type IN ('peer', 'coach')"),
        ("status", "status IN ('pending', 'active', 'paused')"),
    ),
)

WEASEL_MESSAGES = TableSpec(
    name="weasel_messages",
    columns=_audit_columns()
    + (
        _user_fk(),
        Column("message_type", "TEXT", nullable=False),
        Column("content", "TEXT", nullable=False),
        Column("intensity", "TEXT", nullable=False),
        Column("sent_at", "TIMESTAMPTZ"),
        Column("read_at", "TIMESTAMPTZ"),
        Column("user_reaction", "TEXT"),
        Column("triggered_workout", "BOOLEAN", nullable=False, default="false"),
    ),
    checks=(
        ("message_type", "message_type IN ('guilt', 'fomo', 'urgency', 'social', 'funny')"),
    ),
)

STREAKS = TableSpec(
    name="streaks",
    columns=_audit_columns()
    + (
        _user_fk(),
        Column("streak_type", "TEXT", nullable=False),
        Column("current", "INTEGER", nullable=False, default="0"),
        Column("longest", "INTEGER", nullable=False, default="0"),
        Column("last_workout", "TIMESTAMPTZ"),
        Column("streak_start", "TIMESTAMPTZ"),
        Column("is_active", "BOOLEAN", nullable=False, default="true"),
    ),
)

FAKE_SOCIAL_ACTIVITIES = TableSpec(
    name="fake_social_activities",
    columns=_audit_columns()
    + (
        Column("activity_type", "TEXT", nullable=False),
        Column("fake_user_name", "TEXT", nullable=False),
        Column("details", "TEXT", nullable=False, default="''"),
        Column("timestamp", "TIMESTAMPTZ", nullable=False, default="now()"),
        Column("target_user_groups", "JSONB", nullable=False, default="'[]'::jsonb"),
    ),
    unique=(("fake_user_name", "activity_type"),),
    checks=(
        (
            "activity_type",
            "activity_type IN ('workout_completed', 'streak_extended', 'pr_achieved')",
        ),
    ),
    template=True,
)

# Creation order: every table appears after the tables its foreign keys reference.
TABLES: tuple[TableSpec, ...] = (
    USERS,
    PROGRAMS,
    EXERCISES,
    ACHIEVEMENTS,
    WORKOUTS,
    USER_ACHIEVEMENTS,
    BUDDY_RELATIONSHIPS,
    WEASEL_MESSAGES,
    STREAKS,
    FAKE_SOCIAL_ACTIVITIES,
)

TEMPLATE_TABLES: tuple[str, ...] = tuple(table.name for table in TABLES if table.template)


def validate_schema(tables: tuple[TableSpec, ...] = TABLES) -> None:
    """Check the declared tables for ordering, key and naming mistakes.

    Raises
    ------
    SchemaDefinitionError
        When a table is declared twice, a foreign key points at a table that
        is not created earlier, a constraint names an unknown column, or a
        template table has no unique natural key.
    """
    created: set[str] = set()
    for table in tables:
        if table.name in created:
            raise SchemaDefinitionError(f"table {table.name} declared twice")
        names = table.column_names
        if len(set(names)) != len(names):
            raise SchemaDefinitionError(f"table {table.name} has duplicate columns")
        if "id" not in names:
            raise SchemaDefinitionError(f"table {table.name} has no id column")
        for column in table.foreign_keys:
            if column.references not in created:
                raise SchemaDefinitionError(
                    f"{table.name}.{column.name} references {column.references}, "
                    "which is not created before it"
                )
        for key in table.unique:
            missing = [name for name in key if name not in names]
            if missing:
                raise SchemaDefinitionError(
                    f"unique key on {table.name} names unknown columns: {', '.join(missing)}"
                )
        if table.template and not table.unique:
            raise SchemaDefinitionError(f"template table {table.name} has no natural key")
        created.add(table.name)


def schema_statements(tables: tuple[TableSpec, ...] = TABLES) -> list[str]:
    statements: list[str] = []
    for table in tables:
        statements.extend(table.ddl())
    return statements


def apply_schema(pool: ConnectionPool, tables: tuple[TableSpec, ...] = TABLES) -> None:
    """Create any missing tables in a single transaction."""
    validate_schema(tables)
    statements = schema_statements(tables)
    with pool.connection() as conn:
        with conn.transaction():
            with conn.cursor() as cur:
                for statement in statements:
                    cur.execute(statement)
    logger.info("schema applied", extra={"tables": len(tables)})
    logger.debug("applied %d schema statements", len(statements))
