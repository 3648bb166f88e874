from __future__ import annotations

from psycopg.conninfo import conninfo_to_dict

from app.config import Settings


def test_database_url_is_built_from_parts():
    settings = Settings(
        database_url_override="",
        db_host="db.internal",
        db_port="6543",
        db_user="ferrovis",
        db_password="s3cret",
        db_name="ferrovis",
        db_sslmode="require",
    )

    assert conninfo_to_dict(settings.database_url) == {
        "host": "db.internal",
        "port": "6543",
        "user": "ferrovis",
        "password": "s3cret",
        "dbname": "ferrovis",
        "sslmode": "require",
    }


def test_empty_password_is_left_out():
    settings = Settings(database_url_override="", db_password="")

    assert "password" not in conninfo_to_dict(settings.database_url)


def test_database_url_override_wins():
    settings = Settings(database_url_override="postgresql://app@db/ferrovis")

    assert settings.database_url == "postgresql://app@db/ferrovis"


def test_development_flag():
    assert Settings(environment="development").is_development
    assert not Settings(environment="production").is_development
