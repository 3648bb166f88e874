from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os

from dotenv import load_dotenv
from psycopg.conninfo import make_conninfo

# A local .env only fills in variables the environment does not already set.
load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in os.getenv(name, default).split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Runtime configuration values exposed to FastAPI components and the admin CLI."""

    app_name: str = "ferrovis-api"
    version: str = os.getenv("APP_VERSION", "dev")
    commit: str = os.getenv("GIT_COMMIT", "unknown")
    build_date: str = os.getenv("BUILD_DATE", "unknown")
    environment: str = os.getenv("ENVIRONMENT", "production").lower()
    log_level: str = os.getenv("LOG_LEVEL", "").upper()
    database_url_override: str = os.getenv("DATABASE_URL", "")
    db_host: str = os.getenv("DB_HOST", "localhost")
    db_port: str = os.getenv("DB_PORT", "5432")
    db_user: str = os.getenv("DB_USER", "postgres")
    db_password: str = os.getenv("DB_PASSWORD", "")
    db_name: str = os.getenv("DB_NAME", "liftbuddy_dev")
    db_sslmode: str = os.getenv("DB_SSLMODE", "disable")
    db_connect_timeout: float = float(os.getenv("DB_CONNECT_TIMEOUT", "10"))
    http_host: str = os.getenv("HTTP_HOST", "0.0.0.0")
    http_port: int = int(os.getenv("PORT", "8080"))
    cors_allow_origins: tuple[str, ...] = _env_list("CORS_ALLOW_ORIGINS", "*")
    apply_schema: bool = _env_flag("APPLY_SCHEMA", True)
    seed_on_startup: bool = _env_flag("SEED_ON_STARTUP", True)

    @property
    def database_url(self) -> str:
        """Return ``DATABASE_URL`` when set, otherwise a conninfo built from the ``DB_*`` parts."""
        if self.database_url_override:
            return self.database_url_override
        return make_conninfo(
            host=self.db_host,
            port=self.db_port,
            user=self.db_user,
            password=self.db_password or None,
            dbname=self.db_name,
            sslmode=self.db_sslmode,
        )

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached Settings instance for the running process."""
    return Settings()
