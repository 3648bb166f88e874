"""Packaged seed catalog for the template tables."""

from __future__ import annotations

from functools import lru_cache
from importlib import resources

from pydantic import ValidationError

from schemas import SeedCatalog

from ..domain.errors import InvalidCatalogEntry

CATALOG_FILE = "seed_catalog.json"


@lru_cache(maxsize=1)
def load_seed_catalog() -> SeedCatalog:
    """Parse and validate the packaged catalog document."""
    raw = resources.files(__name__).joinpath(CATALOG_FILE).read_text(encoding="utf-8")
    try:
        return SeedCatalog.model_validate_json(raw)
    except ValidationError as exc:
        raise InvalidCatalogEntry(f"{CATALOG_FILE} failed validation: {exc}") from exc
