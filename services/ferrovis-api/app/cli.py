"""Administrative commands: ``ferrovis-admin migrate|seed|status``."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Sequence

import psycopg
from psycopg_pool import ConnectionPool

from .catalog import load_seed_catalog
from .config import Settings, get_settings
from .domain.bootstrap import bootstrap_catalog
from .domain.errors import BootstrapError
from .log import configure_logging
from .repository import CatalogRepository, RepositoryError
from .schema import apply_schema

logger = logging.getLogger(__name__)


@contextmanager
def open_pool(settings: Settings) -> Iterator[ConnectionPool]:
    with ConnectionPool(settings.database_url, timeout=settings.db_connect_timeout) as pool:
        yield pool


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ferrovis-admin", description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("migrate", help="create any missing tables")
    seed = sub.add_parser("seed", help="seed the reference catalog if the store is empty")
    seed.add_argument(
        "--migrate", action="store_true", help="apply the schema before seeding"
    )
    sub.add_parser("status", help="print template row counts as JSON")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    try:
        with open_pool(settings) as pool:
            repository = CatalogRepository(pool)
            if args.command == "migrate" or getattr(args, "migrate", False):
                apply_schema(pool)
            if args.command == "seed":
                report = bootstrap_catalog(repository, load_seed_catalog())
                print(
                    json.dumps(
                        {
                            "skipped": report.skipped,
                            "inserted": {k.value: v for k, v in report.inserted.items()},
                            "conflicts": [k.value for k in report.conflicts],
                        }
                    )
                )
            elif args.command == "status":
                counts = repository.count_templates()
                print(json.dumps({kind.value: count for kind, count in counts.items()}))
    except (BootstrapError, RepositoryError, psycopg.Error) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
