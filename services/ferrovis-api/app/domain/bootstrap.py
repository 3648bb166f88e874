"""One-time population of the reference catalog (programs, exercises, achievements, fake feed)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from schemas import SeedCatalog

from .. import metrics
from ..repository import (
    CatalogRepository,
    ConstraintViolationError,
    DuplicateRowError,
    RepositoryError,
)
from .errors import BootstrapError, ConcurrentSeed, InvalidCatalogEntry, StoreUnavailable
from .templates import SEED_ORDER, EntityKind

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class SeedReport:
    """Outcome of a bootstrap run."""

    skipped: bool = False
    inserted: dict[EntityKind, int] = field(default_factory=dict)
    conflicts: list[EntityKind] = field(default_factory=list)

    @property
    def total_inserted(self) -> int:
        return sum(self.inserted.values())


class CatalogBootstrapper:
    """Writes a fixed catalog into an empty store exactly once.

    The "already seeded" decision looks only at the ``programs`` table. A
    store whose earlier seed failed after programs were committed is
    reported as seeded and the missing batches are not repaired.
    """

    def __init__(
        self,
        repository: CatalogRepository,
        catalog: SeedCatalog,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repository = repository
        self._catalog = catalog
        self._clock = clock

    def ensure_seeded(self) -> SeedReport:
        """Seed the template tables unless the store already holds programs.

        Returns
        -------
        SeedReport
            Rows inserted per entity kind, or ``skipped=True`` when the store
            was already seeded.

        Raises
        ------
        StoreUnavailable
            The store could not be reached or refused the operation; remaining
            batches are not attempted.
        InvalidCatalogEntry
            A catalog row broke a non-unique constraint; remaining batches are
            not attempted.
        ConcurrentSeed
            At least one batch collided with rows written by another process.
            Every other batch was still attempted; ``report`` holds the outcome.
        """
        sizes = {kind.value: self._catalog.size(kind.value) for kind in SEED_ORDER}
        logger.info(
            "catalog bootstrap started: %s",
            ", ".join(f"{name}={size}" for name, size in sizes.items()),
            extra={"catalog": sizes},
        )
        report = SeedReport()

        existing = self._count(EntityKind.programs)
        if existing > 0:
            report.skipped = True
            logger.info(
                "catalog already seeded, skipping (programs=%d)",
                existing,
                extra={"programs": existing},
            )
            metrics.BOOTSTRAP_RUNS.labels(outcome="skipped").inc()
            return report

        now = self._clock()
        for kind in SEED_ORDER:
            rows = self._catalog.rows_for(kind.value, now)
            try:
                report.inserted[kind] = self._repository.insert_batch(kind, rows)
            except DuplicateRowError as exc:
                report.inserted[kind] = 0
                report.conflicts.append(kind)
                logger.warning(
                    "%s batch already present, assuming a concurrent seeder: %s",
                    kind.value,
                    exc,
                    extra={"kind": kind.value},
                )
                continue
            except ConstraintViolationError as exc:
                metrics.BOOTSTRAP_RUNS.labels(outcome="failed").inc()
                raise InvalidCatalogEntry(
                    f"{kind.value} batch violates a store constraint: {exc}", kind=kind
                ) from exc
            except RepositoryError as exc:
                metrics.BOOTSTRAP_RUNS.labels(outcome="failed").inc()
                raise StoreUnavailable(
                    f"store unusable while inserting {kind.value} batch: {exc}", kind=kind
                ) from exc
            metrics.SEEDED_ROWS.labels(kind=kind.value).inc(report.inserted[kind])

        if report.conflicts:
            metrics.BOOTSTRAP_RUNS.labels(outcome="concurrent").inc()
            raise ConcurrentSeed(report.conflicts, report)

        metrics.BOOTSTRAP_RUNS.labels(outcome="seeded").inc()
        logger.info(
            "catalog seeded: %s",
            ", ".join(f"{kind.value}={count}" for kind, count in report.inserted.items()),
            extra={"inserted": {kind.value: count for kind, count in report.inserted.items()}},
        )
        return report

    def _count(self, kind: EntityKind) -> int:
        try:
            return self._repository.count_rows(kind)
        except RepositoryError as exc:
            metrics.BOOTSTRAP_RUNS.labels(outcome="failed").inc()
            raise StoreUnavailable(
                f"store unusable while counting {kind.value}: {exc}", kind=kind
            ) from exc


def bootstrap_catalog(repository: CatalogRepository, catalog: SeedCatalog) -> SeedReport:
    """Run the bootstrapper for process startup.

    A concurrent seeder is not an error at startup: the warning is logged and
    the partial report returned. Fatal errors propagate so the caller aborts.
    """
    try:
        return CatalogBootstrapper(repository, catalog).ensure_seeded()
    except ConcurrentSeed as exc:
        logger.warning("catalog seeded concurrently by another process: %s", exc)
        return exc.report
    except BootstrapError as exc:
        logger.error(
            "catalog bootstrap failed: %s",
            exc,
            extra={"kind": exc.kind.value if exc.kind else None},
        )
        raise
