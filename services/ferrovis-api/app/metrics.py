"""Prometheus collectors for the Ferrovis API."""

from __future__ import annotations

from prometheus_client import Counter

SEEDED_ROWS = Counter(
    "ferrovis_catalog_seeded_rows_total",
    "Template rows written by the catalog bootstrapper.",
    ["kind"],
)

BOOTSTRAP_RUNS = Counter(
    "ferrovis_catalog_bootstrap_runs_total",
    "Catalog bootstrap runs by outcome (seeded, skipped, concurrent, failed).",
    ["outcome"],
)
