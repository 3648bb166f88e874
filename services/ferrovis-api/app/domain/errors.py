"""Errors raised while bootstrapping the reference catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .bootstrap import SeedReport
    from .templates import EntityKind


class BootstrapError(Exception):
    """Base class for catalog bootstrap failures.

    ``fatal`` tells the startup sequence whether the process must stop
    before it starts serving traffic.
    """

    fatal = True

    def __init__(self, message: str, *, kind: "EntityKind | None" = None) -> None:
        super().__init__(message)
        self.kind = kind


class StoreUnavailable(BootstrapError):
    """The store could not be reached, or refused a count or insert."""


class InvalidCatalogEntry(BootstrapError):
    """A catalog row broke a store constraint other than uniqueness."""


class ConcurrentSeed(BootstrapError):
    """Another process inserted one or more template batches first."""

    fatal = False

    def __init__(self, kinds: Sequence["EntityKind"], report: "SeedReport") -> None:
        names = ", ".join(kind.value for kind in kinds)
        super().__init__(f"catalog batches already seeded by another process: {names}", kind=kinds[0])
        self.kinds = list(kinds)
        self.report = report
