"""
PTCG Data - Error taxonomy.

Migration code only lets LocalLoadError (or a store failure inside an
authoritative step) abort a run. RemoteFetchError and RecordShapeError are
recoverable and get logged and counted. QueryError and NotFoundError are the
read-side errors mapped to HTTP 500 / 404 by the API layer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ptcg_data.pipeline.migrate import MigrationReport


class PtcgDataError(Exception):
    """Base class for all PTCG Data errors."""


class LocalLoadError(PtcgDataError):
    """A local dataset file is unreadable or not valid JSON/YAML."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to load {path}: {reason}")
        self.path = path
        self.reason = reason


class RemoteFetchError(PtcgDataError):
    """Network, status or decode failure from an external API."""

    def __init__(self, url: str, reason: str, status_code: int | None = None) -> None:
        super().__init__(f"Fetch failed for {url}: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code


class RecordShapeError(PtcgDataError):
    """A single record cannot be normalized. Skip it, keep the batch."""


class QueryError(PtcgDataError):
    """A read query against the store failed."""


class NotFoundError(PtcgDataError):
    """The requested identifier has no matching row."""

    def __init__(self, resource: str, identifier: object) -> None:
        super().__init__(f"{resource} {identifier} not found")
        self.resource = resource
        self.identifier = identifier


class MigrationAbortedError(PtcgDataError):
    """An authoritative migration step failed; the run stopped early."""

    def __init__(self, step: str, report: MigrationReport) -> None:
        super().__init__(f"Migration aborted at step '{step}'")
        self.step = step
        self.report = report
