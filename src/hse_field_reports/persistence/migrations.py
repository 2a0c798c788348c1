"""Versioned envelope handling and record-level migration of the report collection.

Stored shapes:

- version 1: a bare JSON array of report objects;
- version 2: ``{"version": 2, "reports": [...]}``.

Migration is a pure function over the parsed document so it can be tested
without a store; :class:`ReportMigrator` couples it with the write-through.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Final

import structlog

from hse_field_reports.constants import (
    LEGACY_DEFAULT_SUBMITTER,
    REPORTS_KEY,
    REPORTS_SCHEMA_VERSION,
)
from hse_field_reports.domain import ids
from hse_field_reports.domain.models import Report, ReportStatus, ReportType
from hse_field_reports.persistence.kv_store import JsonDocumentStore, StoreFatalError

logger = structlog.get_logger(__name__)

LEGACY_SCHEMA_VERSION: Final[int] = 1


class UnrecognizedEnvelopeError(StoreFatalError):
    """The stored document is valid JSON but neither a v1 array nor a versioned envelope."""


class UnsupportedSchemaVersionError(StoreFatalError):
    """The stored envelope was written by a newer schema than this code understands."""


@dataclass(frozen=True, slots=True)
class DiscardedRecord:
    index: int
    reason: str


@dataclass(frozen=True, slots=True)
class MigrationResult:
    reports: tuple[Report, ...]
    rewrite_needed: bool
    source_version: int
    migrated: int = 0
    discarded: tuple[DiscardedRecord, ...] = field(default_factory=tuple)


def wrap_envelope(reports: list[Report] | tuple[Report, ...]) -> dict[str, object]:
    return {
        "version": REPORTS_SCHEMA_VERSION,
        "reports": [report.to_dict() for report in reports],
    }


def _unwrap(raw: object) -> tuple[int, list[object]]:
    if isinstance(raw, list):
        return LEGACY_SCHEMA_VERSION, raw
    if isinstance(raw, dict):
        version = raw.get("version")
        reports = raw.get("reports")
        if isinstance(version, int) and not isinstance(version, bool) and isinstance(reports, list):
            return version, reports
    raise UnrecognizedEnvelopeError(
        f"{REPORTS_KEY}: unrecognized report data format ({type(raw).__name__}); "
        "refusing to load to avoid data loss"
    )


def _backfill_legacy(
    record: dict[str, object], *, index: int, today: date, now_ms: int
) -> dict[str, object]:
    """Fill v1 gaps. Falsy values count as missing, as the v1 writer left blanks."""
    patched = dict(record)
    patched["id"] = record.get("id") or ids.migrated_report_id(now_ms, index)
    patched["type"] = record.get("type") or ReportType.INCIDENT.value
    patched["date"] = record.get("date") or today.isoformat()
    patched["status"] = record.get("status") or ReportStatus.SUBMITTED.value
    patched["submittedBy"] = record.get("submittedBy") or LEGACY_DEFAULT_SUBMITTER
    patched["data"] = record.get("data") or {}
    return patched


def migrate_report_collection(raw: object, *, today: date, now_ms: int) -> MigrationResult:
    """Bring a parsed report document up to the current schema.

    Raises :class:`UnrecognizedEnvelopeError` for unknown shapes and
    :class:`UnsupportedSchemaVersionError` for envelopes newer than
    ``REPORTS_SCHEMA_VERSION``. Records that are not objects, or that are
    still invalid after backfill, are discarded and the collection is flagged
    for rewrite.
    """
    version, raw_reports = _unwrap(raw)
    if version > REPORTS_SCHEMA_VERSION:
        raise UnsupportedSchemaVersionError(
            f"{REPORTS_KEY}: stored schema version {version} is newer than "
            f"supported version {REPORTS_SCHEMA_VERSION}"
        )

    rewrite_needed = version < REPORTS_SCHEMA_VERSION
    reports: list[Report] = []
    discarded: list[DiscardedRecord] = []
    migrated = 0

    for index, record in enumerate(raw_reports):
        if not isinstance(record, dict):
            logger.warning(
                "report_record_discarded",
                index=index,
                reason="not an object",
                value_type=type(record).__name__,
            )
            discarded.append(DiscardedRecord(index=index, reason="not an object"))
            rewrite_needed = True
            continue

        candidate = record
        if version < REPORTS_SCHEMA_VERSION:
            candidate = _backfill_legacy(record, index=index, today=today, now_ms=now_ms)
            migrated += 1

        try:
            report = Report.from_dict(candidate)
        except ValueError as exc:
            logger.warning("report_record_discarded", index=index, reason=str(exc))
            discarded.append(DiscardedRecord(index=index, reason=str(exc)))
            rewrite_needed = True
            continue
        reports.append(report)

    return MigrationResult(
        reports=tuple(reports),
        rewrite_needed=rewrite_needed,
        source_version=version,
        migrated=migrated,
        discarded=tuple(discarded),
    )


def _utc_today() -> date:
    return datetime.now(UTC).date()


class ReportMigrator:
    """Loads the report key through :func:`migrate_report_collection`, writing back when needed."""

    def __init__(
        self,
        *,
        today: Callable[[], date] = _utc_today,
        now_ms: Callable[[], int] = ids.current_epoch_ms,
    ) -> None:
        self._today = today
        self._now_ms = now_ms

    def inspect(self, store: JsonDocumentStore) -> MigrationResult | None:
        """Run the migration without writing; ``None`` when the key is absent.

        A stored JSON ``null`` is present but unrecognized, so it is fatal.
        """
        text = store.read_raw(REPORTS_KEY)
        if text is None:
            return None
        raw = store.decode(REPORTS_KEY, text)
        return migrate_report_collection(raw, today=self._today(), now_ms=self._now_ms())

    def load(self, store: JsonDocumentStore) -> MigrationResult:
        result = self.inspect(store)
        if result is None:
            return MigrationResult(
                reports=(), rewrite_needed=False, source_version=REPORTS_SCHEMA_VERSION
            )
        if result.rewrite_needed:
            store.save(REPORTS_KEY, wrap_envelope(result.reports))
            logger.info(
                "report_collection_migrated",
                source_version=result.source_version,
                target_version=REPORTS_SCHEMA_VERSION,
                migrated=result.migrated,
                discarded=len(result.discarded),
                kept=len(result.reports),
            )
        return result


__all__ = [
    "LEGACY_SCHEMA_VERSION",
    "DiscardedRecord",
    "MigrationResult",
    "ReportMigrator",
    "UnrecognizedEnvelopeError",
    "UnsupportedSchemaVersionError",
    "migrate_report_collection",
    "wrap_envelope",
]
