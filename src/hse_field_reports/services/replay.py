"""Drains the offline queues into the report service once connectivity returns."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from hse_field_reports.persistence.kv_store import StoreFatalError
from hse_field_reports.persistence.repositories import OfflineQueue, PendingCounts
from hse_field_reports.services.reports import ReportService

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ReplayResult:
    created: tuple[str, ...] = field(default_factory=tuple)
    edited: tuple[str, ...] = field(default_factory=tuple)
    dropped_edits: tuple[str, ...] = field(default_factory=tuple)
    halted: bool = False
    error: str | None = None
    remaining: PendingCounts = field(default_factory=lambda: PendingCounts(reports=0, edits=0))


def replay_offline_queues(queue: OfflineQueue, service: ReportService) -> ReplayResult:
    """Replay queued creates, then queued edits, each in FIFO order.

    Each entry leaves its queue only after it was applied, so a crash or a
    store failure replays it again later (at-least-once). On a store failure
    the failing entry and everything behind it stay queued, and edits are not
    attempted while creates remain. Edits whose report no longer exists are
    dropped.
    """
    created: list[str] = []
    edited: list[str] = []
    dropped: list[str] = []

    def _result(*, error: StoreFatalError | None = None) -> ReplayResult:
        result = ReplayResult(
            created=tuple(created),
            edited=tuple(edited),
            dropped_edits=tuple(dropped),
            halted=error is not None,
            error=None if error is None else str(error),
            remaining=queue.pending_counts(),
        )
        log = logger.error if error is not None else logger.info
        log(
            "offline_replay_finished",
            created=len(created),
            edited=len(edited),
            dropped_edits=len(dropped),
            halted=result.halted,
            remaining_reports=result.remaining.reports,
            remaining_edits=result.remaining.edits,
        )
        return result

    for entry in queue.reports.peek_all():
        try:
            report = service.create(entry.to_draft(), entry.submitted_by)
            queue.reports.discard_head(1)
        except StoreFatalError as exc:
            return _result(error=exc)
        created.append(report.id)

    for edit in queue.edits.peek_all():
        try:
            report = service.update(edit.report_id, edit.updated_data)
            queue.edits.discard_head(1)
        except StoreFatalError as exc:
            return _result(error=exc)
        if report is None:
            logger.warning("offline_edit_dropped", report_id=edit.report_id, reason="not found")
            dropped.append(edit.report_id)
        else:
            edited.append(report.id)

    return _result()


__all__ = ["ReplayResult", "replay_offline_queues"]
