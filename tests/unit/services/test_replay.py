"""Offline queue replay ordering, dropping and at-least-once behavior."""

from __future__ import annotations

from hse_field_reports.domain.models import OfflineEditEntry, OfflineReportEntry, ReportDraft
from hse_field_reports.services.replay import replay_offline_queues

from . import make_wiring


def _entry(label: str) -> OfflineReportEntry:
    return OfflineReportEntry(type="Incident", submitted_by="user-1", data={"label": label})


def test_replay_creates_then_edits_in_fifo_order() -> None:
    wiring = make_wiring()
    existing = wiring.service.create(ReportDraft(type="Incident", data={"label": "x"}), "user-1")
    wiring.queue.enqueue_report(_entry("first"))
    wiring.queue.enqueue_report(_entry("second"))
    wiring.queue.enqueue_edit(OfflineEditEntry(report_id=existing.id, updated_data={"label": "y"}))

    result = replay_offline_queues(wiring.queue, wiring.service)

    assert result.halted is False
    assert len(result.created) == 2
    assert result.edited == (existing.id,)
    assert result.remaining.total == 0
    labels = [report.data["label"] for report in wiring.service.get_all()]
    assert labels == ["second", "first", "y"]


def test_edits_for_missing_reports_are_dropped() -> None:
    wiring = make_wiring()
    wiring.queue.enqueue_edit(OfflineEditEntry(report_id="INC-0404", updated_data={}))

    result = replay_offline_queues(wiring.queue, wiring.service)

    assert result.dropped_edits == ("INC-0404",)
    assert result.remaining.edits == 0


def test_store_failure_halts_and_keeps_remaining_entries() -> None:
    wiring = make_wiring()
    wiring.queue.enqueue_report(_entry("a"))
    wiring.queue.enqueue_report(_entry("b"))
    wiring.queue.enqueue_edit(OfflineEditEntry(report_id="INC-1", updated_data={}))
    wiring.backend.set("hse_reports", "{not json")

    result = replay_offline_queues(wiring.queue, wiring.service)

    assert result.halted is True
    assert result.error is not None and "hse_reports" in result.error
    assert result.created == ()
    assert (result.remaining.reports, result.remaining.edits) == (2, 1)
    assert [entry.data["label"] for entry in wiring.queue.reports.peek_all()] == ["a", "b"]


def test_replay_resumes_after_halt_is_cleared() -> None:
    wiring = make_wiring()
    wiring.queue.enqueue_report(_entry("a"))
    wiring.backend.set("hse_reports", "{not json")
    assert replay_offline_queues(wiring.queue, wiring.service).halted is True

    wiring.backend.remove("hse_reports")
    wiring.repository.reset_halt()
    result = replay_offline_queues(wiring.queue, wiring.service)

    assert result.halted is False
    assert len(result.created) == 1
    assert result.remaining.total == 0


def test_empty_queues_replay_to_nothing() -> None:
    wiring = make_wiring()

    result = replay_offline_queues(wiring.queue, wiring.service)

    assert (result.created, result.edited, result.dropped_edits) == ((), (), ())
    assert result.halted is False
