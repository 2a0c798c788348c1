"""Domain model validation and wire-format round trips."""

from __future__ import annotations

import math
from datetime import UTC, date, datetime, timedelta, timezone

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from hse_field_reports.domain.events import NotifyUser, PurgeReportNotifications, ReportChange
from hse_field_reports.domain.models import (
    ChecklistStatus,
    GeoLocation,
    JSONValue,
    OfflineReportEntry,
    Report,
    ReportDraft,
    ReportStatus,
    ReportType,
    checklist_items,
    event_date_from_payload,
    iso8601z,
    parse_iso8601,
    summarize_checklist,
)

TODAY = date(2026, 10, 17)
_RECORD = {"type": "Incident", "date": "d", "status": "s", "submittedBy": "u"}


def _report(**overrides: object) -> Report:
    values: dict[str, object] = {
        "id": "SAF-0001",
        "type": ReportType.SAFETY_INSPECTION.value,
        "date": "2026-10-01",
        "status": ReportStatus.SUBMITTED.value,
        "submitted_by": "user-1",
        "data": {},
    }
    values.update(overrides)
    return Report(**values)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        (
            {"inspectionDate": "2026-01-02T03:04:05Z", "dateTime": "2026-02-02", "date": "x"},
            "2026-01-02",
        ),
        ({"dateTime": "2026-02-03T10:00:00.000Z", "date": "2026-09-09"}, "2026-02-03"),
        ({"date": "2026-04-05"}, "2026-04-05"),
        ({"inspectionDate": "", "dateTime": "2026-05-06T00:00:00Z"}, "2026-05-06"),
        ({"inspectionDate": 20260101}, "2026-10-17"),
        ({"inspectionDate": 20250101, "dateTime": "2025-03-03T10:00"}, "2026-10-17"),
        ({"inspectionDate": None, "dateTime": "2025-03-03T10:00"}, "2025-03-03"),
        ({}, "2026-10-17"),
    ],
)
def test_event_date_priority(payload: dict[str, object], expected: str) -> None:
    assert event_date_from_payload(payload, today=TODAY) == expected


def test_report_round_trip_keeps_unknown_keys() -> None:
    payload = {
        "id": "INC-1234",
        "type": "Incident",
        "date": "2026-10-17",
        "status": "Submitted",
        "submittedBy": "user-1",
        "assignedTo": "user-2",
        "data": {"description": "Trip hazard", "photos": []},
        "syncedAt": "2026-10-17T08:00:00.000Z",
    }

    report = Report.from_dict(payload)

    assert report.extras == {"syncedAt": "2026-10-17T08:00:00.000Z"}
    assert report.to_dict() == payload


def test_report_empty_assignee_means_unassigned() -> None:
    assert _report(assigned_to="").assigned_to is None
    assert "assignedTo" not in _report(assigned_to="").to_dict()


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"id": "R1"}, "missing required field"),
        ({"id": 1, **_RECORD, "data": {}}, r"Report\.id"),
        ({"id": "R1", **_RECORD, "data": []}, r"Report\.data"),
        ({"id": "R1", **_RECORD, "data": None}, r"Report\.data"),
    ],
)
def test_report_from_dict_rejects_invalid_records(payload: dict[str, object], message: str) -> None:
    with pytest.raises(ValueError, match=message):
        Report.from_dict(payload)


def test_draft_data_rejects_non_finite_numbers_and_deep_nesting() -> None:
    nested: dict[str, object] = {}
    for _ in range(70):
        nested = {"child": nested}

    with pytest.raises(ValueError, match="finite"):
        ReportDraft(type="Incident", data={"reading": float("nan")})
    with pytest.raises(ValueError, match="too deep"):
        ReportDraft(type="Incident", data=nested)  # type: ignore[arg-type]


def test_stored_report_keeps_non_string_optionals_deep_data_and_nan() -> None:
    nested: dict[str, object] = {"leaf": True}
    for _ in range(70):
        nested = {"child": nested}
    payload = {"id": "R1", **_RECORD, "assignedTo": 7, "lastEdited": False, "data": nested}

    report = Report.from_dict(payload)

    assert report.assigned_to is None
    assert report.last_edited is None
    assert report.extras == {"assignedTo": 7, "lastEdited": False}
    assert report.to_dict() == payload
    assert math.isnan(Report.from_dict({**payload, "data": {"x": float("nan")}}).data["x"])


def test_is_closed_accepts_stored_strings() -> None:
    assert _report(status="Closed").is_closed is True
    assert _report(status="In Review").is_closed is False


def test_checklist_items_and_summary() -> None:
    report = _report(
        data={
            "checklist": [
                {"id": "1", "text": "Guards fitted", "status": "Pass"},
                {"id": "2", "text": "Exit clear", "status": "Fail", "notes": "Pallets"},
                {"id": "3", "text": "Spill kit", "status": "N/A"},
                {"id": "4", "text": "Signage", "status": None},
                "ignored",
            ]
        }
    )

    items = checklist_items(report)
    summary = summarize_checklist(items)

    assert [item.status for item in items] == [
        ChecklistStatus.PASS,
        ChecklistStatus.FAIL,
        ChecklistStatus.NOT_APPLICABLE,
        None,
    ]
    assert items[1].notes == "Pallets"
    assert (summary.passed, summary.failed, summary.not_applicable, summary.unrated) == (1, 1, 1, 1)
    assert [item.is_rated for item in items] == [True, True, True, False]
    assert summary.total == 4


def test_checklist_only_applies_to_safety_inspections() -> None:
    report = _report(type="Incident", data={"checklist": [{"text": "x", "status": "Pass"}]})

    assert checklist_items(report) == ()


def test_checklist_rejects_unknown_status() -> None:
    report = _report(data={"checklist": [{"text": "x", "status": "Maybe"}]})

    with pytest.raises(ValueError, match="unsupported value"):
        checklist_items(report)


def test_draft_requires_type_and_object_data() -> None:
    with pytest.raises(ValueError, match="ReportDraft.type"):
        ReportDraft(type=" ")
    with pytest.raises(ValueError, match="ReportDraft.data"):
        ReportDraft(type="Incident", data=None)  # type: ignore[arg-type]


def test_offline_entry_converts_to_draft() -> None:
    entry = OfflineReportEntry.from_dict(
        {"type": "Near Miss", "submittedBy": "u1", "data": {"a": 1}, "origin": "tablet"}
    )

    draft = entry.to_draft()

    assert (draft.type, draft.data, draft.extras) == ("Near Miss", {"a": 1}, {"origin": "tablet"})


def test_geolocation_validates_ranges() -> None:
    assert GeoLocation(latitude=59.9, longitude=10.7).to_dict() == {
        "latitude": 59.9,
        "longitude": 10.7,
    }
    with pytest.raises(ValueError, match="latitude"):
        GeoLocation(latitude=91, longitude=0)
    with pytest.raises(ValueError, match="longitude"):
        GeoLocation(latitude=0, longitude=True)  # type: ignore[arg-type]


def test_iso8601z_and_parse() -> None:
    value = datetime(2026, 10, 17, 10, 30, tzinfo=timezone(timedelta(hours=2)))

    rendered = iso8601z(value)

    assert rendered == "2026-10-17T08:30:00.000Z"
    assert parse_iso8601(rendered) == value
    assert parse_iso8601("not a date") is None
    with pytest.raises(ValueError, match="timezone-aware"):
        iso8601z(datetime(2026, 1, 1))


def test_effects_serialize_with_kind() -> None:
    change = ReportChange(
        report=None,
        effects=(
            NotifyUser(user_id="u1", report_id="R1", message="hi"),
            PurgeReportNotifications(report_id="R1"),
        ),
    )

    assert change.found is False
    assert [effect.to_dict()["kind"] for effect in change.effects] == [
        "NotifyUser",
        "PurgeReportNotifications",
    ]


_SCALARS: st.SearchStrategy[JSONValue] = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-1_000, max_value=1_000),
    st.text(max_size=12),
)
_JSON: st.SearchStrategy[JSONValue] = st.recursive(
    _SCALARS,
    lambda child: st.one_of(
        st.lists(child, max_size=3),
        st.dictionaries(st.text(min_size=1, max_size=6), child, max_size=3),
    ),
    max_leaves=12,
)


@given(data=st.dictionaries(st.text(min_size=1, max_size=8), _JSON, max_size=5))
@settings(max_examples=25, derandomize=True, deadline=None)
def test_property_report_data_survives_round_trip(data: dict[str, JSONValue]) -> None:
    report = _report(data=data, last_edited=iso8601z(datetime(2026, 1, 1, tzinfo=UTC)))

    assert Report.from_dict(report.to_dict()) == report
