"""Dataclass domain models with validation and camelCase wire serialization."""

from __future__ import annotations

import copy
import json
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Final, NoReturn, cast

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

_MAX_JSON_DEPTH: Final[int] = 64

# Payload fields consulted for the event date, highest priority first.
EVENT_DATE_FIELDS: Final[tuple[str, ...]] = ("inspectionDate", "dateTime", "date")


class ReportType(StrEnum):
    INCIDENT = "Incident"
    NEAR_MISS = "Near Miss"
    SAFETY_INSPECTION = "Safety Inspection"
    ENVIRONMENTAL = "Environmental"


class ReportStatus(StrEnum):
    SUBMITTED = "Submitted"
    IN_REVIEW = "In Review"
    CLOSED = "Closed"


class ChecklistStatus(StrEnum):
    PASS = "Pass"
    FAIL = "Fail"
    NOT_APPLICABLE = "N/A"


def _fail(path: str, message: str) -> NoReturn:
    raise ValueError(f"{path}: {message}")


def _as_str(value: object, path: str) -> str:
    if not isinstance(value, str):
        _fail(path, f"expected string, got {type(value).__name__}")
    return value


def _as_optional_str(value: object, path: str) -> str | None:
    if value is None:
        return None
    return _as_str(value, path)


def _as_float(value: object, path: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        _fail(path, f"expected number, got {type(value).__name__}")
    parsed = float(value)
    if not math.isfinite(parsed):
        _fail(path, "must be finite")
    return parsed


def _as_json_value(
    value: object, path: str, *, depth: int = 0, strict: bool = True
) -> JSONValue:
    if strict and depth > _MAX_JSON_DEPTH:
        _fail(path, "JSON nesting too deep")
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        if strict and not math.isfinite(value):
            _fail(path, "float value must be finite")
        return value
    if isinstance(value, (list, tuple)):
        return [
            _as_json_value(item, f"{path}[{index}]", depth=depth + 1, strict=strict)
            for index, item in enumerate(value)
        ]
    if isinstance(value, Mapping):
        out: dict[str, JSONValue] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                _fail(path, "object keys must be strings")
            out[key] = _as_json_value(item, f"{path}.{key}", depth=depth + 1, strict=strict)
        return out
    _fail(path, f"value is not JSON-serializable ({type(value).__name__})")


def as_json_object(value: object, path: str, *, strict: bool = True) -> dict[str, JSONValue]:
    """Validate and deep-copy a JSON object (``dict`` with string keys).

    ``strict=False`` skips the nesting and finite-number checks; stored records
    are copied as they were written.
    """
    if not isinstance(value, Mapping):
        _fail(path, f"expected object, got {type(value).__name__}")
    return cast("dict[str, JSONValue]", _as_json_value(value, path, strict=strict))


def _split_extras(
    payload: Mapping[str, object], known: frozenset[str], path: str, *, strict: bool = True
) -> dict[str, JSONValue]:
    return {
        key: _as_json_value(value, f"{path}.{key}", strict=strict)
        for key, value in payload.items()
        if isinstance(key, str) and key not in known
    }


def canonical_json(value: object) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def iso8601z(value: datetime) -> str:
    """Millisecond ISO-8601 in UTC with a ``Z`` suffix, e.g. ``2026-10-17T08:30:00.000Z``."""
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError("datetime must be timezone-aware")
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso8601(value: str) -> datetime | None:
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def event_date_from_payload(data: Mapping[str, object], *, today: date) -> str:
    """Extract the event date (``YYYY-MM-DD``) from a report payload.

    The first truthy value among ``inspectionDate``, ``dateTime`` and ``date``
    wins. A string is truncated to ten characters; any other type, or no
    truthy value at all, yields the supplied ``today``.
    """
    candidate = next((data[key] for key in EVENT_DATE_FIELDS if data.get(key)), None)
    if isinstance(candidate, str):
        return candidate[:10]
    return today.isoformat()


@dataclass(slots=True)
class Report:
    """A persisted HSE report.

    ``type`` and ``status`` keep the stored string so values written by other
    clients survive a rewrite; compare them against :class:`ReportType` and
    :class:`ReportStatus` members.
    """

    id: str
    type: str
    date: str
    status: str
    submitted_by: str
    data: dict[str, JSONValue] = field(default_factory=dict)
    assigned_to: str | None = None
    last_edited: str | None = None
    extras: dict[str, JSONValue] = field(default_factory=dict)

    _KNOWN_KEYS = frozenset(
        {"id", "type", "date", "status", "submittedBy", "assignedTo", "lastEdited", "data"}
    )

    def __post_init__(self) -> None:
        self.id = _as_str(self.id, "Report.id")
        self.type = _as_str(self.type, "Report.type")
        self.date = _as_str(self.date, "Report.date")
        self.status = _as_str(self.status, "Report.status")
        self.submitted_by = _as_str(self.submitted_by, "Report.submitted_by")
        self.data = as_json_object(self.data, "Report.data", strict=False)
        self.assigned_to = _as_optional_str(self.assigned_to, "Report.assigned_to") or None
        self.last_edited = _as_optional_str(self.last_edited, "Report.last_edited")
        self.extras = as_json_object(self.extras, "Report.extras", strict=False)

    @property
    def is_closed(self) -> bool:
        return self.status == ReportStatus.CLOSED

    def to_dict(self) -> dict[str, JSONValue]:
        payload: dict[str, JSONValue] = copy.deepcopy(self.extras)
        payload.update(
            {
                "id": self.id,
                "type": self.type,
                "date": self.date,
                "status": self.status,
                "submittedBy": self.submitted_by,
            }
        )
        if self.assigned_to is not None:
            payload["assignedTo"] = self.assigned_to
        if self.last_edited is not None:
            payload["lastEdited"] = self.last_edited
        payload["data"] = copy.deepcopy(self.data)
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> Report:
        if not isinstance(payload, Mapping):
            _fail("Report", f"expected object, got {type(payload).__name__}")
        for required in ("id", "type", "date", "status", "submittedBy", "data"):
            if required not in payload:
                _fail("Report", f"missing required field {required!r}")
        data = payload["data"]
        if data is None or not isinstance(data, Mapping):
            _fail("Report.data", "must be a non-null object")
        extras = _split_extras(payload, cls._KNOWN_KEYS, "Report", strict=False)
        optional: dict[str, str | None] = {}
        for key in ("assignedTo", "lastEdited"):
            value = payload.get(key)
            if value is None or isinstance(value, str):
                optional[key] = value
            else:
                # Non-string values stay in extras untouched.
                extras[key] = _as_json_value(value, f"Report.{key}", strict=False)
                optional[key] = None
        return cls(
            id=_as_str(payload["id"], "Report.id"),
            type=_as_str(payload["type"], "Report.type"),
            date=_as_str(payload["date"], "Report.date"),
            status=_as_str(payload["status"], "Report.status"),
            submitted_by=_as_str(payload["submittedBy"], "Report.submittedBy"),
            data=as_json_object(data, "Report.data", strict=False),
            assigned_to=optional["assignedTo"],
            last_edited=optional["lastEdited"],
            extras=extras,
        )


@dataclass(frozen=True, slots=True)
class ChecklistItem:
    """One rated line of a Safety Inspection checklist; ``status`` is ``None`` until rated."""

    text: str
    status: ChecklistStatus | None = None
    id: str | None = None
    notes: str | None = None

    @property
    def is_rated(self) -> bool:
        return self.status is not None

    def to_dict(self) -> dict[str, JSONValue]:
        payload: dict[str, JSONValue] = {
            "id": self.id,
            "text": self.text,
            "status": None if self.status is None else self.status.value,
        }
        if self.notes is not None:
            payload["notes"] = self.notes
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> ChecklistItem:
        raw_status = payload.get("status")
        status: ChecklistStatus | None
        if raw_status is None:
            status = None
        else:
            try:
                status = ChecklistStatus(_as_str(raw_status, "ChecklistItem.status"))
            except ValueError as exc:
                raise ValueError(f"ChecklistItem.status: unsupported value {raw_status!r}") from exc
        raw_id = payload.get("id")
        return cls(
            text=_as_str(payload.get("text"), "ChecklistItem.text"),
            status=status,
            id=None if raw_id is None else str(raw_id),
            notes=_as_optional_str(payload.get("notes"), "ChecklistItem.notes"),
        )


@dataclass(frozen=True, slots=True)
class ChecklistSummary:
    passed: int
    failed: int
    not_applicable: int
    unrated: int

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.not_applicable + self.unrated


def checklist_items(report: Report) -> tuple[ChecklistItem, ...]:
    """Parse the checklist of a Safety Inspection; other report types have none."""
    if report.type != ReportType.SAFETY_INSPECTION:
        return ()
    raw = report.data.get("checklist")
    if not isinstance(raw, list):
        return ()
    return tuple(ChecklistItem.from_dict(item) for item in raw if isinstance(item, dict))


def summarize_checklist(items: tuple[ChecklistItem, ...]) -> ChecklistSummary:
    statuses = [item.status for item in items]
    return ChecklistSummary(
        passed=statuses.count(ChecklistStatus.PASS),
        failed=statuses.count(ChecklistStatus.FAIL),
        not_applicable=statuses.count(ChecklistStatus.NOT_APPLICABLE),
        unrated=statuses.count(None),
    )


@dataclass(slots=True)
class Notification:
    id: str
    user_id: str
    report_id: str
    message: str
    timestamp: str
    is_read: bool = False

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "reportId": self.report_id,
            "message": self.message,
            "isRead": self.is_read,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> Notification:
        is_read = payload.get("isRead", False)
        if not isinstance(is_read, bool):
            _fail("Notification.isRead", "expected boolean")
        return cls(
            id=_as_str(payload.get("id"), "Notification.id"),
            user_id=_as_str(payload.get("userId"), "Notification.userId"),
            report_id=_as_str(payload.get("reportId"), "Notification.reportId"),
            message=_as_str(payload.get("message"), "Notification.message"),
            timestamp=_as_str(payload.get("timestamp"), "Notification.timestamp"),
            is_read=is_read,
        )


@dataclass(slots=True)
class ReportDraft:
    """Caller-built payload for a new report, before id/date/status are assigned."""

    type: str
    data: dict[str, JSONValue] = field(default_factory=dict)
    extras: dict[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.type = _as_str(self.type, "ReportDraft.type")
        if not self.type.strip():
            _fail("ReportDraft.type", "must not be empty")
        if self.data is None:
            _fail("ReportDraft.data", "must be a non-null object")
        self.data = as_json_object(self.data, "ReportDraft.data")
        self.extras = as_json_object(self.extras, "ReportDraft.extras")


@dataclass(slots=True)
class OfflineReportEntry:
    """A report created while offline: everything but ``id``, ``date`` and ``status``."""

    type: str
    submitted_by: str
    data: dict[str, JSONValue] = field(default_factory=dict)
    extras: dict[str, JSONValue] = field(default_factory=dict)

    _KNOWN_KEYS = frozenset({"type", "submittedBy", "data"})

    def __post_init__(self) -> None:
        self.type = _as_str(self.type, "OfflineReportEntry.type")
        self.submitted_by = _as_str(self.submitted_by, "OfflineReportEntry.submitted_by")
        self.data = as_json_object(self.data, "OfflineReportEntry.data")
        self.extras = as_json_object(self.extras, "OfflineReportEntry.extras")

    def to_draft(self) -> ReportDraft:
        return ReportDraft(type=self.type, data=self.data, extras=self.extras)

    def to_dict(self) -> dict[str, JSONValue]:
        payload: dict[str, JSONValue] = copy.deepcopy(self.extras)
        payload.update(
            {"type": self.type, "data": copy.deepcopy(self.data), "submittedBy": self.submitted_by}
        )
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> OfflineReportEntry:
        data = payload.get("data")
        return cls(
            type=_as_str(payload.get("type"), "OfflineReportEntry.type"),
            submitted_by=_as_str(payload.get("submittedBy"), "OfflineReportEntry.submittedBy"),
            data=as_json_object({} if data is None else data, "OfflineReportEntry.data"),
            extras=_split_extras(payload, cls._KNOWN_KEYS, "OfflineReportEntry"),
        )


@dataclass(slots=True)
class OfflineEditEntry:
    report_id: str
    updated_data: dict[str, JSONValue]
    timestamp: str | None = None

    def __post_init__(self) -> None:
        self.report_id = _as_str(self.report_id, "OfflineEditEntry.report_id")
        self.updated_data = as_json_object(self.updated_data, "OfflineEditEntry.updated_data")
        self.timestamp = _as_optional_str(self.timestamp, "OfflineEditEntry.timestamp")

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "reportId": self.report_id,
            "updatedData": copy.deepcopy(self.updated_data),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> OfflineEditEntry:
        return cls(
            report_id=_as_str(payload.get("reportId"), "OfflineEditEntry.reportId"),
            updated_data=as_json_object(payload.get("updatedData"), "OfflineEditEntry.updatedData"),
            timestamp=_as_optional_str(payload.get("timestamp"), "OfflineEditEntry.timestamp"),
        )


@dataclass(frozen=True, slots=True)
class GeoLocation:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        latitude = _as_float(self.latitude, "GeoLocation.latitude")
        longitude = _as_float(self.longitude, "GeoLocation.longitude")
        if not -90.0 <= latitude <= 90.0:
            _fail("GeoLocation.latitude", "must be within [-90, 90]")
        if not -180.0 <= longitude <= 180.0:
            _fail("GeoLocation.longitude", "must be within [-180, 180]")
        object.__setattr__(self, "latitude", latitude)
        object.__setattr__(self, "longitude", longitude)

    def to_dict(self) -> dict[str, JSONValue]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(slots=True)
class UserIdentity:
    """Read-only identity of the acting user, supplied by the caller."""

    id: str
    full_name: str | None = None
    role: str = ""
    email: str = ""
    department_id: str | None = None
    status: str | None = None
    extras: dict[str, JSONValue] = field(default_factory=dict)

    _KNOWN_KEYS = frozenset(
        {
            "id",
            "fullName",
            "display_name",
            "role",
            "email",
            "departmentId",
            "department_id",
            "status",
        }
    )

    @property
    def display_name(self) -> str:
        return self.full_name or self.id

    def to_dict(self) -> dict[str, JSONValue]:
        payload: dict[str, JSONValue] = copy.deepcopy(self.extras)
        payload.update(
            {
                "id": self.id,
                "fullName": self.full_name,
                "role": self.role,
                "email": self.email,
                "departmentId": self.department_id,
                "status": self.status,
            }
        )
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> UserIdentity:
        full_name = payload.get("fullName", payload.get("display_name"))
        department_id = payload.get("departmentId", payload.get("department_id"))
        return cls(
            id=_as_str(payload.get("id"), "UserIdentity.id"),
            full_name=_as_optional_str(full_name, "UserIdentity.fullName"),
            role=_as_str(payload.get("role", ""), "UserIdentity.role"),
            email=_as_str(payload.get("email", ""), "UserIdentity.email"),
            department_id=_as_optional_str(department_id, "UserIdentity.departmentId"),
            status=_as_optional_str(payload.get("status"), "UserIdentity.status"),
            extras=_split_extras(payload, cls._KNOWN_KEYS, "UserIdentity"),
        )


@dataclass(frozen=True, slots=True)
class Department:
    id: str
    name: str
    description: str | None = None

    def to_dict(self) -> dict[str, JSONValue]:
        payload: dict[str, JSONValue] = {"id": self.id, "name": self.name}
        if self.description is not None:
            payload["description"] = self.description
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> Department:
        return cls(
            id=_as_str(payload.get("id"), "Department.id"),
            name=_as_str(payload.get("name"), "Department.name"),
            description=_as_optional_str(payload.get("description"), "Department.description"),
        )


__all__ = [
    "EVENT_DATE_FIELDS",
    "ChecklistItem",
    "ChecklistStatus",
    "ChecklistSummary",
    "Department",
    "GeoLocation",
    "JSONScalar",
    "JSONValue",
    "Notification",
    "OfflineEditEntry",
    "OfflineReportEntry",
    "Report",
    "ReportDraft",
    "ReportStatus",
    "ReportType",
    "UserIdentity",
    "as_json_object",
    "canonical_json",
    "checklist_items",
    "event_date_from_payload",
    "iso8601z",
    "parse_iso8601",
    "summarize_checklist",
]
