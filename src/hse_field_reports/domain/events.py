"""Report effects returned by repository operations instead of being executed inline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hse_field_reports.domain.models import JSONValue, Report


class EffectKind(StrEnum):
    NOTIFY_USER = "NotifyUser"
    PURGE_REPORT_NOTIFICATIONS = "PurgeReportNotifications"


@dataclass(frozen=True, slots=True)
class NotifyUser:
    """Create a notification for ``user_id`` about ``report_id``."""

    user_id: str
    report_id: str
    message: str

    kind = EffectKind.NOTIFY_USER

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "kind": self.kind.value,
            "user_id": self.user_id,
            "report_id": self.report_id,
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class PurgeReportNotifications:
    """Delete every notification attached to ``report_id`` (delete cascade)."""

    report_id: str

    kind = EffectKind.PURGE_REPORT_NOTIFICATIONS

    def to_dict(self) -> dict[str, JSONValue]:
        return {"kind": self.kind.value, "report_id": self.report_id}


ReportEffect = NotifyUser | PurgeReportNotifications


@dataclass(frozen=True, slots=True)
class ReportChange:
    """Outcome of a repository operation.

    ``report`` is ``None`` when the target report does not exist. The effects
    must be applied after the report collection has been persisted; the
    repository guarantees that ordering by saving before returning.
    """

    report: Report | None
    effects: tuple[ReportEffect, ...] = field(default_factory=tuple)

    @property
    def found(self) -> bool:
        return self.report is not None


__all__ = [
    "EffectKind",
    "NotifyUser",
    "PurgeReportNotifications",
    "ReportChange",
    "ReportEffect",
]
