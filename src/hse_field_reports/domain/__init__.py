"""Domain records, identifiers and side-effect descriptions."""

from hse_field_reports.domain.events import (
    EffectKind,
    NotifyUser,
    PurgeReportNotifications,
    ReportChange,
    ReportEffect,
)
from hse_field_reports.domain.ids import (
    generate_notification_id,
    generate_report_id,
    generate_ulid,
    migrated_report_id,
)
from hse_field_reports.domain.models import (
    ChecklistItem,
    ChecklistStatus,
    ChecklistSummary,
    Department,
    GeoLocation,
    JSONValue,
    Notification,
    OfflineEditEntry,
    OfflineReportEntry,
    Report,
    ReportDraft,
    ReportStatus,
    ReportType,
    UserIdentity,
)

__all__ = [
    "ChecklistItem",
    "ChecklistStatus",
    "ChecklistSummary",
    "Department",
    "EffectKind",
    "GeoLocation",
    "JSONValue",
    "Notification",
    "NotifyUser",
    "OfflineEditEntry",
    "OfflineReportEntry",
    "PurgeReportNotifications",
    "Report",
    "ReportChange",
    "ReportDraft",
    "ReportEffect",
    "ReportStatus",
    "ReportType",
    "UserIdentity",
    "generate_notification_id",
    "generate_report_id",
    "generate_ulid",
    "migrated_report_id",
]
