"""Repositories over the JSON document store.

Each repository owns one or more storage keys and performs whole-document
read-modify-write cycles. That is safe under a single writer only; two
processes sharing a SQLite file can still interleave a read and a write.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Final, Generic, Protocol, TypeVar

import structlog

from hse_field_reports.constants import (
    DEPARTMENTS_KEY,
    FEATURE_PERMISSIONS_KEY,
    GPS_ENABLED_KEY,
    MANAGERIAL_ROLES,
    NOTIFICATIONS_KEY,
    OFFLINE_EDITS_KEY,
    OFFLINE_REPORTS_KEY,
    REMINDERS_KEY,
    REPORTS_KEY,
    ROLE_PERMISSIONS_KEY,
    USERS_KEY,
)
from hse_field_reports.domain import ids
from hse_field_reports.domain.events import (
    NotifyUser,
    PurgeReportNotifications,
    ReportChange,
    ReportEffect,
)
from hse_field_reports.domain.models import (
    Department,
    JSONValue,
    Notification,
    OfflineEditEntry,
    OfflineReportEntry,
    Report,
    ReportDraft,
    ReportStatus,
    ReportType,
    UserIdentity,
    as_json_object,
    canonical_json,
    event_date_from_payload,
    iso8601z,
    parse_iso8601,
)
from hse_field_reports.persistence.kv_store import (
    JsonDocumentStore,
    StoreFatalError,
)
from hse_field_reports.persistence.migrations import ReportMigrator, wrap_envelope

logger = structlog.get_logger(__name__)

T = TypeVar("T")
Clock = Callable[[], datetime]

# Rendered in local time, e.g. ``17/10/2026, 14:05:09``.
AUDIT_TIMESTAMP_FORMAT: Final[str] = "%d/%m/%Y, %H:%M:%S"
UNKNOWN_ASSIGNEE_NAME: Final[str] = "another user"


def local_clock() -> datetime:
    return datetime.now().astimezone()


class ReportStoreHaltedError(StoreFatalError):
    """A previous fatal store error latched the repository; writes are refused."""


class UserDirectory(Protocol):
    def display_name(self, user_id: str) -> str | None: ...


# --- messages ---------------------------------------------------------------


def status_change_message(report_id: str, old_status: str, new_status: str) -> str:
    return f'Report {report_id} status changed from "{old_status}" to "{new_status}".'


def assigned_message(report_id: str, assigner: str) -> str:
    return f"Report {report_id} has been assigned to you by {assigner}."


def reassigned_message(report_id: str, new_assignee: str, assigner: str) -> str:
    return f"Report {report_id} was reassigned to {new_assignee} by {assigner}."


def unassigned_message(report_id: str, assigner: str) -> str:
    return f"Report {report_id} was unassigned from you by {assigner}."


def audit_note(actor: str, action: str, at: datetime) -> str:
    return f"\n\n--- [{actor}] Report {action} on {at.strftime(AUDIT_TIMESTAMP_FORMAT)} ---"


def _existing_notes(data: Mapping[str, JSONValue]) -> str:
    notes = data.get("notes")
    if isinstance(notes, str):
        return notes
    if not notes:
        return ""
    return canonical_json(notes)


# --- reports ----------------------------------------------------------------


class ReportRepository:
    """Lifecycle operations on the ``hse_reports`` collection.

    Operations persist the collection and return a :class:`ReportChange`
    carrying the notification effects; they never write notifications
    themselves. A :class:`StoreFatalError` latches the repository until
    :meth:`reset_halt` so a corrupted or unwritable collection is never
    overwritten by a later call.
    """

    def __init__(
        self,
        store: JsonDocumentStore,
        *,
        directory: UserDirectory | None = None,
        clock: Clock = local_clock,
        migrator: ReportMigrator | None = None,
    ) -> None:
        self._store = store
        self._directory = directory
        self._clock = clock
        self._migrator = migrator or ReportMigrator()
        self._halted: StoreFatalError | None = None

    @property
    def halted(self) -> bool:
        return self._halted is not None

    def reset_halt(self) -> None:
        if self._halted is not None:
            logger.info("report_store_halt_reset", error=str(self._halted))
        self._halted = None

    @contextmanager
    def _latching(self, operation: str) -> Iterator[None]:
        if self._halted is not None:
            raise ReportStoreHaltedError(
                f"{operation} refused: report store halted after fatal error: {self._halted}"
            ) from self._halted
        try:
            yield
        except StoreFatalError as exc:
            self._halted = exc
            logger.error(
                "report_store_halted",
                operation=operation,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise

    def _load(self) -> list[Report]:
        return list(self._migrator.load(self._store).reports)

    def _save(self, reports: Sequence[Report]) -> None:
        self._store.save(REPORTS_KEY, wrap_envelope(tuple(reports)))

    @staticmethod
    def _index_of(reports: Sequence[Report], report_id: str) -> int | None:
        for index, report in enumerate(reports):
            if report.id == report_id:
                return index
        return None

    def get_all(self) -> list[Report]:
        """Return every report, newest first, migrating the stored collection if needed."""
        with self._latching("get_all"):
            return self._load()

    def get(self, report_id: str) -> Report | None:
        with self._latching("get"):
            reports = self._load()
            index = self._index_of(reports, report_id)
            return None if index is None else reports[index]

    def create(self, draft: ReportDraft, submitted_by: str) -> ReportChange:
        with self._latching("create"):
            reports = self._load()
            now = self._clock()
            report = Report(
                id=ids.generate_report_id(
                    draft.type,
                    timestamp_ms=int(now.timestamp() * 1000),
                    existing={existing.id for existing in reports},
                ),
                type=draft.type,
                date=event_date_from_payload(draft.data, today=now.date()),
                status=ReportStatus.SUBMITTED.value,
                submitted_by=submitted_by,
                data=copy.deepcopy(draft.data),
                extras=copy.deepcopy(draft.extras),
            )
            reports.insert(0, report)
            self._save(reports)
            logger.info(
                "report_created",
                report_id=report.id,
                report_type=report.type,
                submitted_by=submitted_by,
            )
            return ReportChange(report=report)

    def update(self, report_id: str, new_data: Mapping[str, JSONValue]) -> ReportChange:
        """Replace ``data`` and move the report to ``In Review``, whatever its status."""
        data = as_json_object(new_data, "update.new_data")
        with self._latching("update"):
            reports = self._load()
            index = self._index_of(reports, report_id)
            if index is None:
                logger.warning("report_not_found", operation="update", report_id=report_id)
                return ReportChange(report=None)

            original = reports[index]
            new_status = ReportStatus.IN_REVIEW.value
            updated = replace(
                original,
                data=data,
                status=new_status,
                last_edited=iso8601z(self._clock()),
            )
            reports[index] = updated
            self._save(reports)
            logger.info(
                "report_updated",
                report_id=report_id,
                old_status=original.status,
                new_status=new_status,
            )
            return ReportChange(
                report=updated,
                effects=(
                    NotifyUser(
                        user_id=original.submitted_by,
                        report_id=report_id,
                        message=status_change_message(report_id, original.status, new_status),
                    ),
                ),
            )

    def close(self, report_id: str, acting_user: UserIdentity) -> ReportChange:
        return self._transition(
            report_id,
            acting_user,
            operation="close",
            applies=lambda report: not report.is_closed,
            new_status=ReportStatus.CLOSED,
            audit_action="closed",
        )

    def reopen(self, report_id: str, acting_user: UserIdentity) -> ReportChange:
        return self._transition(
            report_id,
            acting_user,
            operation="reopen",
            applies=lambda report: report.is_closed,
            new_status=ReportStatus.IN_REVIEW,
            audit_action="re-opened",
        )

    def _transition(
        self,
        report_id: str,
        acting_user: UserIdentity,
        *,
        operation: str,
        applies: Callable[[Report], bool],
        new_status: ReportStatus,
        audit_action: str,
    ) -> ReportChange:
        with self._latching(operation):
            reports = self._load()
            index = self._index_of(reports, report_id)
            if index is None:
                logger.warning("report_not_found", operation=operation, report_id=report_id)
                return ReportChange(report=None)

            original = reports[index]
            if not applies(original):
                return ReportChange(report=original)

            now = self._clock()
            data = copy.deepcopy(original.data)
            if original.type == ReportType.SAFETY_INSPECTION:
                data["notes"] = _existing_notes(data) + audit_note(
                    acting_user.display_name, audit_action, now
                )
            updated = replace(
                original,
                data=data,
                status=new_status.value,
                last_edited=iso8601z(now),
            )
            reports[index] = updated
            self._save(reports)
            logger.info(
                "report_status_changed",
                report_id=report_id,
                operation=operation,
                old_status=original.status,
                new_status=new_status.value,
                actor=acting_user.id,
            )
            return ReportChange(
                report=updated,
                effects=(
                    NotifyUser(
                        user_id=original.submitted_by,
                        report_id=report_id,
                        message=status_change_message(
                            report_id, original.status, new_status.value
                        ),
                    ),
                ),
            )

    def assign(
        self,
        report_id: str,
        new_assignee_id: str | None,
        acting_user: UserIdentity,
    ) -> ReportChange:
        """Set ``assignedTo``. An empty string and ``None`` both mean unassigned."""
        with self._latching("assign"):
            reports = self._load()
            index = self._index_of(reports, report_id)
            if index is None:
                logger.warning("report_not_found", operation="assign", report_id=report_id)
                return ReportChange(report=None)

            original = reports[index]
            previous = original.assigned_to
            target = new_assignee_id or None
            if previous == target:
                return ReportChange(report=original)

            extras = {key: value for key, value in original.extras.items() if key != "assignedTo"}
            updated = replace(original, assigned_to=target, extras=extras)
            reports[index] = updated
            self._save(reports)

            assigner = acting_user.display_name
            effects: list[ReportEffect] = []
            if target is not None:
                effects.append(
                    NotifyUser(
                        user_id=target,
                        report_id=report_id,
                        message=assigned_message(report_id, assigner),
                    )
                )
            if previous is not None:
                if target is not None:
                    message = reassigned_message(
                        report_id, self._assignee_name(target), assigner
                    )
                else:
                    message = unassigned_message(report_id, assigner)
                effects.append(NotifyUser(user_id=previous, report_id=report_id, message=message))

            logger.info(
                "report_assigned",
                report_id=report_id,
                previous_assignee=previous,
                new_assignee=target,
                actor=acting_user.id,
            )
            return ReportChange(report=updated, effects=tuple(effects))

    def _assignee_name(self, user_id: str) -> str:
        if self._directory is None:
            return UNKNOWN_ASSIGNEE_NAME
        return self._directory.display_name(user_id) or UNKNOWN_ASSIGNEE_NAME

    def delete(self, report_id: str) -> ReportChange:
        """Remove a report. The purge effect is emitted even when the id is unknown."""
        with self._latching("delete"):
            reports = self._load()
            index = self._index_of(reports, report_id)
            removed: Report | None = None
            if index is not None:
                removed = reports.pop(index)
                self._save(reports)
                logger.info("report_deleted", report_id=report_id)
            else:
                logger.warning("report_not_found", operation="delete", report_id=report_id)
            return ReportChange(
                report=removed,
                effects=(PurgeReportNotifications(report_id=report_id),),
            )


# --- notifications ----------------------------------------------------------


def _utc_clock() -> datetime:
    return datetime.now(UTC)


_EPOCH: Final[datetime] = datetime.fromtimestamp(0, UTC)


class NotificationStore:
    """Per-user notification log on ``hse_notifications``.

    Mutations match on both the notification id and the caller's user id, so
    a colliding id owned by another user is never touched.
    """

    def __init__(
        self,
        store: JsonDocumentStore,
        *,
        clock: Clock = _utc_clock,
        id_factory: Callable[[], str] = ids.generate_notification_id,
    ) -> None:
        self._store = store
        self._clock = clock
        self._id_factory = id_factory

    def _load(self) -> list[Notification]:
        raw = self._store.load_or_default(NOTIFICATIONS_KEY, [])
        if not isinstance(raw, list):
            logger.warning(
                "store_document_unreadable",
                key=NOTIFICATIONS_KEY,
                error=f"expected array, got {type(raw).__name__}",
            )
            return []
        out: list[Notification] = []
        for index, item in enumerate(raw):
            try:
                out.append(Notification.from_dict(item if isinstance(item, dict) else {}))
            except ValueError as exc:
                logger.warning("notification_record_skipped", index=index, error=str(exc))
        return out

    def _save(self, notifications: Sequence[Notification]) -> None:
        self._store.save(NOTIFICATIONS_KEY, [item.to_dict() for item in notifications])

    def list_for_user(self, user_id: str) -> list[Notification]:
        """Notifications owned by ``user_id``, newest first."""
        owned = [item for item in self._load() if item.user_id == user_id]
        owned.sort(key=lambda item: parse_iso8601(item.timestamp) or _EPOCH, reverse=True)
        return owned

    def unread_count(self, user_id: str) -> int:
        return sum(1 for item in self._load() if item.user_id == user_id and not item.is_read)

    def create(self, user_id: str, report_id: str, message: str) -> Notification | None:
        """Prepend a new unread notification; skipped when ``user_id`` is empty."""
        if not user_id:
            logger.debug("notification_skipped", report_id=report_id, reason="empty user id")
            return None
        notification = Notification(
            id=self._id_factory(),
            user_id=user_id,
            report_id=report_id,
            message=message,
            timestamp=iso8601z(self._clock()),
        )
        self._save([notification, *self._load()])
        logger.info(
            "notification_created",
            notification_id=notification.id,
            user_id=user_id,
            report_id=report_id,
        )
        return notification

    def mark_read(self, notification_id: str, user_id: str) -> bool:
        notifications = self._load()
        for item in notifications:
            if item.id == notification_id and item.user_id == user_id:
                if not item.is_read:
                    item.is_read = True
                    self._save(notifications)
                return True
        return False

    def mark_all_read(self, user_id: str) -> int:
        notifications = self._load()
        changed = 0
        for item in notifications:
            if item.user_id == user_id and not item.is_read:
                item.is_read = True
                changed += 1
        if changed:
            self._save(notifications)
        return changed

    def delete(self, notification_id: str, user_id: str) -> bool:
        notifications = self._load()
        kept = [
            item
            for item in notifications
            if not (item.id == notification_id and item.user_id == user_id)
        ]
        if len(kept) == len(notifications):
            return False
        self._save(kept)
        return True

    def delete_for_report(self, report_id: str) -> int:
        notifications = self._load()
        kept = [item for item in notifications if item.report_id != report_id]
        removed = len(notifications) - len(kept)
        if removed:
            self._save(kept)
            logger.info("notifications_purged", report_id=report_id, removed=removed)
        return removed


# --- offline queues ---------------------------------------------------------


class DurableQueue(Generic[T]):
    """FIFO list persisted under one key. No dedup, no size cap.

    Entries that cannot be decoded are skipped by :meth:`peek_all` and are
    dropped the next time the head of the queue is discarded.
    """

    def __init__(
        self,
        store: JsonDocumentStore,
        key: str,
        *,
        encode: Callable[[T], dict[str, JSONValue]],
        decode: Callable[[Mapping[str, object]], T],
    ) -> None:
        self._store = store
        self._key = key
        self._encode = encode
        self._decode = decode

    @property
    def key(self) -> str:
        return self._key

    def _load_raw(self) -> list[object]:
        raw = self._store.load_or_default(self._key, [])
        if not isinstance(raw, list):
            logger.warning(
                "store_document_unreadable",
                key=self._key,
                error=f"expected array, got {type(raw).__name__}",
            )
            return []
        return raw

    def enqueue(self, entry: T) -> None:
        raw = self._load_raw()
        raw.append(self._encode(entry))
        self._store.save(self._key, raw)

    def peek_all(self) -> list[T]:
        out: list[T] = []
        for index, item in enumerate(self._load_raw()):
            try:
                if not isinstance(item, dict):
                    raise ValueError(f"expected object, got {type(item).__name__}")
                out.append(self._decode(item))
            except ValueError as exc:
                logger.warning(
                    "offline_entry_unreadable", key=self._key, index=index, error=str(exc)
                )
        return out

    def discard_head(self, count: int) -> None:
        """Remove the first ``count`` decodable entries, keeping the rest in order."""
        if count <= 0:
            return
        remaining = self.peek_all()[count:]
        if remaining:
            self._store.save(self._key, [self._encode(entry) for entry in remaining])
        else:
            self.clear()

    def clear(self) -> None:
        self._store.delete(self._key)

    def __len__(self) -> int:
        """Number of decodable entries, the ones replay will process."""
        return len(self.peek_all())


@dataclass(frozen=True, slots=True)
class PendingCounts:
    reports: int
    edits: int

    @property
    def total(self) -> int:
        return self.reports + self.edits


class OfflineQueue:
    """The two offline queues: report creations and report edits."""

    def __init__(self, store: JsonDocumentStore, *, clock: Clock = _utc_clock) -> None:
        self._clock = clock
        self.reports: DurableQueue[OfflineReportEntry] = DurableQueue(
            store,
            OFFLINE_REPORTS_KEY,
            encode=OfflineReportEntry.to_dict,
            decode=OfflineReportEntry.from_dict,
        )
        self.edits: DurableQueue[OfflineEditEntry] = DurableQueue(
            store,
            OFFLINE_EDITS_KEY,
            encode=OfflineEditEntry.to_dict,
            decode=OfflineEditEntry.from_dict,
        )

    def enqueue_report(self, entry: OfflineReportEntry) -> None:
        self.reports.enqueue(entry)
        logger.info("offline_report_queued", report_type=entry.type, pending=len(self.reports))

    def enqueue_edit(self, entry: OfflineEditEntry) -> OfflineEditEntry:
        if entry.timestamp is None:
            entry = replace(entry, timestamp=iso8601z(self._clock()))
        self.edits.enqueue(entry)
        logger.info("offline_edit_queued", report_id=entry.report_id, pending=len(self.edits))
        return entry

    def pending_counts(self) -> PendingCounts:
        return PendingCounts(reports=len(self.reports), edits=len(self.edits))


# --- settings ---------------------------------------------------------------


class ReportScreen(StrEnum):
    INCIDENT_REPORT = "IncidentReport"
    NEAR_MISS_REPORT = "NearMissReport"
    SAFETY_INSPECTION = "SafetyInspection"
    ENVIRONMENTAL_REPORT = "EnvironmentalReport"


RolePermissions = dict[str, dict[str, bool]]


def _screen_flags(
    incident: bool, near_miss: bool, safety_inspection: bool, environmental: bool
) -> dict[str, bool]:
    return {
        ReportScreen.INCIDENT_REPORT.value: incident,
        ReportScreen.NEAR_MISS_REPORT.value: near_miss,
        ReportScreen.SAFETY_INSPECTION.value: safety_inspection,
        ReportScreen.ENVIRONMENTAL_REPORT.value: environmental,
    }


DEFAULT_ROLE_PERMISSIONS: Final[RolePermissions] = {
    "Admin User": _screen_flags(True, True, True, True),
    "Super User": _screen_flags(True, True, True, True),
    "Standard User": _screen_flags(True, True, False, True),
    "Personal User": _screen_flags(False, True, False, False),
}

DEFAULT_FEATURE_PERMISSIONS: Final[RolePermissions] = {
    "Admin User": {"canViewPhotoGallery": True, "canDeleteReport": True},
    "Super User": {"canViewPhotoGallery": False, "canDeleteReport": False},
}

DEFAULT_DEPARTMENT: Final[Department] = Department(id="dept-default-1", name="Field Operations")

DEFAULT_USERS: Final[tuple[UserIdentity, ...]] = (
    UserIdentity(
        id="user-default-1",
        full_name="Alex Johnson",
        role="Standard User",
        email="user@hse.com",
        department_id=DEFAULT_DEPARTMENT.id,
        status="Active",
    ),
    UserIdentity(
        id="user-finn-byberg",
        full_name="Finn Byberg",
        role="Admin User",
        email="finn@byberg.com",
        department_id=DEFAULT_DEPARTMENT.id,
        status="Active",
    ),
)


def has_managerial_role(user: UserIdentity | None) -> bool:
    return user is not None and user.role in MANAGERIAL_ROLES


def _as_flag_map(value: object) -> dict[str, bool]:
    if not isinstance(value, dict):
        return {}
    return {key: flag for key, flag in value.items() if isinstance(flag, bool)}


class SettingsStore:
    """GPS flag, permissions, departments, users and reminders.

    Every read degrades to a default when the stored document is unreadable.
    Implements :class:`UserDirectory`.
    """

    def __init__(self, store: JsonDocumentStore) -> None:
        self._store = store

    def gps_enabled(self) -> bool:
        value = self._store.load_or_default(GPS_ENABLED_KEY, False)
        return value if isinstance(value, bool) else False

    def set_gps_enabled(self, enabled: bool) -> None:
        self._store.save(GPS_ENABLED_KEY, bool(enabled))

    def role_permissions(self) -> RolePermissions:
        """Stored role/screen matrix; absent or unreadable documents are re-seeded."""
        raw = self._store.load_or_default(ROLE_PERMISSIONS_KEY, None)
        if not isinstance(raw, dict):
            return self.seed_role_permissions()
        return {role: _as_flag_map(flags) for role, flags in raw.items() if isinstance(role, str)}

    def save_role_permissions(self, permissions: Mapping[str, Mapping[str, bool]]) -> None:
        self._store.save(
            ROLE_PERMISSIONS_KEY, {role: dict(flags) for role, flags in permissions.items()}
        )

    def seed_role_permissions(self) -> RolePermissions:
        permissions = copy.deepcopy(DEFAULT_ROLE_PERMISSIONS)
        self.save_role_permissions(permissions)
        logger.info("role_permissions_seeded", roles=sorted(permissions))
        return permissions

    def can_open(self, role: str, screen: ReportScreen) -> bool:
        return self.role_permissions().get(role, {}).get(screen.value, False)

    def feature_permissions(self) -> RolePermissions:
        """Defaults overlaid with whatever flags are stored for each known role."""
        merged = copy.deepcopy(DEFAULT_FEATURE_PERMISSIONS)
        stored = self._store.load_or_default(FEATURE_PERMISSIONS_KEY, {})
        if isinstance(stored, dict):
            for role, flags in stored.items():
                if role in merged:
                    merged[role].update(_as_flag_map(flags))
        return merged

    def save_feature_permissions(self, permissions: Mapping[str, Mapping[str, bool]]) -> None:
        self._store.save(
            FEATURE_PERMISSIONS_KEY, {role: dict(flags) for role, flags in permissions.items()}
        )

    def departments(self) -> list[Department]:
        return self._load_records(DEPARTMENTS_KEY, Department.from_dict)

    def save_departments(self, departments: Sequence[Department]) -> None:
        self._store.save(DEPARTMENTS_KEY, [item.to_dict() for item in departments])

    def users(self) -> list[UserIdentity]:
        return self._load_records(USERS_KEY, UserIdentity.from_dict)

    def save_users(self, users: Sequence[UserIdentity]) -> None:
        self._store.save(USERS_KEY, [item.to_dict() for item in users])

    def get_user(self, user_id: str) -> UserIdentity | None:
        for user in self.users():
            if user.id == user_id:
                return user
        return None

    def display_name(self, user_id: str) -> str | None:
        user = self.get_user(user_id)
        return None if user is None else user.display_name

    def reminders(self) -> list[dict[str, JSONValue]]:
        raw = self._store.load_or_default(REMINDERS_KEY, [])
        if not isinstance(raw, list):
            return []
        return [item for item in raw if isinstance(item, dict)]

    def save_reminders(self, reminders: Sequence[Mapping[str, JSONValue]]) -> None:
        self._store.save(REMINDERS_KEY, [dict(item) for item in reminders])

    def seed_defaults(self) -> bool:
        """Seed the default department, users and role permissions when no user exists."""
        if self.users():
            return False
        self.save_departments([DEFAULT_DEPARTMENT])
        self.save_users(DEFAULT_USERS)
        self.seed_role_permissions()
        logger.info("settings_seeded", users=[user.id for user in DEFAULT_USERS])
        return True

    def _load_records(self, key: str, parse: Callable[[Mapping[str, object]], T]) -> list[T]:
        raw = self._store.load_or_default(key, [])
        if not isinstance(raw, list):
            logger.warning(
                "store_document_unreadable",
                key=key,
                error=f"expected array, got {type(raw).__name__}",
            )
            return []
        out: list[T] = []
        for index, item in enumerate(raw):
            if not isinstance(item, dict):
                continue
            try:
                out.append(parse(item))
            except ValueError as exc:
                logger.warning("settings_record_skipped", key=key, index=index, error=str(exc))
        return out


__all__ = [
    "AUDIT_TIMESTAMP_FORMAT",
    "DEFAULT_DEPARTMENT",
    "DEFAULT_FEATURE_PERMISSIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "DEFAULT_USERS",
    "UNKNOWN_ASSIGNEE_NAME",
    "Clock",
    "DurableQueue",
    "NotificationStore",
    "OfflineQueue",
    "PendingCounts",
    "ReportRepository",
    "ReportScreen",
    "ReportStoreHaltedError",
    "RolePermissions",
    "SettingsStore",
    "UserDirectory",
    "assigned_message",
    "audit_note",
    "has_managerial_role",
    "local_clock",
    "reassigned_message",
    "status_change_message",
    "unassigned_message",
]
