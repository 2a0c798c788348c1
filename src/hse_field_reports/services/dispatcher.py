"""Applies report effects to the notification store, in order."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from hse_field_reports.domain.events import (
    NotifyUser,
    PurgeReportNotifications,
    ReportEffect,
)
from hse_field_reports.persistence.repositories import NotificationStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class DispatchSummary:
    notifications_created: int = 0
    notifications_skipped: int = 0
    notifications_purged: int = 0


class EffectDispatcher:
    """Executes :class:`ReportEffect` values after the report collection was saved.

    Store errors propagate; effects before the failing one stay applied.
    """

    def __init__(self, notifications: NotificationStore) -> None:
        self._notifications = notifications

    def apply(self, effects: Iterable[ReportEffect]) -> DispatchSummary:
        created = skipped = purged = 0
        for effect in effects:
            if isinstance(effect, NotifyUser):
                notification = self._notifications.create(
                    effect.user_id, effect.report_id, effect.message
                )
                if notification is None:
                    skipped += 1
                else:
                    created += 1
            elif isinstance(effect, PurgeReportNotifications):
                purged += self._notifications.delete_for_report(effect.report_id)
            else:
                raise TypeError(f"unsupported report effect: {type(effect).__name__}")
        summary = DispatchSummary(
            notifications_created=created,
            notifications_skipped=skipped,
            notifications_purged=purged,
        )
        if created or skipped or purged:
            logger.debug(
                "report_effects_applied",
                created=created,
                skipped=skipped,
                purged=purged,
            )
        return summary


__all__ = ["DispatchSummary", "EffectDispatcher"]
