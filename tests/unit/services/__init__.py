"""Builders wiring the service layer over an in-memory store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Final

from hse_field_reports.domain.models import UserIdentity
from hse_field_reports.persistence.kv_store import InMemoryKeyValueStore, JsonDocumentStore
from hse_field_reports.persistence.migrations import ReportMigrator
from hse_field_reports.persistence.repositories import (
    NotificationStore,
    OfflineQueue,
    ReportRepository,
    SettingsStore,
)
from hse_field_reports.services.dispatcher import EffectDispatcher
from hse_field_reports.services.reports import ReportService

BASE_TS: Final[datetime] = datetime(2026, 3, 1, 9, 0, 0, tzinfo=UTC)

ADMIN: Final[UserIdentity] = UserIdentity(
    id="user-admin", full_name="Dana Admin", role="Admin User", status="Active"
)


def _clock():
    counter = iter(range(1_000_000))
    return lambda: BASE_TS + timedelta(seconds=next(counter))


@dataclass(slots=True)
class Wiring:
    backend: InMemoryKeyValueStore
    documents: JsonDocumentStore
    settings: SettingsStore
    notifications: NotificationStore
    repository: ReportRepository
    service: ReportService
    queue: OfflineQueue


def make_wiring(*, capacity_bytes: int | None = None) -> Wiring:
    backend = InMemoryKeyValueStore(capacity_bytes=capacity_bytes)
    documents = JsonDocumentStore(backend)
    settings = SettingsStore(documents)
    notifications = NotificationStore(documents, clock=_clock())
    repository = ReportRepository(
        documents,
        directory=settings,
        clock=_clock(),
        migrator=ReportMigrator(today=lambda: date(2026, 3, 1), now_ms=lambda: 0),
    )
    return Wiring(
        backend=backend,
        documents=documents,
        settings=settings,
        notifications=notifications,
        repository=repository,
        service=ReportService(repository, EffectDispatcher(notifications)),
        queue=OfflineQueue(documents, clock=_clock()),
    )
