"""Shared deterministic fixtures and builders for persistence tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from typing import Final

from hse_field_reports.domain.models import JSONValue, ReportDraft, ReportType, UserIdentity
from hse_field_reports.persistence.kv_store import InMemoryKeyValueStore, JsonDocumentStore
from hse_field_reports.persistence.migrations import ReportMigrator

BASE_TS: Final[datetime] = datetime(2026, 2, 1, 12, 0, 0, tzinfo=UTC)
BASE_TODAY: Final[date] = BASE_TS.date()
BASE_MS: Final[int] = int(BASE_TS.timestamp() * 1000)


def fixed_now(seed: int) -> datetime:
    return BASE_TS + timedelta(seconds=seed)


def stepping_clock(start: int = 0) -> Callable[[], datetime]:
    """Clock advancing one second per call, so generated ids and timestamps differ."""
    counter = iter(range(start, start + 1_000_000))

    def _clock() -> datetime:
        return fixed_now(next(counter))

    return _clock


def fixed_migrator() -> ReportMigrator:
    return ReportMigrator(today=lambda: BASE_TODAY, now_ms=lambda: BASE_MS)


def make_documents(
    initial: dict[str, object] | None = None,
    *,
    capacity_bytes: int | None = None,
) -> tuple[InMemoryKeyValueStore, JsonDocumentStore]:
    """In-memory backend pre-loaded with JSON-encoded ``initial`` documents."""
    encoded = {key: json.dumps(value) for key, value in (initial or {}).items()}
    backend = InMemoryKeyValueStore(encoded, capacity_bytes=capacity_bytes)
    return backend, JsonDocumentStore(backend)


def make_user(
    user_id: str,
    *,
    full_name: str | None = None,
    role: str = "Standard User",
) -> UserIdentity:
    return UserIdentity(
        id=user_id,
        full_name=full_name,
        role=role,
        email=f"{user_id}@example.com",
        status="Active",
    )


def make_draft(report_type: str = ReportType.INCIDENT, **data: JSONValue) -> ReportDraft:
    return ReportDraft(type=str(report_type), data=dict(data))


def make_checklist(*statuses: str | None) -> list[JSONValue]:
    return [
        {"id": f"item-{index}", "text": f"Check {index}", "status": status}
        for index, status in enumerate(statuses, start=1)
    ]


def stored_document(backend: InMemoryKeyValueStore, key: str) -> object:
    raw = backend.get(key)
    return None if raw is None else json.loads(raw)
