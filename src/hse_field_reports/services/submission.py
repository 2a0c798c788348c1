"""Report submission: best-effort GPS, photo normalization, online/offline routing."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Final

import structlog

from hse_field_reports.domain.models import (
    GeoLocation,
    JSONValue,
    OfflineEditEntry,
    OfflineReportEntry,
    Report,
    ReportDraft,
)
from hse_field_reports.media.images import normalize_image
from hse_field_reports.persistence.kv_store import StoreFatalError
from hse_field_reports.persistence.repositories import OfflineQueue, SettingsStore
from hse_field_reports.services.reports import ReportService

logger = structlog.get_logger(__name__)

GeoLocator = Callable[[], Awaitable[GeoLocation]]
ImageNormalizer = Callable[[bytes], Awaitable[str]]

PHOTOS_FIELD: Final[str] = "photos"
PHOTO_COUNT_FIELD: Final[str] = "photoCount"
GPS_FIELD: Final[str] = "gps"


class SubmissionRoute(StrEnum):
    SAVED = "saved"
    QUEUED = "queued"
    QUEUED_AFTER_FAILURE = "queued_after_failure"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class SubmissionOutcome:
    route: SubmissionRoute
    report: Report | None = None
    location: GeoLocation | None = None
    photos_normalized: int = 0

    @property
    def queued(self) -> bool:
        return self.route in (SubmissionRoute.QUEUED, SubmissionRoute.QUEUED_AFTER_FAILURE)


class SubmissionService:
    """Prepares a report payload and stores it now or queues it for later.

    The payload is not rolled back on partial failure: photos normalized before
    a failing save are simply discarded with the payload.
    """

    def __init__(
        self,
        reports: ReportService,
        queue: OfflineQueue,
        settings: SettingsStore,
        *,
        geolocate: GeoLocator | None = None,
        normalizer: ImageNormalizer = normalize_image,
    ) -> None:
        self._reports = reports
        self._queue = queue
        self._settings = settings
        self._geolocate = geolocate
        self._normalizer = normalizer

    async def _locate(self) -> GeoLocation | None:
        if self._geolocate is None or not self._settings.gps_enabled():
            return None
        try:
            return await self._geolocate()
        except Exception as exc:  # noqa: BLE001 - geolocation is best effort.
            logger.warning("geolocation_unavailable", error_type=type(exc).__name__, error=str(exc))
            return None

    async def _prepare(
        self,
        data: Mapping[str, JSONValue],
        new_photos: Sequence[bytes],
    ) -> tuple[dict[str, JSONValue], GeoLocation | None]:
        location = await self._locate()
        # Normalization errors propagate and abort the whole submission.
        encoded = await asyncio.gather(*(self._normalizer(photo) for photo in new_photos))

        payload = dict(data)
        if new_photos or PHOTOS_FIELD in payload:
            existing = payload.get(PHOTOS_FIELD)
            photos: list[JSONValue] = list(existing) if isinstance(existing, list) else []
            photos.extend(encoded)
            payload[PHOTOS_FIELD] = photos
            if PHOTO_COUNT_FIELD in payload:
                payload[PHOTO_COUNT_FIELD] = len(photos)
        if location is None:
            payload.pop(GPS_FIELD, None)
        else:
            payload[GPS_FIELD] = location.to_dict()
        return payload, location

    async def submit(
        self,
        draft: ReportDraft,
        submitted_by: str,
        *,
        online: bool,
        new_photos: Sequence[bytes] = (),
    ) -> SubmissionOutcome:
        data, location = await self._prepare(draft.data, new_photos)
        prepared = ReportDraft(type=draft.type, data=data, extras=draft.extras)
        entry = OfflineReportEntry(
            type=prepared.type,
            submitted_by=submitted_by,
            data=prepared.data,
            extras=prepared.extras,
        )

        if not online:
            self._queue.enqueue_report(entry)
            return SubmissionOutcome(
                route=SubmissionRoute.QUEUED, location=location, photos_normalized=len(new_photos)
            )

        try:
            report = self._reports.create(prepared, submitted_by)
        except StoreFatalError as exc:
            logger.error(
                "online_submission_failed",
                report_type=prepared.type,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            self._queue.enqueue_report(entry)
            return SubmissionOutcome(
                route=SubmissionRoute.QUEUED_AFTER_FAILURE,
                location=location,
                photos_normalized=len(new_photos),
            )
        return SubmissionOutcome(
            route=SubmissionRoute.SAVED,
            report=report,
            location=location,
            photos_normalized=len(new_photos),
        )

    async def submit_edit(
        self,
        report_id: str,
        updated_data: Mapping[str, JSONValue],
        *,
        online: bool,
        new_photos: Sequence[bytes] = (),
    ) -> SubmissionOutcome:
        data, location = await self._prepare(updated_data, new_photos)
        if not online:
            self._queue.enqueue_edit(OfflineEditEntry(report_id=report_id, updated_data=data))
            return SubmissionOutcome(
                route=SubmissionRoute.QUEUED, location=location, photos_normalized=len(new_photos)
            )

        report = self._reports.update(report_id, data)
        return SubmissionOutcome(
            route=SubmissionRoute.SAVED if report is not None else SubmissionRoute.NOT_FOUND,
            report=report,
            location=location,
            photos_normalized=len(new_photos),
        )


__all__ = [
    "GPS_FIELD",
    "PHOTOS_FIELD",
    "PHOTO_COUNT_FIELD",
    "GeoLocator",
    "ImageNormalizer",
    "SubmissionOutcome",
    "SubmissionRoute",
    "SubmissionService",
]
