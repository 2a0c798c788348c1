"""UI-facing report operations: repository change followed by effect dispatch."""

from __future__ import annotations

from collections.abc import Mapping

from hse_field_reports.domain.events import ReportChange
from hse_field_reports.domain.models import JSONValue, Report, ReportDraft, UserIdentity
from hse_field_reports.persistence.repositories import ReportRepository
from hse_field_reports.services.dispatcher import EffectDispatcher


class ReportService:
    """Returns ``Report | None`` like the storage layer it replaces.

    ``None`` means the report was not found; redundant transitions return the
    unchanged report.
    """

    def __init__(self, repository: ReportRepository, dispatcher: EffectDispatcher) -> None:
        self._repository = repository
        self._dispatcher = dispatcher

    @property
    def repository(self) -> ReportRepository:
        return self._repository

    def _apply(self, change: ReportChange) -> Report | None:
        self._dispatcher.apply(change.effects)
        return change.report

    def get_all(self) -> list[Report]:
        return self._repository.get_all()

    def get(self, report_id: str) -> Report | None:
        return self._repository.get(report_id)

    def create(self, draft: ReportDraft, submitted_by: str) -> Report:
        report = self._apply(self._repository.create(draft, submitted_by))
        if report is None:
            raise RuntimeError("report creation returned no report")
        return report

    def update(self, report_id: str, new_data: Mapping[str, JSONValue]) -> Report | None:
        return self._apply(self._repository.update(report_id, new_data))

    def close(self, report_id: str, acting_user: UserIdentity) -> Report | None:
        return self._apply(self._repository.close(report_id, acting_user))

    def reopen(self, report_id: str, acting_user: UserIdentity) -> Report | None:
        return self._apply(self._repository.reopen(report_id, acting_user))

    def assign(
        self, report_id: str, new_assignee_id: str | None, acting_user: UserIdentity
    ) -> Report | None:
        return self._apply(self._repository.assign(report_id, new_assignee_id, acting_user))

    def delete(self, report_id: str) -> None:
        self._apply(self._repository.delete(report_id))


__all__ = ["ReportService"]
