"""Report lifecycle services layered over the persistence stores."""

from hse_field_reports.services.dispatcher import DispatchSummary, EffectDispatcher
from hse_field_reports.services.replay import ReplayResult, replay_offline_queues
from hse_field_reports.services.reports import ReportService
from hse_field_reports.services.submission import (
    SubmissionOutcome,
    SubmissionRoute,
    SubmissionService,
)

__all__ = [
    "DispatchSummary",
    "EffectDispatcher",
    "ReplayResult",
    "ReportService",
    "SubmissionOutcome",
    "SubmissionRoute",
    "SubmissionService",
    "replay_offline_queues",
]
