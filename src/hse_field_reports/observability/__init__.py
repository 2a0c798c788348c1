"""Structured logging setup."""

from hse_field_reports.observability.logging import (
    configure_logging,
    correlation_scope,
    redact_event_dict,
)

__all__ = ["configure_logging", "correlation_scope", "redact_event_dict"]
