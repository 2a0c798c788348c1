"""structlog configuration, redaction and correlation fields."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
import structlog

from hse_field_reports.observability.logging import (
    configure_logging,
    correlation_scope,
    redact_event_dict,
    redact_string,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


def test_data_uris_are_abbreviated() -> None:
    text = "photos=[data:image/jpeg;base64,QUJDRA==]"

    assert redact_string(text) == "photos=[<data:image/jpeg 8 chars>]"


def test_secret_assignments_and_bearer_tokens_are_masked() -> None:
    redacted = redact_string("password=hunter2 sent with Bearer abc.def")

    assert "hunter2" not in redacted
    assert "abc.def" not in redacted


def test_processor_masks_sensitive_keys_recursively() -> None:
    event = {
        "event": "user_seeded",
        "api_token": "t0k3n",
        "payload": {"password": "x", "photos": ["data:image/png;base64,AAAA"]},
    }

    redacted = redact_event_dict(None, "info", event)

    assert redacted["api_token"] == "***REDACTED***"
    assert redacted["payload"] == {
        "password": "***REDACTED***",
        "photos": ["<data:image/png 4 chars>"],
    }


def test_json_log_lines_carry_level_timestamp_and_context(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "hse.log"
    configure_logging("INFO", log_format="json", log_path=log_path)
    logger = structlog.get_logger("tests.logging")

    with correlation_scope(report_id="INC-0001", user_id=None):
        logger.info("report_created", photo="data:image/jpeg;base64,QUJD")
    logger.debug("hidden_event")

    lines = log_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    record = json.loads(lines[0])
    assert record["event"] == "report_created"
    assert record["level"] == "info"
    assert record["report_id"] == "INC-0001"
    assert "user_id" not in record
    assert record["photo"] == "<data:image/jpeg 4 chars>"
    assert record["timestamp"].endswith("Z")


def test_configure_logging_rejects_unknown_format_and_level() -> None:
    with pytest.raises(ValueError, match="log_format"):
        configure_logging("INFO", log_format="xml")  # type: ignore[arg-type]
    with pytest.raises(ValueError, match="unknown log level"):
        configure_logging("CHATTY")
