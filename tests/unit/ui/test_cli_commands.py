"""Operator CLI smoke tests against a temporary SQLite store."""

from __future__ import annotations

import json
from io import BytesIO
from pathlib import Path

import pytest
import structlog
from PIL import Image

from hse_field_reports.constants import (
    NOTIFICATIONS_KEY,
    OFFLINE_EDITS_KEY,
    OFFLINE_REPORTS_KEY,
    REPORTS_KEY,
)
from hse_field_reports.main import ExitCode, cli_entrypoint
from hse_field_reports.persistence.kv_store import SQLiteKeyValueStore
from hse_field_reports.ui.cli import run_cli


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def workspace(tmp_path: Path) -> tuple[Path, Path]:
    config_path = tmp_path / "hse_reports.toml"
    config_path.write_text('[observability]\nlog_level = "ERROR"\n', encoding="utf-8")
    return config_path, tmp_path / "state" / "hse.sqlite3"


def _seed(db_path: Path, documents: dict[str, object]) -> None:
    store = SQLiteKeyValueStore(db_path)
    for key, value in documents.items():
        store.set(key, json.dumps(value))


def _run(workspace: tuple[Path, Path], *args: str) -> int:
    config_path, db_path = workspace
    return run_cli(["--config", str(config_path), "--db", str(db_path), *args])


def _report(report_id: str, **overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": report_id,
        "type": "Safety Inspection",
        "date": "2026-10-01",
        "status": "Submitted",
        "submittedBy": "user-1",
        "data": {
            "checklist": [
                {"id": "1", "text": "Guards", "status": "Pass"},
                {"id": "2", "text": "Exits", "status": None},
            ]
        },
    }
    payload.update(overrides)
    return payload


def test_reports_list_filters_and_emits_json(
    workspace: tuple[Path, Path], capsys: pytest.CaptureFixture[str]
) -> None:
    _seed(
        workspace[1],
        {
            REPORTS_KEY: {
                "version": 2,
                "reports": [
                    _report("SAF-0001"),
                    _report("SAF-0002", status="Closed", assignedTo="user-2"),
                ],
            }
        },
    )

    assert _run(workspace, "--json", "reports", "list", "--status", "Closed") == 0

    payload = json.loads(capsys.readouterr().out)
    assert [item["id"] for item in payload["reports"]] == ["SAF-0002"]


def test_reports_show_includes_checklist_summary(
    workspace: tuple[Path, Path], capsys: pytest.CaptureFixture[str]
) -> None:
    _seed(workspace[1], {REPORTS_KEY: {"version": 2, "reports": [_report("SAF-0001")]}})

    assert _run(workspace, "--json", "reports", "show", "SAF-0001") == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["checklist"] == {
        "passed": 1,
        "failed": 0,
        "not_applicable": 0,
        "unrated": 1,
        "total": 2,
    }

    assert _run(workspace, "reports", "show", "SAF-9999") == 1
    assert "report not found" in capsys.readouterr().err


def test_migrate_dry_run_then_apply(
    workspace: tuple[Path, Path], capsys: pytest.CaptureFixture[str]
) -> None:
    _seed(workspace[1], {REPORTS_KEY: [{"id": "R1", "type": "Incident"}, "junk"]})
    store = SQLiteKeyValueStore(workspace[1])

    assert _run(workspace, "--json", "migrate", "--dry-run") == 0
    dry = json.loads(capsys.readouterr().out)
    assert dry["rewrite_needed"] is True
    assert dry["kept"] == 1
    assert [item["index"] for item in dry["discarded"]] == [1]
    assert isinstance(json.loads(store.get(REPORTS_KEY) or "null"), list)

    assert _run(workspace, "migrate") == 0
    capsys.readouterr()
    stored = json.loads(store.get(REPORTS_KEY) or "null")
    assert stored["version"] == 2


def test_queue_status_and_replay(
    workspace: tuple[Path, Path], capsys: pytest.CaptureFixture[str]
) -> None:
    _seed(
        workspace[1],
        {
            OFFLINE_REPORTS_KEY: [
                {"type": "Near Miss", "submittedBy": "user-1", "data": {"description": "x"}}
            ],
            OFFLINE_EDITS_KEY: [{"reportId": "NEA-0000", "updatedData": {}, "timestamp": None}],
        },
    )

    assert _run(workspace, "--json", "queue", "status") == 0
    assert json.loads(capsys.readouterr().out)["total"] == 2

    assert _run(workspace, "--json", "queue", "replay") == 0
    result = json.loads(capsys.readouterr().out)
    assert len(result["created"]) == 1
    assert result["remaining"] == {"reports": 0, "edits": 0}


def test_notifications_list_unread(
    workspace: tuple[Path, Path], capsys: pytest.CaptureFixture[str]
) -> None:
    _seed(
        workspace[1],
        {
            NOTIFICATIONS_KEY: [
                {
                    "id": "n1",
                    "userId": "user-1",
                    "reportId": "R1",
                    "message": "read",
                    "isRead": True,
                    "timestamp": "2026-01-01T00:00:00.000Z",
                },
                {
                    "id": "n2",
                    "userId": "user-1",
                    "reportId": "R1",
                    "message": "unread",
                    "isRead": False,
                    "timestamp": "2026-01-02T00:00:00.000Z",
                },
            ]
        },
    )

    assert _run(workspace, "--json", "notifications", "list", "user-1", "--unread") == 0

    payload = json.loads(capsys.readouterr().out)
    assert [item["id"] for item in payload["notifications"]] == ["n2"]


def test_image_normalize_writes_bounded_jpeg(
    workspace: tuple[Path, Path], tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    source = tmp_path / "photo.png"
    buffer = BytesIO()
    Image.new("RGB", (3000, 1500), "green").save(buffer, format="PNG")
    source.write_bytes(buffer.getvalue())
    out = tmp_path / "out" / "photo.jpg"

    assert _run(workspace, "image", "normalize", str(source), "--out", str(out)) == 0

    capsys.readouterr()
    with Image.open(out) as result:
        assert result.format == "JPEG"
        assert result.size == (1280, 640)


def test_entrypoint_maps_corrupt_store_to_exit_code(
    workspace: tuple[Path, Path], capsys: pytest.CaptureFixture[str]
) -> None:
    config_path, db_path = workspace
    SQLiteKeyValueStore(db_path).set(REPORTS_KEY, "{not json")

    code = cli_entrypoint(["--config", str(config_path), "--db", str(db_path), "reports", "list"])

    assert code == ExitCode.STORE_FATAL
    assert "not valid JSON" in capsys.readouterr().err


def test_entrypoint_maps_config_errors(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config_path = tmp_path / "hse_reports.toml"
    config_path.write_text('[storage]\nbackend = "cloud"\n', encoding="utf-8")

    code = cli_entrypoint(["--config", str(config_path), "queue", "status"])

    assert code == ExitCode.CONFIG_ERROR
    assert "storage.backend" in capsys.readouterr().err
