"""Operator command-line interface for the local report store."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from hse_field_reports.config import (
    ConfigLoadError,
    ConfigValidationError,
    load_config,
)
from hse_field_reports.domain.models import (
    Report,
    ReportStatus,
    checklist_items,
    summarize_checklist,
)
from hse_field_reports.media.images import decode_data_uri, normalize_image_bytes
from hse_field_reports.observability.logging import configure_logging
from hse_field_reports.persistence.kv_store import (
    InMemoryKeyValueStore,
    JsonDocumentStore,
    KeyValueStore,
    SQLiteKeyValueStore,
)
from hse_field_reports.persistence.migrations import ReportMigrator
from hse_field_reports.persistence.repositories import (
    NotificationStore,
    OfflineQueue,
    ReportRepository,
    SettingsStore,
)
from hse_field_reports.services.dispatcher import EffectDispatcher
from hse_field_reports.services.replay import replay_offline_queues
from hse_field_reports.services.reports import ReportService


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class _Runtime:
    config: Mapping[str, Any]
    documents: JsonDocumentStore
    settings: SettingsStore
    reports: ReportService
    notifications: NotificationStore
    queue: OfflineQueue


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hse-reports",
        description=(
            "Inspect and maintain the local HSE report store.\n\n"
            "Common workflows:\n"
            "  hse-reports reports list --status Submitted\n"
            "  hse-reports migrate --dry-run\n"
            "  hse-reports queue replay\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to TOML config (default: ./hse_reports.toml if present).",
    )
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="SQLite store path; overrides storage.path.",
    )
    parser.add_argument("--json", action="store_true", help="Emit deterministic JSON output")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # reports -------------------------------------------------------------
    reports_parser = subparsers.add_parser("reports", help="Query stored reports")
    reports_sub = reports_parser.add_subparsers(dest="reports_command", required=True)

    list_parser = reports_sub.add_parser("list", help="List reports")
    list_parser.add_argument(
        "--status", default=None, help=f"Filter by status ({', '.join(ReportStatus)})"
    )
    list_parser.add_argument("--assigned-to", default=None, help="Filter by assignee user id")
    list_parser.set_defaults(handler=_cmd_reports_list)

    show_parser = reports_sub.add_parser("show", help="Show one report")
    show_parser.add_argument("report_id")
    show_parser.set_defaults(handler=_cmd_reports_show)

    # migrate -------------------------------------------------------------
    migrate_parser = subparsers.add_parser(
        "migrate", help="Upgrade the stored report collection to the current schema"
    )
    migrate_parser.add_argument(
        "--dry-run", action="store_true", help="Report what would change without writing"
    )
    migrate_parser.set_defaults(handler=_cmd_migrate)

    # queue ---------------------------------------------------------------
    queue_parser = subparsers.add_parser("queue", help="Inspect or drain the offline queues")
    queue_sub = queue_parser.add_subparsers(dest="queue_command", required=True)
    queue_sub.add_parser("status", help="Show pending entries").set_defaults(
        handler=_cmd_queue_status
    )
    queue_sub.add_parser("replay", help="Apply queued creates and edits").set_defaults(
        handler=_cmd_queue_replay
    )

    # notifications -------------------------------------------------------
    notif_parser = subparsers.add_parser("notifications", help="Inspect user notifications")
    notif_sub = notif_parser.add_subparsers(dest="notifications_command", required=True)
    notif_list = notif_sub.add_parser("list", help="List notifications for a user")
    notif_list.add_argument("user_id")
    notif_list.add_argument("--unread", action="store_true", help="Only unread notifications")
    notif_list.set_defaults(handler=_cmd_notifications_list)

    # image ---------------------------------------------------------------
    image_parser = subparsers.add_parser("image", help="Photo utilities")
    image_sub = image_parser.add_subparsers(dest="image_command", required=True)
    normalize_parser = image_sub.add_parser(
        "normalize", help="Bound and re-encode a photo as JPEG"
    )
    normalize_parser.add_argument("source")
    normalize_parser.add_argument(
        "--out", default=None, help="Write the JPEG here instead of printing a data URI"
    )
    normalize_parser.set_defaults(handler=_cmd_image_normalize)

    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""
    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_reports_list(args: argparse.Namespace) -> int:
    runtime = _open_runtime(args)
    reports = runtime.reports.get_all()
    if args.status is not None:
        reports = [item for item in reports if item.status == args.status]
    if args.assigned_to is not None:
        reports = [item for item in reports if item.assigned_to == args.assigned_to]

    if args.json:
        _emit_json({"command": "reports list", "reports": [item.to_dict() for item in reports]})
        return 0
    if not reports:
        print("No reports.")
        return 0
    for report in reports:
        assignee = report.assigned_to or "-"
        print(f"{report.id}  {report.date}  {report.status:<10}  {report.type}  -> {assignee}")
    return 0


def _cmd_reports_show(args: argparse.Namespace) -> int:
    runtime = _open_runtime(args)
    report = runtime.reports.get(args.report_id)
    if report is None:
        raise CLIError(f"report not found: {args.report_id}")
    summary = _checklist_payload(report)

    if args.json:
        _emit_json({"command": "reports show", "report": report.to_dict(), "checklist": summary})
        return 0
    print(f"Report:       {report.id}")
    print(f"Type:         {report.type}")
    print(f"Date:         {report.date}")
    print(f"Status:       {report.status}")
    print(f"Submitted by: {report.submitted_by}")
    print(f"Assigned to:  {report.assigned_to or '-'}")
    if report.last_edited:
        print(f"Last edited:  {report.last_edited}")
    if summary is not None:
        print(
            "Checklist:    "
            f"{summary['passed']} pass, {summary['failed']} fail, "
            f"{summary['not_applicable']} n/a, {summary['unrated']} unrated"
        )
    print(json.dumps(report.data, indent=2, sort_keys=True, ensure_ascii=False))
    return 0


def _cmd_migrate(args: argparse.Namespace) -> int:
    runtime = _open_runtime(args)
    migrator = ReportMigrator()
    result = (
        migrator.inspect(runtime.documents) if args.dry_run else migrator.load(runtime.documents)
    )

    payload: dict[str, object] = {"command": "migrate", "dry_run": bool(args.dry_run)}
    if result is None:
        payload.update(present=False)
    else:
        payload.update(
            present=True,
            source_version=result.source_version,
            rewrite_needed=result.rewrite_needed,
            migrated=result.migrated,
            kept=len(result.reports),
            discarded=[{"index": item.index, "reason": item.reason} for item in result.discarded],
        )

    if args.json:
        _emit_json(payload)
        return 0
    if result is None:
        print("No report collection stored.")
        return 0
    verb = "would rewrite" if args.dry_run else "rewrote"
    action = verb if result.rewrite_needed else "no rewrite needed for"
    print(
        f"Schema v{result.source_version}: {action} collection "
        f"({len(result.reports)} kept, {result.migrated} migrated, "
        f"{len(result.discarded)} discarded)"
    )
    for item in result.discarded:
        print(f"- record {item.index}: {item.reason}")
    return 0


def _cmd_queue_status(args: argparse.Namespace) -> int:
    runtime = _open_runtime(args)
    counts = runtime.queue.pending_counts()
    if args.json:
        _emit_json(
            {
                "command": "queue status",
                "reports": counts.reports,
                "edits": counts.edits,
                "total": counts.total,
            }
        )
        return 0
    print(f"Pending reports: {counts.reports}")
    print(f"Pending edits:   {counts.edits}")
    return 0


def _cmd_queue_replay(args: argparse.Namespace) -> int:
    runtime = _open_runtime(args)
    result = replay_offline_queues(runtime.queue, runtime.reports)
    if args.json:
        _emit_json(
            {
                "command": "queue replay",
                "created": list(result.created),
                "edited": list(result.edited),
                "dropped_edits": list(result.dropped_edits),
                "halted": result.halted,
                "error": result.error,
                "remaining": {
                    "reports": result.remaining.reports,
                    "edits": result.remaining.edits,
                },
            }
        )
    else:
        print(
            f"Created {len(result.created)}, edited {len(result.edited)}, "
            f"dropped {len(result.dropped_edits)} edit(s) for missing reports."
        )
        print(
            f"Remaining: {result.remaining.reports} report(s), {result.remaining.edits} edit(s)."
        )
        if result.error:
            print(f"Replay halted: {result.error}", file=sys.stderr)
    return 3 if result.halted else 0


def _cmd_notifications_list(args: argparse.Namespace) -> int:
    runtime = _open_runtime(args)
    items = runtime.notifications.list_for_user(args.user_id)
    if args.unread:
        items = [item for item in items if not item.is_read]
    if args.json:
        _emit_json(
            {
                "command": "notifications list",
                "user_id": args.user_id,
                "notifications": [item.to_dict() for item in items],
            }
        )
        return 0
    if not items:
        print("No notifications.")
        return 0
    for item in items:
        marker = " " if item.is_read else "*"
        print(f"{marker} {item.timestamp}  [{item.report_id}] {item.message}")
    return 0


def _cmd_image_normalize(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    images = config["images"]
    source = Path(args.source).expanduser()
    try:
        data = source.read_bytes()
    except OSError as exc:
        raise CLIError(f"unable to read image {source}: {exc}") from exc

    uri = normalize_image_bytes(
        data, max_dimension=images["max_dimension"], quality=images["jpeg_quality"]
    )
    jpeg = decode_data_uri(uri)
    if args.out is not None:
        out_path = Path(args.out).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(jpeg)

    if args.json:
        _emit_json(
            {
                "command": "image normalize",
                "source": source.as_posix(),
                "source_bytes": len(data),
                "output_bytes": len(jpeg),
                "out": None if args.out is None else Path(args.out).as_posix(),
            }
        )
    elif args.out is None:
        print(uri)
    else:
        print(f"Wrote {len(jpeg)} bytes to {args.out}")
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""
    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _checklist_payload(report: Report) -> dict[str, int] | None:
    items = checklist_items(report)
    if not items:
        return None
    summary = summarize_checklist(items)
    return {
        "passed": summary.passed,
        "failed": summary.failed,
        "not_applicable": summary.not_applicable,
        "unrated": summary.unrated,
        "total": summary.total,
    }


def _load_effective_config(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, object] = {}
    if args.db_path is not None:
        overrides["storage.path"] = str(Path(args.db_path).expanduser().resolve())
        overrides["storage.backend"] = "sqlite"
    try:
        config = load_config(args.config_path, cli_overrides=overrides)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=2) from exc

    observability = config["observability"]
    configure_logging(
        observability["log_level"],
        log_format=observability["log_format"],
        log_path=observability.get("log_path"),
    )
    return config


def _open_backend(storage: Mapping[str, Any]) -> KeyValueStore:
    if storage["backend"] == "memory":
        return InMemoryKeyValueStore()
    return SQLiteKeyValueStore(storage["path"], busy_timeout_ms=storage["busy_timeout_ms"])


def _open_runtime(args: argparse.Namespace) -> _Runtime:
    config = _load_effective_config(args)
    documents = JsonDocumentStore(_open_backend(config["storage"]))
    settings = SettingsStore(documents)
    notifications = NotificationStore(documents)
    repository = ReportRepository(documents, directory=settings)
    return _Runtime(
        config=config,
        documents=documents,
        settings=settings,
        reports=ReportService(repository, EffectDispatcher(notifications)),
        notifications=notifications,
        queue=OfflineQueue(documents),
    )


__all__ = ["CLIError", "build_parser", "run_cli"]
