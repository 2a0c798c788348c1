"""Stable constants shared across the report core."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Final

# Schema versions for persisted contracts.
CONFIG_SCHEMA_VERSION: Final[int] = 1
REPORTS_SCHEMA_VERSION: Final[int] = 2
KV_STORE_SCHEMA_VERSION: Final[int] = 1

# Logical storage keys. Each key holds one JSON document.
REPORTS_KEY: Final[str] = "hse_reports"
USERS_KEY: Final[str] = "hse_users"
DEPARTMENTS_KEY: Final[str] = "hse_departments"
OFFLINE_REPORTS_KEY: Final[str] = "hse_offline_reports_queue"
OFFLINE_EDITS_KEY: Final[str] = "hse_offline_edits_queue"
REMINDERS_KEY: Final[str] = "hse_reminders"
ROLE_PERMISSIONS_KEY: Final[str] = "hse_role_permissions"
FEATURE_PERMISSIONS_KEY: Final[str] = "hse_feature_permissions"
GPS_ENABLED_KEY: Final[str] = "hse_gps_enabled"
NOTIFICATIONS_KEY: Final[str] = "hse_notifications"

# Backfill values for records written before the versioned envelope existed.
LEGACY_DEFAULT_SUBMITTER: Final[str] = "unknown-user"
MIGRATED_ID_PREFIX: Final[str] = "migrated"

# Image normalization bounds.
IMAGE_MAX_DIMENSION: Final[int] = 1280
IMAGE_JPEG_QUALITY: Final[int] = 70

# Default runtime paths (relative to the config file unless overridden).
STATE_DIR: Final[PurePosixPath] = PurePosixPath("state")
DEFAULT_STATE_DB: Final[PurePosixPath] = STATE_DIR / "hse.sqlite3"

MANAGERIAL_ROLES: Final[frozenset[str]] = frozenset({"Admin User", "Super User"})

__all__ = [
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_STATE_DB",
    "DEPARTMENTS_KEY",
    "FEATURE_PERMISSIONS_KEY",
    "GPS_ENABLED_KEY",
    "IMAGE_JPEG_QUALITY",
    "IMAGE_MAX_DIMENSION",
    "KV_STORE_SCHEMA_VERSION",
    "LEGACY_DEFAULT_SUBMITTER",
    "MANAGERIAL_ROLES",
    "MIGRATED_ID_PREFIX",
    "NOTIFICATIONS_KEY",
    "OFFLINE_EDITS_KEY",
    "OFFLINE_REPORTS_KEY",
    "REMINDERS_KEY",
    "REPORTS_KEY",
    "REPORTS_SCHEMA_VERSION",
    "ROLE_PERMISSIONS_KEY",
    "STATE_DIR",
    "USERS_KEY",
]
