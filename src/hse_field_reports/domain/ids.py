"""ID generation for reports, notifications, and migrated legacy records."""

from __future__ import annotations

import secrets
import time
from collections.abc import Callable, Container
from typing import Final

from hse_field_reports.constants import MIGRATED_ID_PREFIX

CROCKFORD_BASE32_ALPHABET: Final[str] = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
ULID_LENGTH: Final[int] = 26
ULID_RANDOM_BYTES: Final[int] = 10
ULID_MAX_TIMESTAMP_MS: Final[int] = (1 << 48) - 1

NOTIFICATION_ID_PREFIX: Final[str] = "notif"
REPORT_ID_SUFFIX_DIGITS: Final[int] = 4
_REPORT_ID_PREFIX_LENGTH: Final[int] = 3
_MAX_REPORT_ID_PROBES: Final[int] = 10**REPORT_ID_SUFFIX_DIGITS

_RandBytes = Callable[[int], bytes]

__all__ = [
    "CROCKFORD_BASE32_ALPHABET",
    "NOTIFICATION_ID_PREFIX",
    "REPORT_ID_SUFFIX_DIGITS",
    "ULID_LENGTH",
    "current_epoch_ms",
    "generate_notification_id",
    "generate_report_id",
    "generate_ulid",
    "migrated_report_id",
    "report_id_prefix",
]


def current_epoch_ms() -> int:
    return time.time_ns() // 1_000_000


def generate_ulid(
    *,
    timestamp_ms: int | None = None,
    randbytes: _RandBytes | None = None,
) -> str:
    """Generate a ULID as a 26-character uppercase Crockford Base32 string."""
    ts_ms = current_epoch_ms() if timestamp_ms is None else timestamp_ms
    if not 0 <= ts_ms <= ULID_MAX_TIMESTAMP_MS:
        raise ValueError(
            f"timestamp_ms out of range: expected 0..{ULID_MAX_TIMESTAMP_MS}, got {ts_ms}"
        )
    provider = secrets.token_bytes if randbytes is None else randbytes
    random_part = bytes(provider(ULID_RANDOM_BYTES))
    if len(random_part) != ULID_RANDOM_BYTES:
        raise ValueError(f"randbytes must return exactly {ULID_RANDOM_BYTES} bytes")
    value = (ts_ms << 80) | int.from_bytes(random_part, "big")
    return _encode_crockford_base32(value, ULID_LENGTH)


def generate_notification_id(
    *, timestamp_ms: int | None = None, randbytes: _RandBytes | None = None
) -> str:
    """Notification ids are ``notif-<ulid>`` so two notifications in one millisecond differ."""
    ulid = generate_ulid(timestamp_ms=timestamp_ms, randbytes=randbytes)
    return f"{NOTIFICATION_ID_PREFIX}-{ulid}"


def report_id_prefix(report_type: str) -> str:
    """Return the upper-cased first three letters of a report type (``Near Miss`` -> ``NEA``)."""
    if not isinstance(report_type, str) or not report_type.strip():
        raise ValueError("report_type must be a non-empty string")
    return report_type.strip()[:_REPORT_ID_PREFIX_LENGTH].upper()


def generate_report_id(
    report_type: str,
    *,
    timestamp_ms: int | None = None,
    existing: Container[str] = (),
) -> str:
    """Generate ``{typePrefix}-{epochSuffix}``, probing forward past ids already in use.

    The suffix is the last four digits of the epoch milliseconds. When the
    candidate is already present in ``existing`` the timestamp advances one
    millisecond at a time until a free id is found.
    """
    prefix = report_id_prefix(report_type)
    base_ms = current_epoch_ms() if timestamp_ms is None else timestamp_ms
    if base_ms < 0:
        raise ValueError("timestamp_ms must be >= 0")

    for offset in range(_MAX_REPORT_ID_PROBES):
        suffix = str(base_ms + offset)[-REPORT_ID_SUFFIX_DIGITS:]
        candidate = f"{prefix}-{suffix}"
        if candidate not in existing:
            return candidate
    raise ValueError(f"no free report id left for prefix {prefix!r}")


def migrated_report_id(timestamp_ms: int, index: int) -> str:
    """Synthesized id for legacy records that were stored without one."""
    return f"{MIGRATED_ID_PREFIX}-{timestamp_ms}-{index}"


def _encode_crockford_base32(value: int, length: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")

    mask = 0b11111
    chars = ["0"] * length
    working = value
    for index in range(length - 1, -1, -1):
        chars[index] = CROCKFORD_BASE32_ALPHABET[working & mask]
        working >>= 5

    if working != 0:
        raise ValueError(f"value does not fit into {length} Crockford Base32 characters")
    return "".join(chars)
