"""Key-value storage backends and the JSON document layer on top of them.

Every component receives a :class:`KeyValueStore` explicitly; there is no
module-level store. Two backends ship:

- :class:`InMemoryKeyValueStore` for tests and ephemeral sessions. It can be
  given a byte capacity to reproduce quota exhaustion.
- :class:`SQLiteKeyValueStore`, one ``kv_entries`` table in WAL mode with
  bounded busy retries and corruption detection.

:class:`JsonDocumentStore` adds typed JSON load/save with the failure policy
used throughout the package: the report collection is loaded strictly, while
secondary documents (settings, queues, notifications) degrade to defaults.
"""

from __future__ import annotations

import copy
import hashlib
import json
import sqlite3
import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Final, NoReturn, Protocol, TypeVar, runtime_checkable

import structlog

from hse_field_reports.constants import KV_STORE_SCHEMA_VERSION

logger = structlog.get_logger(__name__)

T = TypeVar("T")
SQLParams = Sequence[str | int | float | bytes | None]

DEFAULT_BUSY_TIMEOUT_MS: Final[int] = 5_000
DEFAULT_BUSY_RETRY_LIMIT: Final[int] = 4
DEFAULT_BUSY_RETRY_BACKOFF_MS: Final[int] = 25


# --- error hierarchy -------------------------------------------------------


class StoreError(RuntimeError):
    """Base class for report-store errors."""


class StoreFatalError(StoreError):
    """The primary report collection cannot be trusted; callers must halt writes."""


class CorruptStoreError(StoreFatalError):
    """A required document exists but is not valid JSON."""


class StoreWriteError(StoreFatalError):
    """The backend rejected a write (capacity, I/O, locking)."""


class KeyValueBackendError(RuntimeError):
    """Base class for backend-level failures."""


class KeyValueBusyError(KeyValueBackendError):
    """Raised when bounded busy retries are exhausted."""


class KeyValueCorruptionError(KeyValueBackendError):
    """Raised when SQLite reports possible corruption."""


class KeyValueCapacityError(KeyValueBackendError):
    """Raised when a write would exceed the backend's capacity."""


# --- backends --------------------------------------------------------------


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal string key-value contract shared by every backend."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Dict-backed store. ``capacity_bytes`` bounds the UTF-8 size of all values."""

    def __init__(
        self,
        initial: dict[str, str] | None = None,
        *,
        capacity_bytes: int | None = None,
    ) -> None:
        if capacity_bytes is not None and capacity_bytes < 0:
            raise ValueError("capacity_bytes must be >= 0")
        self._entries: dict[str, str] = dict(initial or {})
        self._capacity_bytes = capacity_bytes

    def get(self, key: str) -> str | None:
        return self._entries.get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"value for {key!r} must be str, got {type(value).__name__}")
        if self._capacity_bytes is not None:
            used = sum(
                len(stored.encode("utf-8"))
                for stored_key, stored in self._entries.items()
                if stored_key != key
            )
            if used + len(value.encode("utf-8")) > self._capacity_bytes:
                raise KeyValueCapacityError(
                    f"writing {key!r} exceeds capacity of {self._capacity_bytes} bytes"
                )
        self._entries[key] = value

    def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


_SCHEMA_VERSIONS_TABLE_SQL: Final[str] = """
CREATE TABLE IF NOT EXISTS schema_versions (
    version INTEGER PRIMARY KEY CHECK (version > 0),
    name TEXT NOT NULL,
    checksum TEXT NOT NULL CHECK (length(checksum) = 64),
    applied_at TEXT NOT NULL
)
"""

_MIGRATION_0001_STATEMENTS: Final[tuple[str, ...]] = (
    _SCHEMA_VERSIONS_TABLE_SQL,
    """
    CREATE TABLE IF NOT EXISTS kv_entries (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
)


@dataclass(frozen=True, slots=True)
class _Migration:
    version: int
    name: str
    statements: tuple[str, ...]
    checksum: str


def _migration_checksum(version: int, name: str, statements: Sequence[str]) -> str:
    digest = hashlib.sha256()
    digest.update(f"{version}:{name}\n".encode())
    for statement in statements:
        normalized = "\n".join(line.rstrip() for line in statement.strip().splitlines())
        digest.update(normalized.encode("utf-8"))
        digest.update(b"\n--\n")
    return digest.hexdigest()


_MIGRATIONS: Final[tuple[_Migration, ...]] = (
    _Migration(
        version=1,
        name="kv_entries",
        statements=_MIGRATION_0001_STATEMENTS,
        checksum=_migration_checksum(1, "kv_entries", _MIGRATION_0001_STATEMENTS),
    ),
)

_SQLITE_BUSY_CODES: Final[frozenset[int]] = frozenset(
    code
    for code in (
        getattr(sqlite3, "SQLITE_BUSY", None),
        getattr(sqlite3, "SQLITE_BUSY_RECOVERY", None),
        getattr(sqlite3, "SQLITE_BUSY_SNAPSHOT", None),
        getattr(sqlite3, "SQLITE_LOCKED", None),
    )
    if isinstance(code, int)
)

_SQLITE_CORRUPTION_CODES: Final[frozenset[int]] = frozenset(
    code
    for code in (
        getattr(sqlite3, "SQLITE_CORRUPT", None),
        getattr(sqlite3, "SQLITE_NOTADB", None),
    )
    if isinstance(code, int)
)

_SQLITE_CAPACITY_CODES: Final[frozenset[int]] = frozenset(
    code for code in (getattr(sqlite3, "SQLITE_FULL", None),) if isinstance(code, int)
)

_BUSY_SUBSTRINGS: Final[tuple[str, ...]] = (
    "database is locked",
    "database table is locked",
    "database schema is locked",
)

_CORRUPTION_SUBSTRINGS: Final[tuple[str, ...]] = (
    "database disk image is malformed",
    "malformed database",
    "file is not a database",
)


class SQLiteKeyValueStore:
    """SQLite-backed key-value store with a versioned schema.

    Connections are short-lived; each operation opens, configures and closes
    its own. The schema is migrated lazily on first use.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
        busy_retry_limit: int = DEFAULT_BUSY_RETRY_LIMIT,
        busy_retry_backoff_ms: int = DEFAULT_BUSY_RETRY_BACKOFF_MS,
    ) -> None:
        if busy_timeout_ms < 0:
            raise ValueError("busy_timeout_ms must be >= 0")
        if busy_retry_limit < 0:
            raise ValueError("busy_retry_limit must be >= 0")
        if busy_retry_backoff_ms < 0:
            raise ValueError("busy_retry_backoff_ms must be >= 0")
        self._path = Path(path).expanduser()
        self._busy_timeout_ms = busy_timeout_ms
        self._busy_retry_limit = busy_retry_limit
        self._busy_retry_backoff_ms = busy_retry_backoff_ms
        self._migrated = False

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        self._ensure_schema()
        with self._connection() as conn:
            row = self._execute_with_retry(
                conn, "SELECT value FROM kv_entries WHERE key = ?", (key,), operation="get"
            ).fetchone()
        if row is None:
            return None
        value = row[0]
        if not isinstance(value, str):
            raise KeyValueCorruptionError(f"kv_entries.value for {key!r} must be text")
        return value

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"value for {key!r} must be str, got {type(value).__name__}")
        self._ensure_schema()
        with self._connection() as conn:
            self._execute_with_retry(
                conn,
                """
                INSERT INTO kv_entries (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value=excluded.value,
                    updated_at=excluded.updated_at
                """,
                (key, value, _utc_now_iso()),
                operation="set",
            )

    def remove(self, key: str) -> None:
        self._ensure_schema()
        with self._connection() as conn:
            self._execute_with_retry(
                conn, "DELETE FROM kv_entries WHERE key = ?", (key,), operation="remove"
            )

    def keys(self) -> list[str]:
        self._ensure_schema()
        with self._connection() as conn:
            rows = self._execute_with_retry(
                conn, "SELECT key FROM kv_entries ORDER BY key ASC", (), operation="keys"
            ).fetchall()
        return [str(row[0]) for row in rows]

    def schema_version(self) -> int:
        self._ensure_schema()
        with self._connection() as conn:
            row = self._execute_with_retry(
                conn,
                "SELECT COALESCE(MAX(version), 0) FROM schema_versions",
                (),
                operation="schema version",
            ).fetchone()
        value = 0 if row is None else row[0]
        if not isinstance(value, int):
            raise KeyValueBackendError("schema_versions.version must be an integer")
        return value

    def migrate(self) -> int:
        """Apply schema migrations idempotently and return the schema version."""
        with self._connection() as conn:
            self._execute_with_retry(
                conn, _SCHEMA_VERSIONS_TABLE_SQL, (), operation="create schema_versions table"
            )
            applied = {
                int(row[0]): str(row[1])
                for row in self._execute_with_retry(
                    conn,
                    "SELECT version, checksum FROM schema_versions ORDER BY version ASC",
                    (),
                    operation="load schema_versions",
                ).fetchall()
            }
            current = max(applied, default=0)
            if current > KV_STORE_SCHEMA_VERSION:
                raise KeyValueBackendError(
                    "database schema is newer than supported "
                    f"(db={current}, code={KV_STORE_SCHEMA_VERSION})"
                )
            for migration in _MIGRATIONS:
                recorded = applied.get(migration.version)
                if recorded is not None:
                    if recorded != migration.checksum:
                        raise KeyValueBackendError(
                            f"migration checksum mismatch for version {migration.version}: "
                            f"db={recorded} code={migration.checksum}"
                        )
                    continue
                self._execute_with_retry(conn, "BEGIN IMMEDIATE", (), operation="begin")
                try:
                    for statement in migration.statements:
                        self._execute_with_retry(
                            conn, statement, (), operation=f"apply migration {migration.version}"
                        )
                    self._execute_with_retry(
                        conn,
                        """
                        INSERT INTO schema_versions (version, name, checksum, applied_at)
                        VALUES (?, ?, ?, ?)
                        """,
                        (migration.version, migration.name, migration.checksum, _utc_now_iso()),
                        operation=f"record migration {migration.version}",
                    )
                except Exception:
                    self._execute_with_retry(conn, "ROLLBACK", (), operation="rollback")
                    raise
                self._execute_with_retry(conn, "COMMIT", (), operation="commit")
                logger.info(
                    "kv_schema_migrated", path=str(self._path), version=migration.version
                )
                applied[migration.version] = migration.checksum
        self._migrated = True
        return max(applied, default=0)

    def _ensure_schema(self) -> None:
        if not self._migrated:
            self.migrate()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(
                self._path,
                timeout=self._busy_timeout_ms / 1000.0,
                isolation_level=None,
                check_same_thread=False,
            )
        except sqlite3.Error as exc:
            self._raise_actionable_error(exc, operation="connect")
        try:
            self._configure_connection(conn)
            yield conn
        finally:
            conn.close()

    def _configure_connection(self, conn: sqlite3.Connection) -> None:
        self._execute_with_retry(
            conn, f"PRAGMA busy_timeout={self._busy_timeout_ms}", (), operation="configure"
        )
        journal_row = self._execute_with_retry(
            conn, "PRAGMA journal_mode=WAL", (), operation="configure"
        ).fetchone()
        if journal_row is None:
            raise KeyValueBackendError("failed to configure journal_mode")
        journal_mode = str(journal_row[0]).lower()
        if journal_mode != "wal":
            raise KeyValueBackendError(f"journal_mode must be WAL, got {journal_mode!r}")

    def _execute_with_retry(
        self,
        conn: sqlite3.Connection,
        sql: str,
        params: SQLParams,
        *,
        operation: str,
    ) -> sqlite3.Cursor:
        for attempt in range(self._busy_retry_limit + 1):
            try:
                return conn.execute(sql, tuple(params))
            except sqlite3.Error as exc:
                if self._is_busy_error(exc) and attempt < self._busy_retry_limit:
                    time.sleep((self._busy_retry_backoff_ms / 1000.0) * float(2**attempt))
                    continue
                self._raise_actionable_error(exc, operation=operation)
        raise KeyValueBusyError(f"{operation} exhausted retries unexpectedly")

    def _is_busy_error(self, exc: sqlite3.Error) -> bool:
        code = getattr(exc, "sqlite_errorcode", None)
        if isinstance(code, int) and code in _SQLITE_BUSY_CODES:
            return True
        message = str(exc).lower()
        return any(fragment in message for fragment in _BUSY_SUBSTRINGS)

    def _is_corruption_error(self, exc: sqlite3.Error) -> bool:
        code = getattr(exc, "sqlite_errorcode", None)
        if isinstance(code, int) and code in _SQLITE_CORRUPTION_CODES:
            return True
        message = str(exc).lower()
        return any(fragment in message for fragment in _CORRUPTION_SUBSTRINGS)

    def _raise_actionable_error(self, exc: sqlite3.Error, *, operation: str) -> NoReturn:
        if self._is_corruption_error(exc):
            raise KeyValueCorruptionError(f"{operation} failed for {self._path}: {exc}") from exc
        if self._is_busy_error(exc):
            raise KeyValueBusyError(
                f"{operation} hit SQLITE_BUSY for {self._path} after "
                f"{self._busy_retry_limit + 1} attempt(s): {exc}"
            ) from exc
        code = getattr(exc, "sqlite_errorcode", None)
        if isinstance(code, int) and code in _SQLITE_CAPACITY_CODES:
            raise KeyValueCapacityError(f"{operation} failed for {self._path}: {exc}") from exc
        raise KeyValueBackendError(f"{operation} failed for {self._path}: {exc}") from exc


# --- JSON documents --------------------------------------------------------


class JsonDocumentStore:
    """Typed JSON helpers over a :class:`KeyValueStore`."""

    def __init__(self, backend: KeyValueStore) -> None:
        self._backend = backend

    @property
    def backend(self) -> KeyValueStore:
        return self._backend

    def read_raw(self, key: str) -> str | None:
        try:
            return self._backend.get(key)
        except KeyValueBackendError as exc:
            raise CorruptStoreError(f"{key}: backend read failed: {exc}") from exc

    def load_required(self, key: str) -> object | None:
        """Parse the document at ``key``.

        Returns ``None`` when absent and raises ``CorruptStoreError`` when unparseable.
        """
        raw = self.read_raw(key)
        if raw is None:
            return None
        return self.decode(key, raw)

    @staticmethod
    def decode(key: str, raw: str) -> object:
        """Parse text read from ``key``; a stored JSON ``null`` comes back as ``None``."""
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CorruptStoreError(f"{key}: stored value is not valid JSON: {exc}") from exc

    def load_or_default(self, key: str, default: T) -> object | T:
        """Parse the document at ``key``, falling back to a copy of ``default``."""
        try:
            value = self.load_required(key)
        except CorruptStoreError as exc:
            logger.warning("store_document_unreadable", key=key, error=str(exc))
            return copy.deepcopy(default)
        if value is None:
            return copy.deepcopy(default)
        return value

    def save(self, key: str, value: object) -> None:
        try:
            encoded = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise StoreWriteError(f"{key}: value is not JSON-serializable: {exc}") from exc
        try:
            self._backend.set(key, encoded)
        except (KeyValueBackendError, OSError) as exc:
            logger.error("store_write_failed", key=key, error=str(exc))
            raise StoreWriteError(f"{key}: write failed: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._backend.remove(key)
        except (KeyValueBackendError, OSError) as exc:
            logger.error("store_write_failed", key=key, error=str(exc))
            raise StoreWriteError(f"{key}: delete failed: {exc}") from exc


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z")


__all__ = [
    "DEFAULT_BUSY_RETRY_BACKOFF_MS",
    "DEFAULT_BUSY_RETRY_LIMIT",
    "DEFAULT_BUSY_TIMEOUT_MS",
    "CorruptStoreError",
    "InMemoryKeyValueStore",
    "JsonDocumentStore",
    "KeyValueBackendError",
    "KeyValueBusyError",
    "KeyValueCapacityError",
    "KeyValueCorruptionError",
    "KeyValueStore",
    "SQLiteKeyValueStore",
    "StoreError",
    "StoreFatalError",
    "StoreWriteError",
]
