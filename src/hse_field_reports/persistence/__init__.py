"""Key-value backends, schema migration and the typed stores built on them."""

from hse_field_reports.persistence.kv_store import (
    CorruptStoreError,
    InMemoryKeyValueStore,
    JsonDocumentStore,
    KeyValueStore,
    SQLiteKeyValueStore,
    StoreError,
    StoreFatalError,
    StoreWriteError,
)
from hse_field_reports.persistence.migrations import (
    MigrationResult,
    ReportMigrator,
    UnrecognizedEnvelopeError,
    UnsupportedSchemaVersionError,
)
from hse_field_reports.persistence.repositories import (
    NotificationStore,
    OfflineQueue,
    ReportRepository,
    ReportStoreHaltedError,
    SettingsStore,
)

__all__ = [
    "CorruptStoreError",
    "InMemoryKeyValueStore",
    "JsonDocumentStore",
    "KeyValueStore",
    "MigrationResult",
    "NotificationStore",
    "OfflineQueue",
    "ReportMigrator",
    "ReportRepository",
    "ReportStoreHaltedError",
    "SQLiteKeyValueStore",
    "SettingsStore",
    "StoreError",
    "StoreFatalError",
    "StoreWriteError",
    "UnrecognizedEnvelopeError",
    "UnsupportedSchemaVersionError",
]
