"""SQLite schema definitions for the shared presentation store."""

SCHEMA_VERSION = 2

SCHEMA_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Key/value space shared by all viewing contexts
CREATE TABLE IF NOT EXISTS kv_entries (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""

MIGRATION_2_CHANGE_LOG = """
-- One row per key written; other contexts poll this to learn about changes
CREATE TABLE IF NOT EXISTS kv_changes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL,
    origin TEXT NOT NULL,
    changed_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_kv_changes_key ON kv_changes(key);
"""

MIGRATIONS: dict[int, str] = {
    1: SCHEMA_SQL,
    2: MIGRATION_2_CHANGE_LOG,
}
