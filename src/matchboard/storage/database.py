"""Database connection and key/value access layer."""

import sqlite3
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from matchboard.common.logging import get_logger
from matchboard.common.time_utils import utc_now
from matchboard.storage.models import ChangeEvent
from matchboard.storage.schema import MIGRATIONS, SCHEMA_VERSION

logger = get_logger(__name__)


class Database:
    """SQLite database holding the shared key/value space and its change log.

    Several processes may open the same file; each write of a set of keys is
    one transaction, so readers see either all of it or none of it.
    """

    def __init__(self, db_path: str | Path, busy_timeout_seconds: float = 5.0):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file.
            busy_timeout_seconds: How long to wait on another writer's lock.
        """
        self.db_path = Path(db_path)
        self.busy_timeout_seconds = busy_timeout_seconds
        self._connection: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Open database connection."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = sqlite3.connect(
            str(self.db_path), timeout=self.busy_timeout_seconds
        )
        self._connection.row_factory = sqlite3.Row
        self._connection.execute("PRAGMA journal_mode = WAL")

        logger.info("database_connected", path=str(self.db_path))

    def close(self) -> None:
        """Close database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None
            logger.info("database_closed", path=str(self.db_path))

    @property
    def connection(self) -> sqlite3.Connection:
        """Get active connection, raising if not connected."""
        if self._connection is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    def migrate(self) -> None:
        """Apply database migrations."""
        conn = self.connection
        current_version = self.get_schema_version()

        for version in sorted(MIGRATIONS):
            if version <= current_version:
                continue
            logger.info("applying_migration", version=version)
            conn.executescript(MIGRATIONS[version])
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
            conn.commit()
            logger.info("migration_applied", version=version)

        if current_version < SCHEMA_VERSION:
            logger.info(
                "migrations_complete",
                from_version=current_version,
                to_version=SCHEMA_VERSION,
            )

    def get_schema_version(self) -> int:
        """Get current schema version."""
        cursor = self.connection.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
        )
        if cursor.fetchone() is None:
            return 0
        row = self.connection.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] if row[0] is not None else 0

    # --- Key/value operations ---

    def get_entry(self, key: str) -> str | None:
        """Get the raw value stored under a key.

        Args:
            key: Entry key.

        Returns:
            Stored text, or None if the key was never written.
        """
        row = self.connection.execute(
            "SELECT value FROM kv_entries WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def set_entries(self, entries: Mapping[str, str], origin: str) -> list[int]:
        """Write several keys and their change records in one transaction.

        Args:
            entries: Key to raw value.
            origin: Name of the writing context.

        Returns:
            Change log ids, one per key, in ``entries`` order.
        """
        now = _timestamp(utc_now())
        change_ids: list[int] = []
        with self.connection as conn:
            for key, value in entries.items():
                conn.execute(
                    """
                    INSERT INTO kv_entries (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, now),
                )
                cursor = conn.execute(
                    "INSERT INTO kv_changes (key, origin, changed_at) VALUES (?, ?, ?)",
                    (key, origin, now),
                )
                assert cursor.lastrowid is not None
                change_ids.append(cursor.lastrowid)

        logger.debug("entries_written", keys=list(entries), origin=origin)
        return change_ids

    def delete_entries(self, keys: Iterable[str], origin: str) -> None:
        """Remove keys, recording a change for each."""
        now = _timestamp(utc_now())
        with self.connection as conn:
            for key in keys:
                conn.execute("DELETE FROM kv_entries WHERE key = ?", (key,))
                conn.execute(
                    "INSERT INTO kv_changes (key, origin, changed_at) VALUES (?, ?, ?)",
                    (key, origin, now),
                )

    # --- Change log ---

    def prune_changes(self, older_than: datetime) -> int:
        """Delete change records written before a point in time.

        Ids keep increasing after a prune, so feed cursors stay valid.

        Args:
            older_than: Changes recorded strictly before this instant are removed.

        Returns:
            Number of deleted change records.
        """
        with self.connection as conn:
            cursor = conn.execute(
                "DELETE FROM kv_changes WHERE changed_at < ?", (_timestamp(older_than),)
            )
        if cursor.rowcount:
            logger.info("changes_pruned", count=cursor.rowcount)
        return cursor.rowcount

    def latest_change_id(self) -> int:
        """Id of the most recent change, 0 when nothing was written yet."""
        row = self.connection.execute("SELECT MAX(id) FROM kv_changes").fetchone()
        return row[0] if row[0] is not None else 0

    def changes_since(
        self,
        after_id: int,
        exclude_origin: str | None = None,
        limit: int = 500,
    ) -> list[ChangeEvent]:
        """Get changes recorded after a given change id.

        Args:
            after_id: Only changes with a greater id are returned.
            exclude_origin: Skip changes written by this context.
            limit: Maximum number of changes.

        Returns:
            Changes in write order.
        """
        sql = "SELECT * FROM kv_changes WHERE id > ?"
        params: list[Any] = [after_id]
        if exclude_origin is not None:
            sql += " AND origin != ?"
            params.append(exclude_origin)
        sql += " ORDER BY id ASC LIMIT ?"
        params.append(limit)

        cursor = self.connection.execute(sql, tuple(params))
        return [self._row_to_change(row) for row in cursor.fetchall()]

    def _row_to_change(self, row: sqlite3.Row) -> ChangeEvent:
        """Convert database row to ChangeEvent object."""
        changed_at = datetime.fromisoformat(row["changed_at"])
        if changed_at.tzinfo is None:
            changed_at = changed_at.replace(tzinfo=UTC)
        return ChangeEvent(
            change_id=row["id"],
            key=row["key"],
            origin=row["origin"],
            changed_at=changed_at,
        )

    # --- Utility methods ---

    def execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        """Execute raw SQL.

        Args:
            sql: SQL statement.
            params: Query parameters.

        Returns:
            Cursor with results.
        """
        return self.connection.execute(sql, params)

    def __enter__(self) -> "Database":
        """Context manager entry."""
        self.connect()
        self.migrate()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        self.close()


def _timestamp(dt: datetime) -> str:
    # Fixed width so stored timestamps compare correctly as text
    return dt.astimezone(UTC).isoformat(timespec="microseconds")
