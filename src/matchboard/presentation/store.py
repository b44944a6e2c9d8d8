"""Durable store for the presentation match collection."""

import json
from collections.abc import Sequence
from datetime import datetime

from matchboard.catalog.clubs import ClubRegistry
from matchboard.common.config import StorageConfig
from matchboard.common.logging import get_logger
from matchboard.common.time_utils import from_millis, now_millis, utc_now
from matchboard.presentation.defaults import create_default_matches
from matchboard.presentation.models import MatchRecord
from matchboard.presentation.validation import sanitize_collection, to_number
from matchboard.storage.database import Database

logger = get_logger(__name__)


class PresentationStore:
    """Match collection persisted in the shared key/value store.

    ``load`` validates what it reads and repairs a missing, corrupt or empty
    collection by persisting the default seed. ``save`` replaces the whole
    collection and its update timestamp in one transaction; other contexts
    learn about it through the change feed. Concurrent saves are
    last-write-wins.
    """

    def __init__(
        self,
        db: Database,
        registry: ClubRegistry,
        config: StorageConfig | None = None,
        origin: str = "kiosk",
    ):
        """Initialize store.

        Args:
            db: Connected and migrated database.
            registry: Club lookup shared with the validator.
            config: Key names. Uses defaults if not provided.
            origin: Name of this viewing context, recorded with each write.
        """
        self.db = db
        self.registry = registry
        self.config = config or StorageConfig()
        self.origin = origin

    @property
    def matches_key(self) -> str:
        return self.config.matches_key

    def load(self) -> list[MatchRecord]:
        """Read and validate the stored collection, reseeding when unusable."""
        raw = self.db.get_entry(self.config.matches_key)
        if raw is None:
            return self._reseed("missing")

        try:
            payload = json.loads(raw)
        except (ValueError, RecursionError) as e:
            logger.warning("store_payload_corrupt", error=str(e))
            return self._reseed("corrupt")

        matches = sanitize_collection(payload, self.registry)
        if not matches:
            return self._reseed("empty")
        return matches

    def save(self, matches: Sequence[MatchRecord]) -> None:
        """Replace the stored collection and bump the update timestamp."""
        payload = json.dumps([match.to_dict() for match in matches], ensure_ascii=False)
        self.db.set_entries(
            {
                self.config.matches_key: payload,
                self.config.updated_key: json.dumps(now_millis()),
            },
            origin=self.origin,
        )
        logger.info("matches_saved", count=len(matches), origin=self.origin)

    def last_updated_at(self) -> datetime:
        """Time of the last successful save; now if unknown."""
        raw = self.db.get_entry(self.config.updated_key)
        updated_ms = to_number(raw) if raw is not None else None
        if updated_ms is None or updated_ms <= 0:
            return utc_now()
        return from_millis(updated_ms)

    def _reseed(self, reason: str) -> list[MatchRecord]:
        defaults = create_default_matches(self.registry)
        self.save(defaults)
        logger.warning("store_reseeded", reason=reason, count=len(defaults))
        return defaults

    # --- Currently displayed match ---

    def current_index(self, length: int | None = None) -> int:
        """Stored display index clamped into the collection bounds.

        Args:
            length: Collection size; loads the collection when omitted.
        """
        if length is None:
            length = len(self.load())
        raw = self.db.get_entry(self.config.index_key)
        number = to_number(raw) if raw is not None else None
        return _clamp_index(int(number) if number is not None else 0, length)

    def set_index(self, index: int, length: int | None = None) -> int:
        """Store a display index, clamped; returns the stored value."""
        if length is None:
            length = len(self.load())
        clamped = _clamp_index(index, length)
        self.db.set_entries({self.config.index_key: str(clamped)}, origin=self.origin)
        logger.info("display_index_set", index=clamped, origin=self.origin)
        return clamped

    def clear_index(self) -> None:
        """Forget the stored display index so the first match is shown."""
        self.db.delete_entries([self.config.index_key], origin=self.origin)

    def advance(self, length: int | None = None) -> int:
        """Move the display index to the next match, wrapping after the last."""
        if length is None:
            length = len(self.load())
        if length <= 0:
            return self.set_index(0, length)
        current = self.current_index(length)
        return self.set_index((current + 1) % length, length)


def _clamp_index(index: int, length: int) -> int:
    if length <= 0:
        return 0
    return max(0, min(length - 1, index))
