"""Operator edits to the presentation collection."""

from collections.abc import Mapping
from typing import Any

from matchboard.common.logging import get_logger
from matchboard.common.time_utils import now_millis
from matchboard.presentation.defaults import create_default_matches
from matchboard.presentation.models import MatchRecord
from matchboard.presentation.store import PresentationStore
from matchboard.presentation.validation import check_match, generate_match_id

logger = get_logger(__name__)


class MatchAdmin:
    """Add, replace and delete match records on behalf of an operator.

    Drafts use the stored field names (``homeLeague``, ``kickoff``, ...) and go
    through the same validation as stored payloads. Unusable drafts and
    unknown ids are reported through the return value, not raised.
    """

    def __init__(self, store: PresentationStore):
        self.store = store

    def get(self, match_id: str) -> MatchRecord | None:
        return next((m for m in self.store.load() if m.id == match_id), None)

    def add(self, draft: Mapping[str, Any]) -> MatchRecord | None:
        """Append a new local-only record.

        Returns:
            The stored record, or None if the draft is invalid.
        """
        payload = {**draft, "id": generate_match_id(), "createdAt": now_millis()}
        result = check_match(payload, self.store.registry)
        if not result.ok or result.value is None:
            logger.info("match_draft_rejected", action="add", reason=result.reason)
            return None

        matches = self.store.load()
        matches.append(result.value)
        self.store.save(matches)
        logger.info("match_added", match_id=result.value.id)
        return result.value

    def update(self, match_id: str, draft: Mapping[str, Any]) -> MatchRecord | None:
        """Replace every field of a record except ``id`` and ``createdAt``.

        Returns:
            The stored record, or None if the id is unknown or the draft invalid.
        """
        matches = self.store.load()
        position = next((i for i, m in enumerate(matches) if m.id == match_id), None)
        if position is None:
            logger.info("match_not_found", action="update", match_id=match_id)
            return None

        previous = matches[position]
        payload = {**draft, "id": previous.id, "createdAt": previous.created_at}
        result = check_match(payload, self.store.registry)
        if not result.ok or result.value is None:
            logger.info("match_draft_rejected", action="update", reason=result.reason)
            return None

        matches[position] = result.value
        self.store.save(matches)
        logger.info("match_updated", match_id=match_id)
        return result.value

    def delete(self, match_id: str) -> bool:
        """Remove a record; returns False if no record has that id."""
        matches = self.store.load()
        remaining = [m for m in matches if m.id != match_id]
        if len(remaining) == len(matches):
            logger.info("match_not_found", action="delete", match_id=match_id)
            return False
        self.store.save(remaining)
        logger.info("match_deleted", match_id=match_id)
        return True

    def reset(self) -> list[MatchRecord]:
        """Replace the collection with the default seed and show its first match."""
        defaults = create_default_matches(self.store.registry)
        self.store.save(defaults)
        self.store.clear_index()
        logger.info("matches_reset", count=len(defaults))
        return defaults
