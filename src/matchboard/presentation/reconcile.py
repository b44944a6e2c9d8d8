"""Merge a remote snapshot into the local match collection.

Precedence, applied to each field on its own:

1. a usable value from the remote payload,
2. otherwise the value of the previous local record with the same id,
3. otherwise a fallback constant.

Remote-derived records come first, in fetch order. Every other existing
record is kept unchanged after them, in its original order, so operator
edits to local-only records and remote records missing from this fetch
survive.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from matchboard.catalog.clubs import ClubRegistry, League
from matchboard.common.logging import get_logger
from matchboard.common.time_utils import now_millis
from matchboard.presentation.models import MatchRecord, RemoteMatchRecord

logger = get_logger(__name__)

T = TypeVar("T")

# Home / draw / away used when neither side has a probability
DEFAULT_PROBABILITIES: tuple[int, int, int] = (51, 25, 24)
UNKNOWN_CLUB = "unknown"


def _first(*candidates: T | None) -> T | None:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


@dataclass(frozen=True)
class Reconciler:
    """Field-level merge of remote snapshots under a fixed precedence."""

    registry: ClubRegistry
    default_probabilities: tuple[int, int, int] = DEFAULT_PROBABILITIES

    def merge(
        self,
        existing: Sequence[MatchRecord],
        remote: Iterable[RemoteMatchRecord],
        now_ms: int | None = None,
    ) -> list[MatchRecord]:
        """Produce the merged collection.

        Args:
            existing: Current validated local collection.
            remote: Records returned by the remote fetch, in fetch order.
            now_ms: Creation time for records seen for the first time.

        Returns:
            New list; the inputs are not modified.
        """
        now_ms = now_millis() if now_ms is None else now_ms
        by_id = {record.id: record for record in reversed(existing)}

        merged: dict[str, MatchRecord] = {}
        for item in remote:
            local_id = item.local_id
            record = self.merge_record(item, by_id.get(local_id), now_ms)
            if record is None:
                logger.warning("remote_match_skipped", remote_id=item.id, reason="no kickoff")
                continue
            if local_id in merged:
                logger.debug("remote_match_duplicate", remote_id=item.id)
            # Re-assigning an existing key keeps the first-seen position
            merged[local_id] = record

        result = list(merged.values())
        kept_ids = set(merged)
        for record in existing:
            if record.id in kept_ids:
                continue
            kept_ids.add(record.id)
            result.append(record)

        logger.debug(
            "presentation_merged",
            remote_count=len(merged),
            kept_count=len(result) - len(merged),
        )
        return result

    def merge_record(
        self,
        remote: RemoteMatchRecord,
        previous: MatchRecord | None,
        now_ms: int,
    ) -> MatchRecord | None:
        """Merge one remote record onto its previous local version.

        Returns None when no kickoff is known from either side.
        """
        kickoff = _first(remote.kickoff_at, previous.kickoff if previous else None)
        if kickoff is None:
            return None

        home_club = self._resolve_club(
            remote.home_club_id, remote.home_team, previous.home_club if previous else None
        )
        away_club = self._resolve_club(
            remote.away_club_id, remote.away_team, previous.away_club if previous else None
        )
        remote_league = League.from_value(remote.league_id)
        home_default, draw_default, away_default = self.default_probabilities

        return MatchRecord(
            id=remote.local_id,
            home_league=self._resolve_league(
                remote_league, previous.home_league if previous else None, home_club
            ),
            away_league=self._resolve_league(
                remote_league, previous.away_league if previous else None, away_club
            ),
            home_club=home_club,
            away_club=away_club,
            home_team=_first(remote.home_team, previous.home_team if previous else None)
            or self.registry.format_club_name(home_club),
            away_team=_first(remote.away_team, previous.away_team if previous else None)
            or self.registry.format_club_name(away_club),
            kickoff=kickoff,
            home_probability=_first(
                remote.home_probability,
                previous.home_probability if previous else None,
                home_default,
            ),
            draw_probability=_first(
                remote.draw_probability,
                previous.draw_probability if previous else None,
                draw_default,
            ),
            away_probability=_first(
                remote.away_probability,
                previous.away_probability if previous else None,
                away_default,
            ),
            note=previous.note if previous else None,
            created_at=previous.created_at if previous else now_ms,
            venue_city=_first(remote.venue_city, previous.venue_city if previous else None),
            venue_name=_first(remote.venue_name, previous.venue_name if previous else None),
            rain_probability=_first(
                remote.rain_probability, previous.rain_probability if previous else None
            ),
            weather_condition=_first(
                remote.weather_condition, previous.weather_condition if previous else None
            ),
            weather_temp_c=_first(
                remote.weather_temp_c, previous.weather_temp_c if previous else None
            ),
            weather_timezone=_first(
                remote.weather_timezone, previous.weather_timezone if previous else None
            ),
            predictions=list(
                _first(remote.predictions, previous.predictions if previous else None) or []
            ),
            home_recent_matches=list(
                _first(
                    remote.home_recent_matches,
                    previous.home_recent_matches if previous else None,
                )
                or []
            ),
            away_recent_matches=list(
                _first(
                    remote.away_recent_matches,
                    previous.away_recent_matches if previous else None,
                )
                or []
            ),
        )

    def _resolve_club(
        self, club_id: str | None, team_name: str | None, previous: str | None
    ) -> str:
        remote_slug = (
            self.registry.normalize_slug(club_id)
            or self.registry.derive_slug(team_name)
            or self.registry.normalize_slug(team_name)
        )
        return _first(remote_slug, previous) or UNKNOWN_CLUB

    def _resolve_league(
        self, remote: League | None, previous: League | None, club: str
    ) -> League:
        # Clubs outside the catalog end on the first declared league
        return (
            _first(remote, previous, self.registry.find_league(club))
            or League.default()
        )


def merge_matches(
    existing: Sequence[MatchRecord],
    remote: Iterable[RemoteMatchRecord],
    registry: ClubRegistry,
    now_ms: int | None = None,
) -> list[MatchRecord]:
    """Merge ``remote`` into ``existing``; see ``Reconciler.merge``."""
    return Reconciler(registry).merge(existing, remote, now_ms)
