"""Validation of untrusted match payloads.

Everything read from the durable store or the remote feed passes through
here before it reaches the working collection. Checks return a tagged
``Checked`` result instead of raising; collection-level helpers drop
invalid items silently, one record or nested entry at a time.
"""

import math
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from matchboard.catalog.clubs import ClubRegistry, League
from matchboard.common.logging import get_logger
from matchboard.common.time_utils import format_instant, now_millis, parse_instant
from matchboard.presentation.models import (
    MatchRecord,
    PredictionEntry,
    PredictionUser,
    RecentMatchStat,
    RemoteMatchRecord,
    StatValue,
)

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Checked(Generic[T]):
    """Outcome of checking one field or record."""

    value: T | None = None
    reason: str | None = None

    @classmethod
    def valid(cls, value: T) -> "Checked[T]":
        return cls(value=value)

    @classmethod
    def invalid(cls, reason: str) -> "Checked[T]":
        return cls(reason=reason)

    @property
    def ok(self) -> bool:
        return self.reason is None

    def unwrap_or(self, default: T) -> T:
        """Value when valid, otherwise ``default``."""
        if self.ok and self.value is not None:
            return self.value
        return default


def generate_match_id() -> str:
    """Opaque id for an operator-created record."""
    return str(uuid.uuid4())


# --- Scalar coercion ---


def to_number(value: Any) -> float | None:
    """Coerce a JSON scalar to a finite number.

    Accepts ints, floats and numeric strings; booleans, None, non-finite
    values and anything else yield None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return float(value)
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def round_half_up(number: float) -> int:
    return math.floor(number + 0.5)


def clamp_probability(value: Any) -> int:
    """Probability percentage as an int in [0, 100]; unusable input is 0."""
    number = to_number(value)
    if number is None:
        return 0
    return max(0, min(100, round_half_up(number)))


def optional_text(value: Any) -> str | None:
    """Trimmed string, or None when blank or not a string."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text or None


def optional_number(value: Any) -> float | None:
    """Finite number passed through unchanged, numeric strings converted."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value if math.isfinite(value) else None
    return to_number(value)


def _to_int(value: Any) -> int | None:
    number = to_number(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


# --- Field checks ---


def check_league(value: Any) -> Checked[League]:
    league = League.from_value(value)
    if league is None:
        return Checked.invalid(f"unknown league {value!r}")
    return Checked.valid(league)


def check_club(value: Any) -> Checked[str]:
    slug = optional_text(value)
    if slug is None:
        return Checked.invalid("club must be a non-empty string")
    return Checked.valid(slug)


def check_kickoff(value: Any) -> Checked[str]:
    """Kickoff normalized to the canonical timestamp string."""
    if not isinstance(value, str):
        return Checked.invalid("kickoff must be a string")
    parsed = parse_instant(value)
    if parsed is None:
        return Checked.invalid(f"unparsable kickoff {value!r}")
    return Checked.valid(format_instant(parsed))


def check_probability(value: Any) -> Checked[int]:
    """Probability that must be present; clamped into [0, 100]."""
    if to_number(value) is None:
        return Checked.invalid("probability missing or not finite")
    return Checked.valid(clamp_probability(value))


def check_prediction_user(value: Any) -> Checked[PredictionUser]:
    if not isinstance(value, Mapping):
        return Checked.invalid("user must be an object")
    user = PredictionUser(
        nickname=optional_text(value.get("nickname")),
        username=optional_text(value.get("username")),
        first_name=optional_text(value.get("first_name")),
        last_name=optional_text(value.get("last_name")),
    )
    if not user.is_known:
        return Checked.invalid("user has no identifying field")
    return Checked.valid(user)


def check_prediction(value: Any) -> Checked[PredictionEntry]:
    if not isinstance(value, Mapping):
        return Checked.invalid("prediction must be an object")
    home_pred = _to_int(value.get("home_pred"))
    away_pred = _to_int(value.get("away_pred"))
    if home_pred is None or away_pred is None:
        return Checked.invalid("prediction scores must be integers")
    return Checked.valid(
        PredictionEntry(
            home_pred=home_pred,
            away_pred=away_pred,
            points=optional_number(value.get("points")),
            user=check_prediction_user(value.get("user")).value,
        )
    )


def _stat_value(value: Any) -> StatValue:
    if isinstance(value, str):
        return value.strip() or None
    return optional_number(value)


def check_recent_stat(value: Any) -> Checked[RecentMatchStat]:
    if not isinstance(value, Mapping):
        return Checked.invalid("stat must be an object")

    raw_id = value.get("id")
    if isinstance(raw_id, int) and not isinstance(raw_id, bool):
        stat_id: str | None = str(raw_id)
    else:
        stat_id = optional_text(raw_id)
    match_date = optional_text(value.get("match_date"))
    if stat_id is None or match_date is None:
        return Checked.invalid("stat requires id and match_date")

    is_home = value.get("is_home")
    return Checked.valid(
        RecentMatchStat(
            id=stat_id,
            match_date=match_date,
            team_name=optional_text(value.get("team_name")) or "",
            opponent_name=optional_text(value.get("opponent_name")) or "",
            is_home=is_home if isinstance(is_home, bool) else None,
            team_goals=_stat_value(value.get("team_goals")),
            opponent_goals=_stat_value(value.get("opponent_goals")),
            avg_rating=_stat_value(value.get("avg_rating")),
        )
    )


def check_items(value: Any, check: Callable[[Any], Checked[T]]) -> list[T]:
    """Keep the items of a list that pass ``check``; non-lists yield []."""
    if not isinstance(value, (list, tuple)):
        return []
    items: list[T] = []
    for item in value:
        result = check(item)
        if result.ok and result.value is not None:
            items.append(result.value)
    return items


def _optional_items(value: Any, check: Callable[[Any], Checked[T]]) -> list[T] | None:
    if not isinstance(value, (list, tuple)):
        return None
    return check_items(value, check)


# --- Record checks ---


def check_match(value: Any, registry: ClubRegistry) -> Checked[MatchRecord]:
    """Validate one stored match payload."""
    if not isinstance(value, Mapping):
        return Checked.invalid("record must be an object")

    home_league = check_league(value.get("homeLeague"))
    away_league = check_league(value.get("awayLeague"))
    home_club = check_club(value.get("homeClub"))
    away_club = check_club(value.get("awayClub"))
    kickoff = check_kickoff(value.get("kickoff"))
    if (
        home_league.value is None
        or away_league.value is None
        or home_club.value is None
        or away_club.value is None
        or kickoff.value is None
    ):
        checks = (home_league, away_league, home_club, away_club, kickoff)
        reason = next((r.reason for r in checks if r.reason), None)
        return Checked.invalid(reason or "invalid field")

    created_at = to_number(value.get("createdAt"))
    return Checked.valid(
        MatchRecord(
            id=optional_text(value.get("id")) or generate_match_id(),
            home_league=home_league.value,
            away_league=away_league.value,
            home_club=home_club.value,
            away_club=away_club.value,
            home_team=optional_text(value.get("homeTeam"))
            or registry.format_club_name(home_club.value),
            away_team=optional_text(value.get("awayTeam"))
            or registry.format_club_name(away_club.value),
            kickoff=kickoff.value,
            home_probability=clamp_probability(value.get("homeProbability")),
            draw_probability=clamp_probability(value.get("drawProbability")),
            away_probability=clamp_probability(value.get("awayProbability")),
            note=optional_text(value.get("note")),
            created_at=int(created_at) if created_at is not None else now_millis(),
            venue_city=optional_text(value.get("venueCity")),
            venue_name=optional_text(value.get("venueName")),
            rain_probability=optional_number(value.get("rainProbability")),
            weather_condition=optional_text(value.get("weatherCondition")),
            weather_temp_c=optional_number(value.get("weatherTempC")),
            weather_timezone=optional_text(value.get("weatherTimezone")),
            predictions=check_items(value.get("predictions"), check_prediction),
            home_recent_matches=check_items(
                value.get("homeRecentMatches"), check_recent_stat
            ),
            away_recent_matches=check_items(
                value.get("awayRecentMatches"), check_recent_stat
            ),
        )
    )


def sanitize_collection(raw: Any, registry: ClubRegistry) -> list[MatchRecord]:
    """Turn an untrusted payload into a list of valid match records.

    Non-sequence input yields an empty list. Invalid elements, and elements
    repeating an id already seen, are dropped.

    Args:
        raw: Decoded payload, usually parsed JSON.
        registry: Club lookup used for display-name defaults.

    Returns:
        Valid records in input order.
    """
    if not isinstance(raw, (list, tuple)):
        if raw is not None:
            logger.debug("match_collection_rejected", payload_type=type(raw).__name__)
        return []

    records: list[MatchRecord] = []
    seen_ids: set[str] = set()
    for index, item in enumerate(raw):
        result = check_match(item, registry)
        if not result.ok or result.value is None:
            logger.debug("match_record_dropped", index=index, reason=result.reason)
            continue
        record = result.value
        if record.id in seen_ids:
            logger.debug("match_record_dropped", index=index, reason="duplicate id")
            continue
        seen_ids.add(record.id)
        records.append(record)
    return records


def parse_remote_match(value: Any) -> Checked[RemoteMatchRecord]:
    """Check one remote feed object field by field.

    Only the numeric id is mandatory; every other unusable field becomes None.
    """
    if not isinstance(value, Mapping):
        return Checked.invalid("remote match must be an object")
    remote_id = _to_int(value.get("id"))
    if remote_id is None:
        return Checked.invalid(f"remote match id {value.get('id')!r} is not an integer")

    return Checked.valid(
        RemoteMatchRecord(
            id=remote_id,
            home_team=optional_text(value.get("home_team")),
            away_team=optional_text(value.get("away_team")),
            home_club_id=optional_text(value.get("home_club_id")),
            away_club_id=optional_text(value.get("away_club_id")),
            league_id=optional_text(value.get("league_id")),
            kickoff_at=check_kickoff(value.get("kickoff_at")).value,
            home_probability=check_probability(value.get("home_probability")).value,
            draw_probability=check_probability(value.get("draw_probability")).value,
            away_probability=check_probability(value.get("away_probability")).value,
            venue_name=optional_text(value.get("venue_name")),
            venue_city=optional_text(value.get("venue_city")),
            rain_probability=optional_number(value.get("rain_probability")),
            weather_condition=optional_text(value.get("weather_condition")),
            weather_temp_c=optional_number(value.get("weather_temp_c")),
            weather_timezone=optional_text(value.get("weather_timezone")),
            predictions=_optional_items(value.get("predictions"), check_prediction),
            home_recent_matches=_optional_items(
                value.get("home_recent_matches"), check_recent_stat
            ),
            away_recent_matches=_optional_items(
                value.get("away_recent_matches"), check_recent_stat
            ),
        )
    )


def parse_remote_matches(raw: Any) -> list[RemoteMatchRecord]:
    """Check a list of remote feed objects, dropping unusable ones."""
    if not isinstance(raw, (list, tuple)):
        return []
    records: list[RemoteMatchRecord] = []
    for index, item in enumerate(raw):
        result = parse_remote_match(item)
        if not result.ok or result.value is None:
            logger.debug("remote_match_dropped", index=index, reason=result.reason)
            continue
        records.append(result.value)
    return records
