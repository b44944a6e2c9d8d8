"""Data types for presentation match records."""

from dataclasses import dataclass, field
from typing import Any

from matchboard.catalog.clubs import League

# Id prefix of records that came from the remote feed
REMOTE_ID_PREFIX = "match-"
# Id prefix of records produced by the default seed
DEFAULT_ID_PREFIX = "default-"

StatValue = int | float | str | None


def remote_record_id(remote_id: int) -> str:
    """Canonical local id for a remote match id."""
    return f"{REMOTE_ID_PREFIX}{remote_id}"


def is_remote_id(record_id: str) -> bool:
    """Check if an id belongs to the remote namespace."""
    return record_id.startswith(REMOTE_ID_PREFIX)


@dataclass(frozen=True)
class PredictionUser:
    """Identity attached to a prediction entry."""

    nickname: str | None = None
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @property
    def is_known(self) -> bool:
        """At least one identifying field is present."""
        return any((self.nickname, self.username, self.first_name, self.last_name))

    @property
    def display_name(self) -> str | None:
        """Best available name: nickname, then username, then full name."""
        if self.nickname:
            return self.nickname
        if self.username:
            return self.username
        full_name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full_name or None

    def to_dict(self) -> dict[str, Any]:
        return {
            "nickname": self.nickname,
            "username": self.username,
            "first_name": self.first_name,
            "last_name": self.last_name,
        }


@dataclass(frozen=True)
class PredictionEntry:
    """A user's score prediction for a match."""

    home_pred: int
    away_pred: int
    points: float | None = None
    user: PredictionUser | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "home_pred": self.home_pred,
            "away_pred": self.away_pred,
            "points": self.points,
            "user": self.user.to_dict() if self.user else None,
        }


@dataclass(frozen=True)
class RecentMatchStat:
    """One recent result of a team, shown as form next to the fixture."""

    id: str
    match_date: str
    team_name: str = ""
    opponent_name: str = ""
    is_home: bool | None = None
    team_goals: StatValue = None
    opponent_goals: StatValue = None
    avg_rating: StatValue = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "match_date": self.match_date,
            "team_name": self.team_name,
            "opponent_name": self.opponent_name,
            "is_home": self.is_home,
            "team_goals": self.team_goals,
            "opponent_goals": self.opponent_goals,
            "avg_rating": self.avg_rating,
        }


@dataclass
class MatchRecord:
    """A validated match shown on the presentation screen."""

    id: str
    home_league: League
    away_league: League
    home_club: str
    away_club: str
    home_team: str
    away_team: str
    kickoff: str  # Canonical UTC timestamp, see format_instant
    home_probability: int
    draw_probability: int
    away_probability: int
    created_at: int  # Epoch milliseconds
    note: str | None = None
    venue_city: str | None = None
    venue_name: str | None = None
    rain_probability: float | None = None
    weather_condition: str | None = None
    weather_temp_c: float | None = None
    weather_timezone: str | None = None
    predictions: list[PredictionEntry] = field(default_factory=list)
    home_recent_matches: list[RecentMatchStat] = field(default_factory=list)
    away_recent_matches: list[RecentMatchStat] = field(default_factory=list)

    @property
    def is_remote(self) -> bool:
        return is_remote_id(self.id)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored JSON shape."""
        return {
            "id": self.id,
            "homeLeague": self.home_league.value,
            "awayLeague": self.away_league.value,
            "homeClub": self.home_club,
            "awayClub": self.away_club,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "kickoff": self.kickoff,
            "homeProbability": self.home_probability,
            "drawProbability": self.draw_probability,
            "awayProbability": self.away_probability,
            "note": self.note,
            "createdAt": self.created_at,
            "venueCity": self.venue_city,
            "venueName": self.venue_name,
            "rainProbability": self.rain_probability,
            "weatherCondition": self.weather_condition,
            "weatherTempC": self.weather_temp_c,
            "weatherTimezone": self.weather_timezone,
            "predictions": [entry.to_dict() for entry in self.predictions],
            "homeRecentMatches": [stat.to_dict() for stat in self.home_recent_matches],
            "awayRecentMatches": [stat.to_dict() for stat in self.away_recent_matches],
        }


@dataclass(frozen=True)
class RemoteMatchRecord:
    """A match from the remote feed after per-field checking.

    Every field except ``id`` may be None when the feed omitted it or sent
    something unusable.
    """

    id: int
    home_team: str | None = None
    away_team: str | None = None
    home_club_id: str | None = None
    away_club_id: str | None = None
    league_id: str | None = None
    kickoff_at: str | None = None  # Canonical form when present
    home_probability: int | None = None
    draw_probability: int | None = None
    away_probability: int | None = None
    venue_name: str | None = None
    venue_city: str | None = None
    rain_probability: float | None = None
    weather_condition: str | None = None
    weather_temp_c: float | None = None
    weather_timezone: str | None = None
    predictions: list[PredictionEntry] | None = None
    home_recent_matches: list[RecentMatchStat] | None = None
    away_recent_matches: list[RecentMatchStat] | None = None

    @property
    def local_id(self) -> str:
        return remote_record_id(self.id)
