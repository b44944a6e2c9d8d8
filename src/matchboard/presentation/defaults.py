"""Baseline match collection used when the store holds nothing usable."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from matchboard.catalog.clubs import ClubRegistry, League
from matchboard.common.time_utils import format_instant, to_millis, utc_now
from matchboard.presentation.models import DEFAULT_ID_PREFIX, MatchRecord
from matchboard.presentation.validation import clamp_probability


@dataclass(frozen=True)
class MatchTemplate:
    """A marquee fixture offset from the generation time."""

    home_league: League
    away_league: League
    home_club: str
    away_club: str
    home_probability: int
    draw_probability: int
    away_probability: int
    hours_from_now: float
    note: str | None = None


DEFAULT_TEMPLATES: tuple[MatchTemplate, ...] = (
    MatchTemplate(
        home_league=League.ENGLISH_PREMIER_LEAGUE,
        away_league=League.ENGLISH_PREMIER_LEAGUE,
        home_club="arsenal",
        away_club="chelsea",
        home_probability=62,
        draw_probability=22,
        away_probability=16,
        hours_from_now=2,
        note="Матч дня",
    ),
    MatchTemplate(
        home_league=League.LA_LIGA,
        away_league=League.LA_LIGA,
        home_club="barcelona",
        away_club="real-madrid",
        home_probability=47,
        draw_probability=28,
        away_probability=25,
        hours_from_now=8,
        note="Класико",
    ),
    MatchTemplate(
        home_league=League.SERIE_A,
        away_league=League.SERIE_A,
        home_club="napoli",
        away_club="juventus",
        home_probability=55,
        draw_probability=25,
        away_probability=20,
        hours_from_now=26,
        note="Італійський бій",
    ),
)


def create_default_matches(
    registry: ClubRegistry,
    now: datetime | None = None,
    templates: tuple[MatchTemplate, ...] = DEFAULT_TEMPLATES,
) -> list[MatchRecord]:
    """Build the default collection relative to ``now``.

    Ids are ``default-1``, ``default-2``, ... in template order. Each record's
    ``created_at`` is the generation time plus its position in milliseconds,
    so the seed keeps a stable creation order.
    """
    now = now or utc_now()
    created_base = to_millis(now)

    return [
        MatchRecord(
            id=f"{DEFAULT_ID_PREFIX}{index + 1}",
            home_league=template.home_league,
            away_league=template.away_league,
            home_club=template.home_club,
            away_club=template.away_club,
            home_team=registry.format_club_name(template.home_club),
            away_team=registry.format_club_name(template.away_club),
            kickoff=format_instant(now + timedelta(hours=template.hours_from_now)),
            home_probability=clamp_probability(template.home_probability),
            draw_probability=clamp_probability(template.draw_probability),
            away_probability=clamp_probability(template.away_probability),
            note=template.note,
            created_at=created_base + index,
        )
        for index, template in enumerate(templates)
    ]
