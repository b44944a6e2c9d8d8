"""Static league and club catalog."""

from matchboard.catalog.clubs import (
    CLUBS_BY_LEAGUE,
    ClubRegistry,
    League,
)

__all__ = [
    "CLUBS_BY_LEAGUE",
    "ClubRegistry",
    "League",
]
