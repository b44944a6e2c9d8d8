"""Static league and club catalog with an immutable lookup registry."""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType


class League(str, Enum):
    """Closed set of leagues a match record may belong to.

    Declaration order matters: the first member is the last-resort fallback
    when no league can be resolved for a club.
    """

    UKRAINIAN_PREMIER_LEAGUE = "ukrainian-premier-league"
    ENGLISH_PREMIER_LEAGUE = "english-premier-league"
    LA_LIGA = "la-liga"
    SERIE_A = "serie-a"
    BUNDESLIGA = "bundesliga"
    LIGUE_1 = "ligue-1"

    @classmethod
    def from_value(cls, value: object) -> "League | None":
        """Get league from its identifier, None when not a member."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None

    @classmethod
    def default(cls) -> "League":
        """First declared league."""
        return next(iter(cls))


CLUBS_BY_LEAGUE: dict[League, tuple[str, ...]] = {
    League.UKRAINIAN_PREMIER_LEAGUE: (
        "dnipro", "dynamo-kyiv", "inhulets-petrove", "karpaty", "kolos-kovalivka",
        "kryvbas", "lnz-cherkasy", "obolon", "olexandriya", "polissya", "rukh-lviv",
        "shakhtar", "veres", "vorskla-poltava", "zorya-luhansk",
    ),
    League.ENGLISH_PREMIER_LEAGUE: (
        "arsenal", "aston-villa", "bournemouth", "brentford", "brighton", "burnley",
        "chelsea", "crystal-palace", "everton", "fulham", "ipswich", "leeds-united",
        "leicester", "liverpool", "manchester-city", "manchester-united", "newcastle",
        "nottingham-forest", "southampton", "sunderland", "tottenham", "west-ham",
        "wolves",
    ),
    League.LA_LIGA: (
        "athletic-club", "atletico-madrid", "barcelona", "celta", "deportivo",
        "espanyol", "getafe", "girona", "las-palmas", "leganes", "mallorca",
        "osasuna", "rayo-vallecano", "real-betis", "real-madrid", "real-sociedad",
        "sevilla", "valencia", "valladolid", "villarreal",
    ),
    League.SERIE_A: (
        "atalanta", "bologna", "cagliari", "como-1907", "empoli", "fiorentina",
        "genoa", "inter", "juventus", "lazio", "lecce", "milan", "monza", "napoli",
        "parma", "roma", "torino", "udinese", "venezia", "verona",
    ),
    League.BUNDESLIGA: (
        "augsburg", "bayer-leverkusen", "bayern-munchen", "borussia-dortmund",
        "borussia-monchengladbach", "eintracht-frankfurt", "fc-heidenheim",
        "freiburg", "hoffenheim", "holstein-kiel", "mainz-05", "rb-leipzig",
        "st-pauli", "union-berlin", "vfb-stuttgart", "vfl-bochum", "werder-bremen",
        "wolfsburg",
    ),
    League.LIGUE_1: (
        "angers", "as-monaco", "as-saint-etienne", "auxerre", "brest", "le-havre-ac",
        "lille", "lyon", "marseille", "montpellier", "nantes", "nice",
        "paris-saint-germain", "rc-lens", "rc-strasbourg-alsace", "rennes",
        "stade-de-reims", "toulouse",
    ),
}

# Feed spellings that differ from our slugs
SLUG_ALIASES: dict[str, str] = {
    "acf-fiorentina": "fiorentina",
    "ac-fiorentina": "fiorentina",
    "newcastle-united": "newcastle",
    "arsenal-fc": "arsenal",
}

CLUB_NAME_OVERRIDES: dict[str, str] = {
    "as-monaco": "AS Monaco",
    "as-saint-etienne": "AS Saint-Etienne",
    "fc-heidenheim": "FC Heidenheim",
    "le-havre-ac": "Le Havre AC",
    "mainz-05": "Mainz 05",
    "paris-saint-germain": "Paris Saint-Germain",
    "rc-lens": "RC Lens",
    "rc-strasbourg-alsace": "RC Strasbourg Alsace",
    "rb-leipzig": "RB Leipzig",
    "st-pauli": "St. Pauli",
    "vfb-stuttgart": "VfB Stuttgart",
    "vfl-bochum": "VfL Bochum",
    "lnz-cherkasy": "LNZ Cherkasy",
    "west-ham": "West Ham",
    "nottingham-forest": "Nottingham Forest",
}

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class ClubRegistry:
    """Read-only club lookup.

    Build once at startup with ``ClubRegistry.build()`` and pass the instance
    to the validator and reconciler.
    """

    leagues_by_club: Mapping[str, League]
    aliases: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    name_overrides: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def build(
        cls,
        clubs_by_league: Mapping[League, Iterable[str]] | None = None,
        aliases: Mapping[str, str] | None = None,
        name_overrides: Mapping[str, str] | None = None,
    ) -> "ClubRegistry":
        """Build a registry, defaulting to the bundled catalog."""
        clubs_by_league = CLUBS_BY_LEAGUE if clubs_by_league is None else clubs_by_league
        index: dict[str, League] = {}
        for league, clubs in clubs_by_league.items():
            for slug in clubs:
                # First league listing a club owns it
                index.setdefault(slug, league)
        return cls(
            leagues_by_club=MappingProxyType(index),
            aliases=MappingProxyType(dict(SLUG_ALIASES if aliases is None else aliases)),
            name_overrides=MappingProxyType(
                dict(CLUB_NAME_OVERRIDES if name_overrides is None else name_overrides)
            ),
        )

    def __contains__(self, slug: object) -> bool:
        return slug in self.leagues_by_club

    def __len__(self) -> int:
        return len(self.leagues_by_club)

    def find_league(self, slug: str | None) -> League | None:
        """League a club is registered under."""
        if not slug:
            return None
        return self.leagues_by_club.get(slug)

    def normalize_slug(self, value: str | None) -> str | None:
        """Turn a free-form team name or id into a slug, applying aliases."""
        if not value:
            return None
        normalized = _NON_SLUG_CHARS.sub("-", value.lower().strip()).strip("-")
        if not normalized:
            return None
        return self.aliases.get(normalized, normalized)

    def derive_slug(self, name: str | None) -> str | None:
        """Find the registered club a display name refers to.

        Tries the whole normalized name first, then every contiguous run of
        its words, longest first, e.g. ``"FC Barcelona B"`` -> ``barcelona``.
        """
        normalized = self.normalize_slug(name)
        if not normalized:
            return None
        if normalized in self.leagues_by_club:
            return normalized

        segments = [part for part in normalized.split("-") if part]
        for length in range(len(segments), 0, -1):
            for start in range(len(segments) - length + 1):
                candidate = "-".join(segments[start : start + length])
                if candidate in self.leagues_by_club:
                    return candidate
        return None

    def format_club_name(self, slug: str) -> str:
        """Human-readable club name for a slug."""
        override = self.name_overrides.get(slug)
        if override:
            return override
        return " ".join(part[:1].upper() + part[1:] for part in slug.split("-") if part)
