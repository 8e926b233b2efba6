"""Read-only reference data supplied by the roster and club directory."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from .club import ClubIdentity

BirthDate = Union[dt.date, str, None]


class Gender(str, Enum):
    MEN = "men"
    WOMEN = "women"
    MIXED = "mixed"


_GENDER_ALIASES = {
    "women": Gender.WOMEN,
    "woman": Gender.WOMEN,
    "female": Gender.WOMEN,
    "f": Gender.WOMEN,
    "w": Gender.WOMEN,
    "men": Gender.MEN,
    "man": Gender.MEN,
    "male": Gender.MEN,
    "m": Gender.MEN,
    "mixed": Gender.MIXED,
    "mix": Gender.MIXED,
}


def normalize_gender(value: object) -> Optional[Gender]:
    if value is None:
        return None
    if isinstance(value, Gender):
        return value
    return _GENDER_ALIASES.get(str(value).strip().lower())


class Discipline(str, Enum):
    CLASSIC = "classic"
    COASTAL = "coastal"
    BEACH = "beach"
    INDOOR = "indoor"


# Beach and indoor events are time trials or ergometer fields, hence the
# much larger "lane" counts.
LANE_LIMITS = {
    Discipline.CLASSIC: 8,
    Discipline.COASTAL: 20,
    Discipline.BEACH: 100,
    Discipline.INDOOR: 100,
}
DEFAULT_MAX_LANES = 8


def max_lanes_for_discipline(discipline: Union[Discipline, str, None]) -> int:
    if isinstance(discipline, Discipline):
        return LANE_LIMITS[discipline]
    try:
        return LANE_LIMITS[Discipline((discipline or "").strip().lower())]
    except ValueError:
        return DEFAULT_MAX_LANES


class WeightClass(str, Enum):
    OPEN = "open"
    LIGHTWEIGHT = "lightweight"
    PARA = "para"


_SENIOR_ABBREVIATIONS = frozenset({"s", "m", "w", "sm", "sw"})


@dataclass(frozen=True)
class Category:
    category_id: str
    abbreviation: str = ""
    gender: Gender = Gender.MIXED
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    title: str = ""
    senior_like: Optional[bool] = None

    @property
    def is_senior_like(self) -> bool:
        if self.senior_like is not None:
            return self.senior_like
        if "senior" in self.title.lower():
            return True
        return self.abbreviation.strip().lower() in _SENIOR_ABBREVIATIONS

    @property
    def label(self) -> str:
        return self.title or self.abbreviation


@dataclass(frozen=True)
class BoatClass:
    boat_class_id: str
    code: str
    crew_size: int = 1
    weight_class: WeightClass = WeightClass.OPEN
    discipline: Discipline = Discipline.CLASSIC

    def __post_init__(self) -> None:
        if self.crew_size < 1:
            raise ValueError("crew_size must be at least 1")

    @property
    def is_lightweight(self) -> bool:
        return self.weight_class == WeightClass.LIGHTWEIGHT


@dataclass(frozen=True)
class Membership:
    club: Optional[ClubIdentity]
    status: str = "active"
    season: Optional[str] = None


@dataclass(frozen=True)
class Athlete:
    athlete_id: str
    first_name: str = ""
    last_name: str = ""
    birth_date: BirthDate = None
    gender: Optional[Gender] = None
    is_junior: bool = False
    is_master: bool = False
    season_category: str = ""
    memberships: Tuple[Membership, ...] = ()
    club: Optional[ClubIdentity] = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


def resolve_active_club(athlete: Optional[Athlete], season: object = None) -> Optional[ClubIdentity]:
    """Pick the club an athlete represents.

    Active memberships win, preferring proper clubs over other kinds (e.g.
    promotion centres); then a membership for ``season``, any membership at
    all, and finally the athlete's own club reference.
    """

    if athlete is None:
        return None
    memberships = [m for m in athlete.memberships if m.club is not None]

    active = [m for m in memberships if m.status == "active"]
    for membership in active:
        if membership.club.kind == "club":
            return membership.club
    if active:
        return active[0].club

    if season is not None:
        for membership in memberships:
            if membership.season is not None and str(membership.season).strip() == str(season).strip():
                return membership.club

    if memberships:
        return memberships[0].club
    return athlete.club
