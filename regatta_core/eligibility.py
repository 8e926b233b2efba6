"""Screening of an athlete against a category before it joins a start list.

Every check here is advisory: :func:`check_eligibility` reports what is wrong
and the caller decides whether to block the entry. Age always means age on
December 31 of the season year, the governing-body cutoff.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .athlete import Athlete, BirthDate, Category, Gender, normalize_gender
from .config import get_settings
from .errors import ErrorKind


logger = logging.getLogger(__name__)


def _coerce_birth_date(value: BirthDate) -> Optional[dt.date]:
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return dt.date.fromisoformat(text[:10])
    except ValueError:
        logger.debug("Unparseable birth date %r", value)
        return None


def age_on_season_cutoff(birth_date: BirthDate, season_year: int) -> Optional[int]:
    birth = _coerce_birth_date(birth_date)
    if birth is None:
        return None
    cutoff = dt.date(season_year, 12, 31)
    age = cutoff.year - birth.year
    if (birth.month, birth.day) > (cutoff.month, cutoff.day):
        age -= 1
    return age


@dataclass(frozen=True)
class EligibilityOverrides:
    allow_juniors_in_senior: bool = False
    allow_masters_in_senior: bool = False
    bypass_age_verification: bool = False


@dataclass(frozen=True)
class EligibilityFailure:
    kind: ErrorKind
    message: str


@dataclass
class EligibilityReport:
    athlete_id: str
    category_id: str
    age: Optional[int]
    is_junior: bool
    is_master: bool
    failures: List[EligibilityFailure] = field(default_factory=list)

    @property
    def eligible(self) -> bool:
        return not self.failures

    def kinds(self) -> List[ErrorKind]:
        return [failure.kind for failure in self.failures]


def is_junior(athlete: Athlete) -> bool:
    return athlete.is_junior or "junior" in athlete.season_category.lower()


def is_master(athlete: Athlete, age: Optional[int], master_age: Optional[int] = None) -> bool:
    if athlete.is_master or "master" in athlete.season_category.lower():
        return True
    threshold = get_settings().master_age if master_age is None else master_age
    return age is not None and age >= threshold


def check_eligibility(
    athlete: Athlete,
    category: Category,
    season_year: int,
    overrides: EligibilityOverrides = EligibilityOverrides(),
    master_age: Optional[int] = None,
) -> EligibilityReport:
    age = age_on_season_cutoff(athlete.birth_date, season_year)
    junior = is_junior(athlete)
    master = is_master(athlete, age, master_age)
    report = EligibilityReport(
        athlete_id=athlete.athlete_id,
        category_id=category.category_id,
        age=age,
        is_junior=junior,
        is_master=master,
    )

    senior_exception = category.is_senior_like and (
        (overrides.allow_juniors_in_senior and junior)
        or (overrides.allow_masters_in_senior and master)
    )
    name = athlete.full_name or athlete.athlete_id

    category_gender = normalize_gender(category.gender)
    athlete_gender = normalize_gender(athlete.gender)
    if (
        category_gender is not None
        and category_gender != Gender.MIXED
        and athlete_gender is not None
        and athlete_gender != category_gender
        and not senior_exception
    ):
        label = "Women" if category_gender == Gender.WOMEN else "Men"
        report.failures.append(
            EligibilityFailure(
                ErrorKind.GENDER_MISMATCH,
                f"{name} cannot be added to a {label}'s category",
            )
        )

    if overrides.bypass_age_verification or age is None:
        return report

    if category.min_age is not None and age < category.min_age:
        report.failures.append(
            EligibilityFailure(
                ErrorKind.TOO_YOUNG,
                f"{name} is too young for {category.label} (minimum age: {category.min_age})",
            )
        )
    if category.max_age is not None and age > category.max_age and not senior_exception:
        report.failures.append(
            EligibilityFailure(
                ErrorKind.TOO_OLD,
                f"{name} is too old for {category.label} (maximum age: {category.max_age})",
            )
        )
    return report


def _bounds(category: Category) -> tuple[float, float]:
    low = float("-inf") if category.min_age is None else category.min_age
    high = float("inf") if category.max_age is None else category.max_age
    return low, high


def suggest_category(
    categories: Iterable[Category],
    gender: object,
    age: Optional[int],
) -> Optional[Category]:
    """Pick the season category an athlete of ``gender`` and ``age`` belongs to.

    Among the categories whose age band contains ``age``, the one with the
    highest minimum wins, then the widest maximum, then the alphabetically
    first abbreviation.
    """

    if age is None:
        return None
    athlete_gender = normalize_gender(gender)
    best: Optional[Category] = None
    for category in categories:
        category_gender = normalize_gender(category.gender)
        if (
            category_gender not in (None, Gender.MIXED)
            and athlete_gender is not None
            and category_gender != athlete_gender
        ):
            continue
        low, high = _bounds(category)
        if age < low or age > high:
            continue
        if best is None:
            best = category
            continue
        best_low, best_high = _bounds(best)
        if low > best_low:
            best = category
        elif low == best_low and high > best_high:
            best = category
        elif low == best_low and high == best_high:
            current_label = category.abbreviation or category.title
            best_label = best.abbreviation or best.title
            if current_label < best_label:
                best = category
    return best
