from __future__ import annotations

import datetime as dt
import logging
import random
import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .athlete import BoatClass, Category, Discipline, Gender, max_lanes_for_discipline, normalize_gender
from .config import EngineSettings, get_settings
from .entry import Entry
from .errors import EngineError, ErrorKind
from .race import Lane, Race, RaceStatus

logger = logging.getLogger(__name__)


class Strategy(str, Enum):
    SEEDED = "seeded"
    RANDOM = "random"


_LEGACY_LIGHTWEIGHT = re.compile(r"^L[MW]?(?=\d)", re.IGNORECASE)


def race_code(category: Optional[Category], boat_class: Optional[BoatClass]) -> str:
    """Event code such as ``M1x``, ``LW2x``, ``JW4x``, ``BLM1x`` or ``CM1x``.

    Seniors get gender + boat; other categories are prefixed with their
    abbreviation. Coastal/beach codes (``C...``) already carry the gender.
    """

    boat_code = boat_class.code if boat_class and boat_class.code else "1X"
    abbreviation = category.abbreviation if category else ""
    gender = normalize_gender(category.gender) if category else None

    legacy = _LEGACY_LIGHTWEIGHT.match(boat_code)
    if legacy:
        boat_code = boat_code[legacy.end():]
    lightweight = bool(legacy) or bool(boat_class and boat_class.is_lightweight)
    coastal = boat_code[:1].upper() == "C"

    if gender == Gender.WOMEN:
        gender_prefix = "W"
    elif gender == Gender.MEN:
        gender_prefix = "M"
    else:
        gender_prefix = "Mix"
    light = "L" if lightweight else ""

    if category is not None and category.is_senior_like:
        if coastal:
            return f"{light}{boat_code}"
        return f"{light}{gender_prefix}{boat_code}"

    if coastal:
        return f"{abbreviation}{light}{boat_code}"

    for suffix in ("Mix", "M", "W"):
        if abbreviation.endswith(suffix) and len(abbreviation) > len(suffix):
            if lightweight:
                base = abbreviation[: -len(suffix)]
                return f"{base}L{suffix}{boat_code}"
            return f"{abbreviation}{boat_code}"
    return f"{abbreviation}{light}{gender_prefix}{boat_code}"


def chunk(items: Sequence, size: int) -> List[list]:
    return [list(items[index : index + size]) for index in range(0, len(items), size)]


@dataclass
class DrawResult:
    races: List[Race] = field(default_factory=list)
    replaced: List[Race] = field(default_factory=list)
    kept: List[Race] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class DrawPartitioner:
    """Turns an ordered entry list into races with lanes and a schedule."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        settings: Optional[EngineSettings] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.settings = settings or get_settings()
        self.id_factory = id_factory or (lambda: uuid.uuid4().hex)

    def draw(
        self,
        entries: Sequence[Entry],
        category: Category,
        journey_index: int,
        lanes_per_race: int,
        strategy: Union[Strategy, str] = Strategy.RANDOM,
        boat_class: Optional[BoatClass] = None,
        discipline: Union[Discipline, str, None] = None,
        existing_races: Sequence[Race] = (),
        overwrite_existing: bool = True,
        start_race_number: Optional[int] = None,
        start_time: Optional[dt.datetime] = None,
        interval_minutes: Optional[int] = None,
        session_label: Optional[str] = None,
        race_prefix: Optional[str] = None,
    ) -> DrawResult:
        strategy = Strategy(strategy)
        discipline = discipline or (boat_class.discipline if boat_class else self.settings.default_discipline)
        max_lanes = max_lanes_for_discipline(discipline)
        if not isinstance(lanes_per_race, int) or not 1 <= lanes_per_race <= max_lanes:
            raise EngineError(
                ErrorKind.INVALID_LANE_COUNT,
                f"lanes per race must be between 1 and {max_lanes} for {discipline}",
                lanes_per_race=lanes_per_race,
            )
        if journey_index < 1:
            raise EngineError(ErrorKind.INVALID_JOURNEY, "Journey index must be greater than zero")

        drawable = self._drawable_entries(entries, boat_class)
        seeded = [(entry, entry.seed if entry.seed is not None else index + 1) for index, entry in enumerate(drawable)]
        if strategy == Strategy.SEEDED:
            seeded.sort(key=lambda pair: pair[1])

        result = DrawResult()
        boat_class_id = boat_class.boat_class_id if boat_class else None
        for race in existing_races:
            if overwrite_existing and race.matches_slot(category.category_id, journey_index, boat_class_id):
                result.replaced.append(race)
                if race.has_results:
                    message = f"Race {race.name or race.race_id} has recorded results and will be replaced"
                    logger.warning(message)
                    result.warnings.append(message)
            else:
                result.kept.append(race)

        first_order = self._first_order(start_race_number, result.kept)
        first_start, interval = self._first_start(start_time, interval_minutes, result.kept)
        prefix = race_prefix or category.abbreviation or category.title or "Race"

        for index, group in enumerate(chunk(seeded, lanes_per_race)):
            # Randomising only permutes lanes; it never moves an entry to another race.
            lane_numbers = list(range(1, len(group) + 1))
            if strategy == Strategy.RANDOM:
                self.rng.shuffle(lane_numbers)
            lanes = [
                self._lane_for(entry, seed, lane_number)
                for (entry, seed), lane_number in zip(group, lane_numbers)
            ]
            race = Race(
                race_id=self.id_factory(),
                category_id=category.category_id,
                boat_class_id=boat_class_id,
                journey_index=journey_index,
                order=None if first_order is None else first_order + index,
                name=f"{prefix} {index + 1}",
                session_label=(session_label or "").strip() or None,
                start_time=None if first_start is None else first_start + dt.timedelta(minutes=index * interval),
                status=RaceStatus.SCHEDULED,
            ).with_lanes(lanes)
            logger.debug("Drew %s with %d lanes", race.name, len(lanes))
            result.races.append(race)

        logger.info(
            "Drew %d entries into %d races for category %s journey %d (%s)",
            len(seeded),
            len(result.races),
            category.category_id,
            journey_index,
            strategy.value,
        )
        return result

    def _drawable_entries(self, entries: Sequence[Entry], boat_class: Optional[BoatClass]) -> List[Entry]:
        active = []
        for entry in entries:
            if not entry.is_active:
                logger.debug("Skipping %s entry %s", entry.status.value, entry.member_ids())
                continue
            active.append(entry)

        if boat_class is None:
            boat_classes = {entry.boat_class_id for entry in active if entry.boat_class_id}
            if len(boat_classes) > 1:
                raise EngineError(
                    ErrorKind.AMBIGUOUS_BOAT_CLASS,
                    "Entries span several boat classes; choose one to draw",
                    boat_classes=sorted(boat_classes),
                )
        else:
            active = [
                entry
                for entry in active
                if entry.boat_class_id in (None, boat_class.boat_class_id)
            ]

        if not active:
            raise EngineError(ErrorKind.NO_ENTRIES, "There are no entries to draw")

        seen: set[str] = set()
        for entry in active:
            if boat_class is not None:
                entry.ensure_crew_size(boat_class)
            for athlete_id in entry.member_ids():
                if athlete_id in seen:
                    raise EngineError(
                        ErrorKind.DUPLICATE_ATHLETE,
                        "Duplicate athlete detected in entries",
                        athlete_id=athlete_id,
                    )
                seen.add(athlete_id)
        return active

    @staticmethod
    def _lane_for(entry: Entry, seed: int, lane_number: int) -> Lane:
        return Lane(
            lane=lane_number,
            athlete_id=None if entry.is_crew else entry.athlete_id,
            crew=tuple(entry.crew_member_ids),
            club=entry.club,
            crew_number=entry.crew_number,
            seed=seed,
            notes=entry.notes,
        )

    @staticmethod
    def _first_order(start_race_number: Optional[int], kept: Sequence[Race]) -> Optional[int]:
        if start_race_number is not None:
            return start_race_number
        orders = [race.order for race in kept if race.order]
        return max(orders) + 1 if orders else None

    def _first_start(
        self,
        start_time: Optional[dt.datetime],
        interval_minutes: Optional[int],
        kept: Sequence[Race],
    ) -> Tuple[Optional[dt.datetime], int]:
        interval = interval_minutes if interval_minutes and interval_minutes > 0 else 0
        if start_time is not None:
            return start_time, interval
        starts = [race.start_time for race in kept if race.start_time is not None]
        if not starts:
            return None, interval
        # Continuing an existing schedule needs a gap between races.
        interval = interval or self.settings.auto_interval_minutes
        return max(starts) + dt.timedelta(minutes=interval), interval
