from __future__ import annotations

import functools
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .athlete import Athlete, BoatClass, Category, normalize_gender
from .club import ClubIdentity
from .config import get_settings
from .race import Race, RaceStatus, ResultStatus
from .scoring import PointTable


@dataclass
class StandingRow:
    rank: int
    race_id: str
    race_name: str
    journey_index: int
    lane: int
    athlete_id: Optional[str]
    crew: Tuple[str, ...]
    club: Optional[ClubIdentity]
    status: ResultStatus
    elapsed_ms: Optional[int]
    finish_position: Optional[int]


@dataclass
class CategoryStanding:
    category_id: str
    boat_class_id: Optional[str]
    rows: List[StandingRow] = field(default_factory=list)


def _sort_key(row: StandingRow) -> tuple:
    # Untimed lanes go last, then unplaced ones, then lane order.
    return (
        row.elapsed_ms is None,
        row.elapsed_ms or 0,
        row.finish_position is None,
        row.finish_position or 0,
        row.lane,
    )


def category_standings(races: Iterable[Race], depth: Optional[int] = None) -> List[CategoryStanding]:
    """Best performances per (category, boat class) across every race drawn.

    Only ``ok`` results count as timed; each group keeps its first ``depth``
    rows.
    """

    if depth is None:
        depth = get_settings().standings_depth
    groups: Dict[Tuple[str, Optional[str]], List[StandingRow]] = {}
    for race in races:
        rows = groups.setdefault((race.category_id, race.boat_class_id), [])
        for lane in race.lanes:
            if not lane.member_ids():
                continue
            result = lane.result
            status = result.status if result else ResultStatus.OK
            timed = result is not None and status == ResultStatus.OK and result.elapsed_ms is not None
            rows.append(
                StandingRow(
                    rank=0,
                    race_id=race.race_id,
                    race_name=race.name,
                    journey_index=race.journey_index,
                    lane=lane.lane,
                    athlete_id=lane.athlete_id,
                    crew=lane.crew,
                    club=lane.club,
                    status=status,
                    elapsed_ms=result.elapsed_ms if timed else None,
                    finish_position=result.finish_position if result else None,
                )
            )

    standings = []
    for (category_id, boat_class_id), rows in groups.items():
        top = sorted(rows, key=_sort_key)[:depth]
        for rank, row in enumerate(top, start=1):
            row.rank = rank
        standings.append(CategoryStanding(category_id=category_id, boat_class_id=boat_class_id, rows=top))
    return standings


@dataclass
class CombinedTime:
    club: Optional[ClubIdentity]
    category_id: str
    boat_class_id: Optional[str]
    total_ms: int = 0
    race_count: int = 0
    times: List[int] = field(default_factory=list)
    positions: List[Optional[int]] = field(default_factory=list)
    combined_position: int = 0


def _club_key(club: Optional[ClubIdentity]) -> str:
    if club is None:
        return ""
    return (club.club_id or club.code or club.name or "").lower()


def combined_time_ranking(races: Iterable[Race]) -> List[CombinedTime]:
    """Rank crews over several races (e.g. heats) by their summed times.

    Times are added per club within a category and boat class.
    """

    totals: Dict[Tuple[str, str, Optional[str]], CombinedTime] = {}
    for race in races:
        for lane in race.lanes:
            result = lane.result
            if result is None or result.status != ResultStatus.OK or not result.elapsed_ms:
                continue
            key = (_club_key(lane.club), race.category_id, race.boat_class_id)
            entry = totals.get(key)
            if entry is None:
                entry = totals[key] = CombinedTime(
                    club=lane.club,
                    category_id=race.category_id,
                    boat_class_id=race.boat_class_id,
                )
            entry.total_ms += result.elapsed_ms
            entry.race_count += 1
            entry.times.append(result.elapsed_ms)
            entry.positions.append(result.finish_position)

    ranked = sorted(totals.values(), key=lambda item: item.total_ms)
    for position, entry in enumerate(ranked, start=1):
        entry.combined_position = position
    return ranked


class GroupBy(str, Enum):
    GENDER = "gender"
    CATEGORY = "category"
    CATEGORY_GENDER = "category_gender"


class PointMode(str, Enum):
    SKIFF_ATHLETE = "skiff_athlete"  # every lane scores its (first) athlete
    CREW_CLUB = "crew_club"  # every lane scores its club
    MIXED = "mixed"  # single sculls score the athlete, crew boats the club


class TieBreaker(str, Enum):
    MORE_FIRST_PLACES = "more_first_places"
    MORE_SECOND_PLACES = "more_second_places"
    TOTAL_TIME = "total_time"
    BEST_TIME = "best_time"
    ALPHABETICAL = "alphabetical"


DEFAULT_TIE_BREAKERS: Tuple[TieBreaker, ...] = (
    TieBreaker.MORE_FIRST_PLACES,
    TieBreaker.MORE_SECOND_PLACES,
    TieBreaker.TOTAL_TIME,
)


@dataclass(frozen=True)
class RankingConfig:
    """How a ranking system turns completed races into a points table.

    ``final_journey_index`` is only read when ``final_only`` is set; without
    it every journey counts.
    """

    group_by: GroupBy = GroupBy.CATEGORY_GENDER
    point_mode: PointMode = PointMode.MIXED
    point_table: PointTable = field(default_factory=PointTable)
    max_scoring_position: int = 8
    tie_breakers: Tuple[TieBreaker, ...] = DEFAULT_TIE_BREAKERS
    final_only: bool = False
    final_journey_index: Optional[int] = None
    allowed_boat_class_ids: Tuple[str, ...] = ()


@dataclass
class RaceContribution:
    race_id: str
    race_name: str
    boat_class_id: Optional[str]
    status: ResultStatus
    position: Optional[int]
    points: int
    elapsed_ms: Optional[int]


@dataclass
class RankingEntry:
    entity_id: str
    entity_type: str  # "athlete" or "club"
    name: str
    total_points: int = 0
    total_ms: int = 0
    rank: int = 0
    results: List[RaceContribution] = field(default_factory=list)
    position_counts: Dict[int, int] = field(default_factory=dict)
    status_counts: Dict[ResultStatus, int] = field(default_factory=dict)

    @property
    def race_count(self) -> int:
        return len(self.results)

    @property
    def best_ms(self) -> Optional[int]:
        times = [item.elapsed_ms for item in self.results if item.elapsed_ms]
        return min(times) if times else None


@dataclass
class RankingGroup:
    key: str
    gender: Optional[str]
    category: Optional[Category]
    entries: List[RankingEntry] = field(default_factory=list)


def _by_id(items, attribute: str) -> Mapping:
    if items is None:
        return {}
    if isinstance(items, Mapping):
        return items
    return {getattr(item, attribute): item for item in items}


def _gender_of(category: Optional[Category]) -> Optional[str]:
    gender = normalize_gender(category.gender) if category is not None else None
    return gender.value if gender is not None else None


def _group_key(category: Optional[Category], category_id: str, group_by: GroupBy) -> str:
    gender = _gender_of(category)
    if group_by == GroupBy.GENDER:
        return gender or "unknown"
    if group_by == GroupBy.CATEGORY:
        return (category.abbreviation if category else "") or category_id or "unknown"
    abbreviation = (category.abbreviation if category else "") or "?"
    return f"{abbreviation}_{gender or '?'}"


def _lane_points(status: ResultStatus, position: Optional[int], config: RankingConfig) -> int:
    if status != ResultStatus.OK or position is None or position > config.max_scoring_position:
        return 0
    return config.point_table.points_for(position)


def _tie_break(first: RankingEntry, second: RankingEntry, method: TieBreaker) -> int:
    if method == TieBreaker.MORE_FIRST_PLACES:
        return second.position_counts.get(1, 0) - first.position_counts.get(1, 0)
    if method == TieBreaker.MORE_SECOND_PLACES:
        return second.position_counts.get(2, 0) - first.position_counts.get(2, 0)
    if method == TieBreaker.TOTAL_TIME:
        return _compare_times(first.total_ms or None, second.total_ms or None)
    if method == TieBreaker.BEST_TIME:
        return _compare_times(first.best_ms, second.best_ms)
    if method == TieBreaker.ALPHABETICAL:
        return (first.name.lower() > second.name.lower()) - (first.name.lower() < second.name.lower())
    return 0


def _compare_times(first: Optional[int], second: Optional[int]) -> int:
    # Missing times lose.
    first = float("inf") if first is None else first
    second = float("inf") if second is None else second
    return (first > second) - (first < second)


def _rank_group(entries: List[RankingEntry], tie_breakers: Sequence[TieBreaker]) -> List[RankingEntry]:
    def compare(first: RankingEntry, second: RankingEntry) -> int:
        if first.total_points != second.total_points:
            return second.total_points - first.total_points
        for method in tie_breakers:
            outcome = _tie_break(first, second, TieBreaker(method))
            if outcome:
                return outcome
        return 0

    ranked = sorted(entries, key=functools.cmp_to_key(compare))
    # Equal points share a rank even when a tie-breaker ordered them.
    for index, entry in enumerate(ranked):
        if index and entry.total_points == ranked[index - 1].total_points:
            entry.rank = ranked[index - 1].rank
        else:
            entry.rank = index + 1
    return ranked


def competition_ranking(
    races: Iterable[Race],
    categories: Union[Mapping[str, Category], Iterable[Category]],
    boat_classes: Union[Mapping[str, BoatClass], Iterable[BoatClass]],
    config: Optional[RankingConfig] = None,
    athletes: Union[Mapping[str, Athlete], Iterable[Athlete], None] = None,
) -> List[RankingGroup]:
    """Points ranking over the completed races of a competition.

    Races are grouped per ``config.group_by``; each lane's points go to its
    athlete or its club depending on ``config.point_mode`` and the boat's
    crew size. Non-``ok`` lanes score nothing but are counted per status.
    """

    config = config or RankingConfig()
    categories = _by_id(categories, "category_id")
    boat_classes = _by_id(boat_classes, "boat_class_id")
    athletes = _by_id(athletes, "athlete_id")

    selected = [race for race in races if race.status == RaceStatus.COMPLETED]
    if config.final_only and config.final_journey_index is not None:
        selected = [race for race in selected if race.journey_index == config.final_journey_index]
    if config.allowed_boat_class_ids:
        selected = [race for race in selected if race.boat_class_id in config.allowed_boat_class_ids]

    groups: Dict[str, RankingGroup] = {}
    totals: Dict[str, Dict[str, RankingEntry]] = {}
    for race in selected:
        category = categories.get(race.category_id)
        key = _group_key(category, race.category_id, GroupBy(config.group_by))
        if key not in groups:
            groups[key] = RankingGroup(
                key=key,
                gender=_gender_of(category),
                category=category,
            )
            totals[key] = {}

        boat_class = boat_classes.get(race.boat_class_id) if race.boat_class_id else None
        point_mode = PointMode(config.point_mode)
        if point_mode == PointMode.MIXED:
            score_athlete = boat_class is not None and boat_class.crew_size == 1
        else:
            score_athlete = point_mode == PointMode.SKIFF_ATHLETE

        for lane in race.lanes:
            if score_athlete:
                members = lane.member_ids()
                entity_id = members[0] if members else None
                athlete = athletes.get(entity_id) if entity_id else None
                name = (athlete.full_name if athlete else "") or (entity_id or "")
            else:
                entity_id = _club_key(lane.club) or None
                name = lane.club.label() if lane.club else ""
            if not entity_id:
                continue

            entry = totals[key].get(entity_id)
            if entry is None:
                entry = totals[key][entity_id] = RankingEntry(
                    entity_id=entity_id,
                    entity_type="athlete" if score_athlete else "club",
                    name=name,
                )

            result = lane.result
            status = result.status if result else ResultStatus.OK
            position = result.finish_position if result and status == ResultStatus.OK else None
            elapsed = result.elapsed_ms if result else None
            points = _lane_points(status, position, config)

            entry.total_points += points
            entry.total_ms += elapsed or 0
            entry.results.append(
                RaceContribution(
                    race_id=race.race_id,
                    race_name=race.name,
                    boat_class_id=race.boat_class_id,
                    status=status,
                    position=position,
                    points=points,
                    elapsed_ms=elapsed,
                )
            )
            if position is not None:
                entry.position_counts[position] = entry.position_counts.get(position, 0) + 1
            if status != ResultStatus.OK:
                entry.status_counts[status] = entry.status_counts.get(status, 0) + 1

    for key, group in groups.items():
        group.entries = _rank_group(list(totals[key].values()), config.tie_breakers)
    return list(groups.values())
