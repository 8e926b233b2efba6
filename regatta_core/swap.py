from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Union

from .config import get_settings
from .errors import EngineError, ErrorKind
from .race import Lane, Race, RaceStatus

logger = logging.getLogger(__name__)


@dataclass
class SwapResult:
    source: Race
    target: Race
    results_misattributed: bool = False

    @property
    def same_race(self) -> bool:
        return self.source.race_id == self.target.race_id

    def races(self) -> List[Race]:
        return [self.source] if self.same_race else [self.source, self.target]


def _index(races: Union[Mapping[str, Race], Iterable[Race]]) -> Mapping[str, Race]:
    if isinstance(races, Mapping):
        return races
    return {race.race_id: race for race in races}


def _check_lane(number: int, max_lane: int, which: str) -> None:
    if not isinstance(number, int) or number < 1 or number > max_lane:
        raise EngineError(
            ErrorKind.LANE_OUT_OF_RANGE,
            f"{which} lane must be between 1-{max_lane}",
            lane=number,
        )


def _get_race(index: Mapping[str, Race], race_id: str, which: str) -> Race:
    race = index.get(race_id)
    if race is None:
        raise EngineError(ErrorKind.RACE_NOT_FOUND, f"{which} race not found", race_id=race_id)
    return race


def _ensure_lane(lanes: List[Lane], number: int) -> List[Lane]:
    if any(lane.lane == number for lane in lanes):
        return lanes
    return lanes + [Lane(lane=number)]


def _replace_lane(lanes: List[Lane], replacement: Lane) -> List[Lane]:
    return [replacement if lane.lane == replacement.lane else lane for lane in lanes]


def _drop_placeholders(lanes: List[Lane], original: Race) -> List[Lane]:
    # Lanes created for the exchange disappear again if nobody ended up in them.
    return [lane for lane in lanes if original.lane(lane.lane) is not None or not lane.is_empty]


def swap_lanes(
    races: Union[Mapping[str, Race], Iterable[Race]],
    source_race_id: str,
    source_lane: int,
    target_race_id: str,
    target_lane: int,
    max_lane: Optional[int] = None,
) -> SwapResult:
    """Exchange who sits in two lanes, within one race or across two.

    Lane numbers and recorded results stay put; only the competitor payload
    (athlete/crew, club, seed, crew number, notes) moves. Swapping a lane
    that already holds a result is allowed but reported through
    ``results_misattributed``.
    """

    max_lane = max_lane or get_settings().swap_max_lane
    _check_lane(source_lane, max_lane, "Source")
    _check_lane(target_lane, max_lane, "Target")

    index = _index(races)
    source = _get_race(index, source_race_id, "Source")
    target = _get_race(index, target_race_id, "Target")

    if source_race_id == target_race_id:
        lanes = _ensure_lane(_ensure_lane(list(source.lanes), source_lane), target_lane)
        by_number = {lane.lane: lane for lane in lanes}
        first, second = by_number[source_lane], by_number[target_lane]
        lanes = _replace_lane(lanes, first.with_payload(second.payload()))
        lanes = _replace_lane(lanes, second.with_payload(first.payload()))
        swapped = source.with_lanes(_drop_placeholders(lanes, source))
        result = SwapResult(source=swapped, target=swapped)
        involved = [first, second]
        touched = [source]
    else:
        source_lanes = _ensure_lane(list(source.lanes), source_lane)
        target_lanes = _ensure_lane(list(target.lanes), target_lane)
        first = next(lane for lane in source_lanes if lane.lane == source_lane)
        second = next(lane for lane in target_lanes if lane.lane == target_lane)
        source_lanes = _replace_lane(source_lanes, first.with_payload(second.payload()))
        target_lanes = _replace_lane(target_lanes, second.with_payload(first.payload()))
        result = SwapResult(
            source=source.with_lanes(_drop_placeholders(source_lanes, source)),
            target=target.with_lanes(_drop_placeholders(target_lanes, target)),
        )
        involved = [first, second]
        touched = [source, target]

    if any(lane.result is not None for lane in involved) or any(
        race.status == RaceStatus.COMPLETED for race in touched
    ):
        result.results_misattributed = True
        logger.warning(
            "Swapped lanes %s:%d and %s:%d after results were recorded",
            source_race_id,
            source_lane,
            target_race_id,
            target_lane,
        )
    else:
        logger.info(
            "Swapped lanes %s:%d and %s:%d", source_race_id, source_lane, target_race_id, target_lane
        )
    return result
