from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import EngineError, ErrorKind, InvalidTimeFormat
from .race import LaneResult, Race, RaceStatus, ResultStatus
from .timing import format_delta, format_time, parse_time_or_none

logger = logging.getLogger(__name__)

DEFAULT_POINT_TABLE: Dict[int, int] = {1: 20, 2: 12, 3: 8, 4: 6, 5: 4, 6: 3, 7: 2, 8: 1}


class PointTable:
    """Points per finish position.

    Positions missing from a custom table fall back to the default table, and
    positions missing from both score nothing.
    """

    def __init__(self, custom: Optional[Mapping[int, int]] = None) -> None:
        self.custom: Dict[int, int] = dict(custom or {})

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[int, int]]) -> "PointTable":
        return cls({int(position): int(points) for position, points in pairs})

    def points_for(self, position: Optional[int]) -> int:
        if not position or position < 1:
            return 0
        if position in self.custom:
            return self.custom[position]
        return DEFAULT_POINT_TABLE.get(position, 0)

    def __repr__(self) -> str:
        return f"PointTable({self.custom!r})"


@dataclass
class LaneTime:
    lane: int
    elapsed_text: Optional[str] = None
    status: ResultStatus = ResultStatus.OK
    notes: str = ""


@dataclass
class ScoredLane:
    lane: int
    status: ResultStatus
    elapsed_ms: Optional[int] = None
    finish_position: Optional[int] = None
    delta_ms: Optional[int] = None
    points: int = 0
    notes: str = ""
    error: Optional[ErrorKind] = None

    @property
    def time_text(self) -> str:
        if self.status != ResultStatus.OK:
            return self.status.value.upper()
        return format_time(self.elapsed_ms)

    @property
    def delta_text(self) -> str:
        return format_delta(self.delta_ms)

    def to_result(self) -> LaneResult:
        return LaneResult(
            status=self.status,
            finish_position=self.finish_position,
            elapsed_ms=self.elapsed_ms,
            notes=self.notes,
        )


@dataclass
class RaceScore:
    lanes: List[ScoredLane] = field(default_factory=list)

    @property
    def winning_ms(self) -> Optional[int]:
        for lane in self.lanes:
            if lane.finish_position == 1:
                return lane.elapsed_ms
        return None

    @property
    def has_valid_time(self) -> bool:
        return self.winning_ms is not None

    @property
    def flagged(self) -> List[ScoredLane]:
        return [lane for lane in self.lanes if lane.error is not None]

    def ranked(self) -> List[ScoredLane]:
        """Finishers by position, then everybody else by lane."""

        return sorted(
            self.lanes,
            key=lambda lane: (lane.finish_position is None, lane.finish_position or 0, lane.lane),
        )

    def by_lane(self, number: int) -> Optional[ScoredLane]:
        for lane in self.lanes:
            if lane.lane == number:
                return lane
        return None


def score_race(lane_times: Iterable[LaneTime], point_table: Optional[PointTable] = None) -> RaceScore:
    """Derive positions, gaps and points from the times typed for each lane.

    A lane whose time cannot be read is flagged and left unranked; the rest of
    the race is still scored.
    """

    table = point_table or PointTable()
    scored: List[ScoredLane] = []
    for item in sorted(lane_times, key=lambda lane_time: lane_time.lane):
        status = ResultStatus(item.status)
        lane = ScoredLane(lane=item.lane, status=status, notes=item.notes)
        try:
            lane.elapsed_ms = parse_time_or_none(item.elapsed_text)
        except InvalidTimeFormat:
            if status == ResultStatus.OK:
                logger.warning("Lane %d has an unreadable time %r", item.lane, item.elapsed_text)
                lane.error = ErrorKind.INVALID_FORMAT
        else:
            if status == ResultStatus.OK and lane.elapsed_ms is None:
                logger.warning("Lane %d finished without a time", item.lane)
                lane.error = ErrorKind.INVALID_FORMAT
        scored.append(lane)

    # sorted() is stable and ``scored`` is in lane order, so equal times keep lane order.
    finishers = sorted(
        (lane for lane in scored if lane.status == ResultStatus.OK and lane.error is None),
        key=lambda lane: lane.elapsed_ms,
    )
    for position, lane in enumerate(finishers, start=1):
        lane.finish_position = position
        lane.points = table.points_for(position)

    if finishers:
        winning = finishers[0].elapsed_ms
        for lane in finishers[1:]:
            lane.delta_ms = lane.elapsed_ms - winning

    return RaceScore(lanes=scored)


def apply_results(race: Race, score: RaceScore, mark_completed: bool = True) -> Race:
    """Write scored results into a copy of ``race``.

    Completing the race requires at least one finisher with a valid time.
    """

    lanes_by_number = {lane.lane: lane for lane in race.lanes}
    for scored in score.lanes:
        if scored.lane not in lanes_by_number:
            raise EngineError(
                ErrorKind.LANE_OUT_OF_RANGE,
                f"Lane {scored.lane} is not assigned in this race",
                lane=scored.lane,
            )
        previous = lanes_by_number[scored.lane]
        lanes_by_number[scored.lane] = replace(previous, result=scored.to_result())

    updated = race.with_lanes(lanes_by_number.values())
    if not mark_completed:
        return updated
    if not score.has_valid_time:
        raise EngineError(
            ErrorKind.RESULTS_INCOMPLETE,
            f"Race {race.race_id} needs at least one finisher with a valid time before it can be completed",
            race_id=race.race_id,
        )
    return updated.transition(RaceStatus.COMPLETED)
