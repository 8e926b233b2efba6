from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .club import ClubIdentity
from .errors import EngineError, ErrorKind


class RaceStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Status only moves forward; cancelled and completed are terminal.
_ALLOWED_TRANSITIONS: Dict[RaceStatus, Tuple[RaceStatus, ...]] = {
    RaceStatus.SCHEDULED: (RaceStatus.IN_PROGRESS, RaceStatus.COMPLETED, RaceStatus.CANCELLED),
    RaceStatus.IN_PROGRESS: (RaceStatus.COMPLETED, RaceStatus.CANCELLED),
    RaceStatus.COMPLETED: (),
    RaceStatus.CANCELLED: (),
}


class ResultStatus(str, Enum):
    OK = "ok"  # finished normally
    DNS = "dns"  # at the start but did not start
    DNF = "dnf"  # started, did not finish
    DSQ = "dsq"  # disqualified
    ABS = "abs"  # never showed up


@dataclass(frozen=True)
class LaneResult:
    status: ResultStatus = ResultStatus.OK
    finish_position: Optional[int] = None
    elapsed_ms: Optional[int] = None
    notes: str = ""

    def __post_init__(self) -> None:
        if self.finish_position is not None and self.finish_position < 1:
            raise ValueError("finish_position must be a positive integer")
        if self.elapsed_ms is not None and self.elapsed_ms < 0:
            raise ValueError("elapsed_ms must be zero or greater")


@dataclass(frozen=True)
class LanePayload:
    """The part of a lane that belongs to the competitor, not the lane."""

    athlete_id: Optional[str] = None
    crew: Tuple[str, ...] = ()
    club: Optional[ClubIdentity] = None
    crew_number: Optional[int] = None
    seed: Optional[int] = None
    notes: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.athlete_id and not self.crew


@dataclass(frozen=True)
class Lane:
    lane: int
    athlete_id: Optional[str] = None
    crew: Tuple[str, ...] = ()
    club: Optional[ClubIdentity] = None
    crew_number: Optional[int] = None
    seed: Optional[int] = None
    notes: str = ""
    result: Optional[LaneResult] = None

    def payload(self) -> LanePayload:
        return LanePayload(
            athlete_id=self.athlete_id,
            crew=self.crew,
            club=self.club,
            crew_number=self.crew_number,
            seed=self.seed,
            notes=self.notes,
        )

    def with_payload(self, payload: LanePayload) -> "Lane":
        return replace(
            self,
            athlete_id=payload.athlete_id,
            crew=payload.crew,
            club=payload.club,
            crew_number=payload.crew_number,
            seed=payload.seed,
            notes=payload.notes,
        )

    def member_ids(self) -> Tuple[str, ...]:
        if self.crew:
            return self.crew
        return (self.athlete_id,) if self.athlete_id else ()

    @property
    def is_empty(self) -> bool:
        return self.payload().is_empty and self.result is None


def validate_lanes(lanes: Iterable[Lane], max_lanes: int) -> List[Lane]:
    """Check lane numbers are unique and inside ``1..max_lanes``; sort them."""

    lanes = list(lanes)
    if len(lanes) > max_lanes:
        raise EngineError(
            ErrorKind.LANE_OUT_OF_RANGE,
            f"A race cannot have more than {max_lanes} lanes",
            max_lanes=max_lanes,
        )
    seen: set[int] = set()
    for lane in lanes:
        if lane.lane < 1 or lane.lane > max_lanes:
            raise EngineError(
                ErrorKind.LANE_OUT_OF_RANGE,
                f"Lane numbers must be between 1 and {max_lanes}",
                lane=lane.lane,
            )
        if lane.lane in seen:
            raise EngineError(
                ErrorKind.DUPLICATE_LANE,
                "Lane numbers must be unique within a race",
                lane=lane.lane,
            )
        seen.add(lane.lane)
    return sorted(lanes, key=lambda item: item.lane)


@dataclass(frozen=True)
class Race:
    race_id: str
    category_id: str
    journey_index: int
    boat_class_id: Optional[str] = None
    order: Optional[int] = None
    name: str = ""
    session_label: Optional[str] = None
    start_time: Optional[dt.datetime] = None
    distance_override: Optional[int] = None
    status: RaceStatus = RaceStatus.SCHEDULED
    lanes: Tuple[Lane, ...] = ()
    notes: str = ""

    def lane(self, number: int) -> Optional[Lane]:
        for lane in self.lanes:
            if lane.lane == number:
                return lane
        return None

    def with_lanes(self, lanes: Iterable[Lane]) -> "Race":
        return replace(self, lanes=tuple(sorted(lanes, key=lambda item: item.lane)))

    @property
    def has_results(self) -> bool:
        return any(lane.result is not None for lane in self.lanes)

    def transition(self, status: RaceStatus) -> "Race":
        status = RaceStatus(status)
        if status == self.status:
            return self
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise EngineError(
                ErrorKind.INVALID_STATUS_TRANSITION,
                f"Race {self.race_id} cannot move from {self.status.value} to {status.value}",
                race_id=self.race_id,
            )
        return replace(self, status=status)

    def matches_slot(
        self,
        category_id: str,
        journey_index: int,
        boat_class_id: Optional[str] = None,
    ) -> bool:
        if self.category_id != category_id or self.journey_index != journey_index:
            return False
        return boat_class_id is None or self.boat_class_id == boat_class_id
