from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    INVALID_FORMAT = "InvalidFormat"
    INVALID_LANE_COUNT = "InvalidLaneCount"
    NO_ENTRIES = "NoEntries"
    AMBIGUOUS_BOAT_CLASS = "AmbiguousBoatClass"
    GENDER_MISMATCH = "GenderMismatch"
    TOO_YOUNG = "TooYoung"
    TOO_OLD = "TooOld"
    LANE_OUT_OF_RANGE = "LaneOutOfRange"
    RACE_NOT_FOUND = "RaceNotFound"
    CREW_SIZE_MISMATCH = "CrewSizeMismatch"
    DUPLICATE_ATHLETE = "DuplicateAthlete"
    DUPLICATE_LANE = "DuplicateLane"
    INVALID_JOURNEY = "InvalidJourney"
    INVALID_STATUS_TRANSITION = "InvalidStatusTransition"
    RESULTS_INCOMPLETE = "ResultsIncomplete"


class EngineError(ValueError):
    """Rejected input for a draw/results operation.

    Subclasses ``ValueError`` so callers that already guard on bad input keep
    working; ``kind`` tells them which rule failed.
    """

    def __init__(self, kind: ErrorKind, message: str, **details: Any) -> None:
        super().__init__(message)
        self.kind = kind
        self.details: Dict[str, Any] = details

    def __repr__(self) -> str:
        return f"EngineError({self.kind.value}, {str(self)!r})"


class InvalidTimeFormat(EngineError):
    def __init__(self, text: Optional[str]) -> None:
        super().__init__(ErrorKind.INVALID_FORMAT, f"invalid race time '{text}'", text=text)
