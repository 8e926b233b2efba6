"""Draw and results engine for rowing regattas."""

from .athlete import Athlete, BoatClass, Category, Discipline, Gender, Membership, resolve_active_club
from .club import ClubIdentity, club_code_from_name
from .config import EngineSettings, get_settings
from .crew_numbers import assign_crew_numbers, next_crew_number, parse_crew_number
from .draw import DrawPartitioner, DrawResult, Strategy, race_code
from .eligibility import EligibilityOverrides, EligibilityReport, check_eligibility, suggest_category
from .entry import DraftEntry, Entry, EntryStatus, PersistedEntry
from .errors import EngineError, ErrorKind, InvalidTimeFormat
from .race import Lane, LaneResult, Race, RaceStatus, ResultStatus
from .scoring import LaneTime, PointTable, RaceScore, apply_results, score_race
from .standings import (
    GroupBy,
    PointMode,
    RankingConfig,
    TieBreaker,
    category_standings,
    combined_time_ranking,
    competition_ranking,
)
from .swap import SwapResult, swap_lanes
from .timing import auto_format_time, format_delta, format_time, parse_time

__all__ = [
    "Athlete",
    "BoatClass",
    "Category",
    "ClubIdentity",
    "Discipline",
    "DraftEntry",
    "DrawPartitioner",
    "DrawResult",
    "EligibilityOverrides",
    "EligibilityReport",
    "EngineError",
    "EngineSettings",
    "Entry",
    "EntryStatus",
    "ErrorKind",
    "Gender",
    "GroupBy",
    "InvalidTimeFormat",
    "Lane",
    "LaneResult",
    "LaneTime",
    "Membership",
    "PersistedEntry",
    "PointMode",
    "PointTable",
    "Race",
    "RaceScore",
    "RaceStatus",
    "RankingConfig",
    "ResultStatus",
    "Strategy",
    "SwapResult",
    "TieBreaker",
    "apply_results",
    "assign_crew_numbers",
    "auto_format_time",
    "category_standings",
    "check_eligibility",
    "club_code_from_name",
    "combined_time_ranking",
    "competition_ranking",
    "format_delta",
    "format_time",
    "get_settings",
    "next_crew_number",
    "parse_crew_number",
    "parse_time",
    "race_code",
    "resolve_active_club",
    "score_race",
    "suggest_category",
    "swap_lanes",
]
