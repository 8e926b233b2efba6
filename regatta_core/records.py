"""Validation of the plain records the host service hands to the engine.

Registration, race and roster stores keep camelCase JSON documents whose
references are sometimes bare ids and sometimes populated objects. These
models accept both shapes and convert them into the engine's dataclasses.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .athlete import (
    Athlete,
    BoatClass,
    Category,
    Discipline,
    Gender,
    Membership,
    WeightClass,
    max_lanes_for_discipline,
    normalize_gender,
)
from .club import ClubIdentity
from .config import get_settings
from .crew_numbers import parse_crew_number
from .draw import DrawPartitioner, DrawResult, Strategy
from .entry import DraftEntry, Entry, EntryStatus, PersistedEntry
from .race import Lane, LaneResult, Race, RaceStatus, ResultStatus, validate_lanes
from .scoring import LaneTime, PointTable
from .standings import DEFAULT_TIE_BREAKERS, GroupBy, PointMode, RankingConfig, TieBreaker

logger = logging.getLogger(__name__)


def document_id(value: Any) -> Optional[str]:
    """Id of a reference that may be a bare id or a populated document."""

    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get("_id") or value.get("id")
        if value is None:
            return None
    text = str(value).strip()
    return text or None


def _id_field(*aliases: str) -> Any:
    return Field(default=None, validation_alias=AliasChoices(*aliases))


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ClubRecord(_Record):
    club_id: Optional[str] = _id_field("club_id", "_id", "id")
    code: Optional[str] = None
    name: Optional[str] = None
    kind: str = Field(default="club", alias="type")

    @field_validator("club_id", mode="before")
    @classmethod
    def stringify_id(cls, value: Any) -> Optional[str]:
        return document_id(value)

    def to_domain(self) -> ClubIdentity:
        return ClubIdentity(club_id=self.club_id, code=self.code, name=self.name, kind=self.kind or "club")


def _club_reference(value: Any) -> Any:
    if value is None or isinstance(value, (dict, ClubRecord)):
        return value
    return {"_id": str(value)}


def _club_identity(
    club: Optional[ClubRecord],
    club_id: Optional[str] = None,
    code: Optional[str] = None,
    name: Optional[str] = None,
) -> Optional[ClubIdentity]:
    identity = club.to_domain() if club else ClubIdentity()
    identity = ClubIdentity(
        club_id=identity.club_id or club_id,
        code=identity.code or code,
        name=identity.name or name,
        kind=identity.kind,
    )
    if not identity.identifiers():
        return None
    return identity


class MembershipRecord(_Record):
    club: Optional[ClubRecord] = None
    status: str = "active"
    season: Optional[str] = None

    @field_validator("club", mode="before")
    @classmethod
    def coerce_club(cls, value: Any) -> Any:
        return _club_reference(value)

    @field_validator("season", mode="before")
    @classmethod
    def coerce_season(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    def to_domain(self) -> Membership:
        return Membership(club=self.club.to_domain() if self.club else None, status=self.status, season=self.season)


class AthleteRecord(_Record):
    athlete_id: str = Field(validation_alias=AliasChoices("athlete_id", "_id", "id"))
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    birth_date: Optional[dt.date] = Field(default=None, alias="birthDate")
    gender: Optional[str] = None
    is_junior: bool = Field(default=False, alias="isJunior")
    is_master: bool = Field(default=False, alias="isMaster")
    season_category: str = Field(default="", alias="category")
    memberships: List[MembershipRecord] = Field(default_factory=list)
    club: Optional[ClubRecord] = None

    @field_validator("athlete_id", mode="before")
    @classmethod
    def stringify_id(cls, value: Any) -> Optional[str]:
        return document_id(value)

    @field_validator("birth_date", mode="before")
    @classmethod
    def coerce_birth_date(cls, value: Any) -> Any:
        # Stored as full ISO timestamps ("2004-05-01T00:00:00.000Z"); keep the day.
        if not isinstance(value, str):
            return value
        text = value.strip()[:10]
        if not text:
            return None
        try:
            return dt.date.fromisoformat(text)
        except ValueError:
            logger.debug("Unparseable birth date %r", value)
            return None

    @field_validator("season_category", mode="before")
    @classmethod
    def coerce_season_category(cls, value: Any) -> str:
        if isinstance(value, dict):
            value = value.get("abbreviation") or (value.get("titles") or {}).get("en") or ""
        return str(value or "")

    @field_validator("club", mode="before")
    @classmethod
    def coerce_club(cls, value: Any) -> Any:
        return _club_reference(value)

    def to_domain(self) -> Athlete:
        return Athlete(
            athlete_id=self.athlete_id,
            first_name=self.first_name,
            last_name=self.last_name,
            birth_date=self.birth_date,
            gender=normalize_gender(self.gender),
            is_junior=self.is_junior,
            is_master=self.is_master,
            season_category=self.season_category,
            memberships=tuple(membership.to_domain() for membership in self.memberships),
            club=self.club.to_domain() if self.club else None,
        )


class CategoryRecord(_Record):
    category_id: str = Field(validation_alias=AliasChoices("category_id", "_id", "id"))
    abbreviation: str = ""
    gender: str = "mixed"
    min_age: Optional[int] = Field(default=None, alias="minAge", ge=0)
    max_age: Optional[int] = Field(default=None, alias="maxAge", ge=0)
    titles: Dict[str, Optional[str]] = Field(default_factory=dict)
    title: Optional[str] = None

    @field_validator("category_id", mode="before")
    @classmethod
    def stringify_id(cls, value: Any) -> Optional[str]:
        return document_id(value)

    def to_domain(self) -> Category:
        return Category(
            category_id=self.category_id,
            abbreviation=self.abbreviation.strip(),
            gender=normalize_gender(self.gender) or Gender.MIXED,
            min_age=self.min_age,
            max_age=self.max_age,
            title=self.title or self.titles.get("en") or "",
        )


class BoatClassRecord(_Record):
    boat_class_id: str = Field(validation_alias=AliasChoices("boat_class_id", "_id", "id"))
    code: str
    crew_size: int = Field(default=1, alias="crewSize", ge=1, le=12)
    weight_class: WeightClass = Field(default=WeightClass.OPEN, alias="weightClass")
    discipline: Discipline = Discipline.CLASSIC

    @field_validator("boat_class_id", mode="before")
    @classmethod
    def stringify_id(cls, value: Any) -> Optional[str]:
        return document_id(value)

    def to_domain(self) -> BoatClass:
        return BoatClass(
            boat_class_id=self.boat_class_id,
            code=self.code.strip(),
            crew_size=self.crew_size,
            weight_class=self.weight_class,
            discipline=self.discipline,
        )


class EntryRecord(_Record):
    """A registration row, or a draft row when it carries no ``id``."""

    entry_id: Optional[str] = _id_field("entry_id", "_id", "id")
    uid: str = ""
    athlete_id: Optional[str] = _id_field("athlete_id", "athleteId", "athlete")
    crew: List[str] = Field(default_factory=list)
    club: Optional[ClubRecord] = None
    club_id: Optional[str] = Field(default=None, alias="clubId")
    club_code: Optional[str] = Field(default=None, alias="clubCode")
    club_name: Optional[str] = Field(default=None, alias="clubName")
    crew_number: Optional[int] = Field(default=None, alias="crewNumber")
    seed: Optional[int] = Field(default=None, ge=1)
    notes: str = ""
    status: Optional[EntryStatus] = None
    category_id: Optional[str] = _id_field("category_id", "categoryId", "category")
    boat_class_id: Optional[str] = _id_field("boat_class_id", "boatClassId", "boatClass")

    @field_validator("entry_id", "athlete_id", "category_id", "boat_class_id", "club_id", mode="before")
    @classmethod
    def stringify_ids(cls, value: Any) -> Optional[str]:
        return document_id(value)

    @field_validator("crew", mode="before")
    @classmethod
    def coerce_crew(cls, value: Any) -> List[str]:
        members = [document_id(member) for member in (value or [])]
        return [member for member in members if member]

    @field_validator("club", mode="before")
    @classmethod
    def coerce_club(cls, value: Any) -> Any:
        return _club_reference(value)

    @field_validator("crew_number", mode="before")
    @classmethod
    def coerce_crew_number(cls, value: Any) -> Optional[int]:
        return parse_crew_number(value)

    @field_validator("notes", mode="before")
    @classmethod
    def strip_notes(cls, value: Any) -> str:
        return str(value or "").strip()

    def to_domain(self) -> Entry:
        fields = dict(
            athlete_id=self.athlete_id,
            crew_member_ids=tuple(self.crew),
            club=_club_identity(self.club, self.club_id, self.club_code, self.club_name),
            crew_number=self.crew_number,
            seed=self.seed,
            notes=self.notes,
            category_id=self.category_id,
            boat_class_id=self.boat_class_id,
        )
        if self.entry_id:
            return PersistedEntry(entry_id=self.entry_id, status=self.status or EntryStatus.PENDING, **fields)
        return DraftEntry(uid=self.uid, status=self.status or EntryStatus.DRAFT, **fields)


class LaneResultRecord(_Record):
    status: ResultStatus = ResultStatus.OK
    finish_position: Optional[int] = Field(default=None, alias="finishPosition", ge=1)
    elapsed_ms: Optional[int] = Field(default=None, alias="elapsedMs", ge=0)
    notes: str = ""

    def to_domain(self) -> LaneResult:
        return LaneResult(
            status=self.status,
            finish_position=self.finish_position,
            elapsed_ms=self.elapsed_ms,
            notes=self.notes.strip(),
        )


class LaneRecord(_Record):
    lane: int = Field(validation_alias=AliasChoices("lane", "laneNumber"))
    athlete_id: Optional[str] = _id_field("athlete_id", "athlete", "athleteId")
    crew: List[str] = Field(default_factory=list)
    club: Optional[ClubRecord] = None
    club_code: Optional[str] = Field(default=None, alias="clubCode")
    club_name: Optional[str] = Field(default=None, alias="clubName")
    crew_number: Optional[int] = Field(default=None, alias="crewNumber")
    seed: Optional[int] = None
    notes: str = ""
    result: Optional[LaneResultRecord] = None

    @field_validator("athlete_id", mode="before")
    @classmethod
    def stringify_id(cls, value: Any) -> Optional[str]:
        return document_id(value)

    @field_validator("crew", mode="before")
    @classmethod
    def coerce_crew(cls, value: Any) -> List[str]:
        members = [document_id(member) for member in (value or [])]
        return [member for member in members if member]

    @field_validator("club", mode="before")
    @classmethod
    def coerce_club(cls, value: Any) -> Any:
        return _club_reference(value)

    @field_validator("crew_number", mode="before")
    @classmethod
    def coerce_crew_number(cls, value: Any) -> Optional[int]:
        return parse_crew_number(value)

    def to_domain(self) -> Lane:
        return Lane(
            lane=self.lane,
            athlete_id=self.athlete_id,
            crew=tuple(self.crew),
            club=_club_identity(self.club, code=self.club_code, name=self.club_name),
            crew_number=self.crew_number,
            seed=self.seed,
            notes=self.notes.strip(),
            result=self.result.to_domain() if self.result else None,
        )


class RaceRecord(_Record):
    race_id: str = Field(validation_alias=AliasChoices("race_id", "_id", "id"))
    category_id: str = Field(validation_alias=AliasChoices("category_id", "category", "categoryId"))
    boat_class_id: Optional[str] = _id_field("boat_class_id", "boatClass", "boatClassId")
    journey_index: int = Field(alias="journeyIndex", ge=1)
    order: Optional[int] = None
    name: str = ""
    session_label: Optional[str] = Field(default=None, alias="sessionLabel")
    start_time: Optional[dt.datetime] = Field(default=None, alias="startTime")
    distance_override: Optional[int] = Field(default=None, alias="distanceOverride", ge=0)
    status: RaceStatus = RaceStatus.SCHEDULED
    lanes: List[LaneRecord] = Field(default_factory=list)
    notes: str = ""

    @field_validator("race_id", "category_id", "boat_class_id", mode="before")
    @classmethod
    def stringify_ids(cls, value: Any) -> Optional[str]:
        return document_id(value)

    def to_domain(self, discipline: Union[Discipline, str, None] = None) -> Race:
        lanes = validate_lanes(
            (lane.to_domain() for lane in self.lanes),
            max_lanes_for_discipline(discipline or get_settings().default_discipline),
        )
        return Race(
            race_id=self.race_id,
            category_id=self.category_id,
            boat_class_id=self.boat_class_id,
            journey_index=self.journey_index,
            order=self.order,
            name=self.name,
            session_label=self.session_label,
            start_time=self.start_time,
            distance_override=self.distance_override,
            status=self.status,
            lanes=tuple(lanes),
            notes=self.notes,
        )


class LaneTimeRecord(_Record):
    lane: int = Field(validation_alias=AliasChoices("lane", "laneNumber"))
    elapsed_time: Optional[str] = Field(default=None, alias="elapsedTime")
    status: ResultStatus = ResultStatus.OK
    notes: str = ""

    def to_domain(self) -> LaneTime:
        return LaneTime(lane=self.lane, elapsed_text=self.elapsed_time, status=self.status, notes=self.notes)


class PointEntryRecord(_Record):
    position: int = Field(ge=1)
    points: int = Field(ge=0)


class PointTableRecord(_Record):
    """Point table supplied by the ranking-system provider."""

    custom_point_table: List[PointEntryRecord] = Field(default_factory=list, alias="customPointTable")

    def to_domain(self) -> PointTable:
        return PointTable.from_pairs((item.position, item.points) for item in self.custom_point_table)


class TieBreakerRecord(_Record):
    method: TieBreaker


class RankingSystemRecord(_Record):
    """Ranking-system document from the ranking provider."""

    group_by: GroupBy = Field(default=GroupBy.CATEGORY_GENDER, alias="groupBy")
    journey_mode: str = Field(default="all", alias="journeyMode")
    point_mode: PointMode = Field(default=PointMode.MIXED, alias="pointMode")
    max_scoring_position: int = Field(default=8, alias="maxScoringPosition", ge=0)
    tie_breakers: List[TieBreakerRecord] = Field(default_factory=list, alias="tieBreakers")
    allowed_boat_classes: List[str] = Field(default_factory=list, alias="allowedBoatClasses")
    custom_point_table: List[PointEntryRecord] = Field(default_factory=list, alias="customPointTable")

    @field_validator("allowed_boat_classes", mode="before")
    @classmethod
    def stringify_boat_classes(cls, value: Any) -> List[str]:
        ids = [document_id(item) for item in (value or [])]
        return [item for item in ids if item]

    def to_domain(self, final_journey_index: Optional[int] = None) -> RankingConfig:
        tie_breakers = tuple(item.method for item in self.tie_breakers)
        return RankingConfig(
            group_by=self.group_by,
            point_mode=self.point_mode,
            point_table=PointTableRecord(customPointTable=self.custom_point_table).to_domain(),
            max_scoring_position=self.max_scoring_position,
            tie_breakers=tie_breakers or DEFAULT_TIE_BREAKERS,
            final_only=self.journey_mode == "final_only",
            final_journey_index=final_journey_index,
            allowed_boat_class_ids=tuple(self.allowed_boat_classes),
        )


class DrawRequest(_Record):
    category_id: str = Field(validation_alias=AliasChoices("category_id", "category"))
    boat_class_id: Optional[str] = _id_field("boat_class_id", "boatClass")
    journey_index: int = Field(alias="journeyIndex", ge=1)
    session_label: Optional[str] = Field(default=None, alias="sessionLabel")
    race_prefix: Optional[str] = Field(default=None, alias="racePrefix")
    strategy: Strategy = Strategy.RANDOM
    lanes_per_race: int = Field(default=8, alias="lanesPerRace")
    overwrite_existing: bool = Field(default=True, alias="overwriteExisting")
    start_race_number: Optional[int] = Field(default=None, alias="startRaceNumber")
    start_time: Optional[dt.datetime] = Field(default=None, alias="startTime")
    interval_minutes: Optional[int] = Field(default=None, alias="intervalMinutes", ge=0)
    entries: List[EntryRecord] = Field(default_factory=list)

    @field_validator("category_id", "boat_class_id", mode="before")
    @classmethod
    def stringify_ids(cls, value: Any) -> Optional[str]:
        return document_id(value)

    def run(
        self,
        partitioner: DrawPartitioner,
        category: Category,
        boat_class: Optional[BoatClass] = None,
        discipline: Union[Discipline, str, None] = None,
        existing_races: Sequence[Race] = (),
    ) -> DrawResult:
        if category.category_id != self.category_id:
            raise ValueError("Category does not match the draw request")
        if boat_class is not None and self.boat_class_id and boat_class.boat_class_id != self.boat_class_id:
            raise ValueError("Boat class does not match the draw request")
        return partitioner.draw(
            [entry.to_domain() for entry in self.entries],
            category=category,
            journey_index=self.journey_index,
            lanes_per_race=self.lanes_per_race,
            strategy=self.strategy,
            boat_class=boat_class,
            discipline=discipline,
            existing_races=existing_races,
            overwrite_existing=self.overwrite_existing,
            start_race_number=self.start_race_number,
            start_time=self.start_time,
            interval_minutes=self.interval_minutes,
            session_label=self.session_label,
            race_prefix=self.race_prefix,
        )
