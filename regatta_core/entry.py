from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple, Union

from .athlete import BoatClass
from .club import ClubIdentity
from .errors import EngineError, ErrorKind


class EntryStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


# Withdrawn and rejected registrations release their crew numbers and never
# reach a start list.
INACTIVE_STATUSES = frozenset({EntryStatus.WITHDRAWN, EntryStatus.REJECTED})


@dataclass(frozen=True, kw_only=True)
class _EntryFields:
    athlete_id: Optional[str] = None
    crew_member_ids: Tuple[str, ...] = ()
    club: Optional[ClubIdentity] = None
    crew_number: Optional[int] = None
    seed: Optional[int] = None
    notes: str = ""
    category_id: Optional[str] = None
    boat_class_id: Optional[str] = None

    @property
    def is_crew(self) -> bool:
        return bool(self.crew_member_ids)

    @property
    def is_active(self) -> bool:
        return self.status not in INACTIVE_STATUSES

    def member_ids(self) -> Tuple[str, ...]:
        """Every athlete id this entry puts in a boat."""

        if self.crew_member_ids:
            return self.crew_member_ids
        return (self.athlete_id,) if self.athlete_id else ()

    def ensure_crew_size(self, boat_class: BoatClass) -> None:
        if self.is_crew and len(self.crew_member_ids) != boat_class.crew_size:
            raise EngineError(
                ErrorKind.CREW_SIZE_MISMATCH,
                f"crew of {len(self.crew_member_ids)} cannot race in {boat_class.code} "
                f"(crew size {boat_class.crew_size})",
                boat_class=boat_class.code,
                members=self.crew_member_ids,
            )

    def withdraw(self):
        return replace(self, status=EntryStatus.WITHDRAWN)


@dataclass(frozen=True, kw_only=True)
class DraftEntry(_EntryFields):
    """An entry added while preparing a draw and not saved yet."""

    uid: str = ""
    status: EntryStatus = EntryStatus.DRAFT


@dataclass(frozen=True, kw_only=True)
class PersistedEntry(_EntryFields):
    """A registration record owned by the registration store."""

    entry_id: str
    status: EntryStatus = EntryStatus.PENDING


Entry = Union[DraftEntry, PersistedEntry]
