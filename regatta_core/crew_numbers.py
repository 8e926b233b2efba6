"""Club-scoped crew numbering.

Crews of one club in one category are numbered 1, 2, 3... A club's existing
numbers can live in three places at once: the draft list being prepared, the
lanes of races already drawn for the category, and the registration records.
All three are scanned so a new crew never reuses a number.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

from .club import ClubIdentity
from .entry import Entry
from .race import Race

logger = logging.getLogger(__name__)

_TRAILING_NUMBER = re.compile(r"(\d+)\s*$")
_NON_DIGITS = re.compile(r"[^0-9]")


def parse_crew_number(value: object) -> Optional[int]:
    """Read a crew number stored as ``2``, ``"2"``, ``"CNMT 2"`` or ``"(CNMT) 2"``."""

    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not text:
        return None
    match = _TRAILING_NUMBER.search(text)
    if match:
        return int(match.group(1))
    digits = _NON_DIGITS.sub("", text)
    return int(digits) if digits else None


def _numbers_from_drafts(club: ClubIdentity, drafts: Iterable[Entry]) -> List[int]:
    numbers = []
    for entry in drafts:
        number = parse_crew_number(entry.crew_number)
        if number is not None and club.matches(entry.club):
            numbers.append(number)
    return numbers


def _numbers_from_races(club: ClubIdentity, category_id: Optional[str], races: Iterable[Race]) -> List[int]:
    numbers = []
    for race in races:
        if category_id and race.category_id != category_id:
            continue
        for lane in race.lanes:
            number = parse_crew_number(lane.crew_number)
            if number is not None and club.matches(lane.club):
                numbers.append(number)
    return numbers


def _numbers_from_registrations(
    club: ClubIdentity,
    category_id: Optional[str],
    registrations: Iterable[Entry],
) -> List[int]:
    numbers = []
    for entry in registrations:
        if not entry.is_active:
            continue
        if category_id and entry.category_id and entry.category_id != category_id:
            continue
        number = parse_crew_number(entry.crew_number)
        if number is not None and club.matches(entry.club):
            numbers.append(number)
    return numbers


def next_crew_number(
    club: Optional[ClubIdentity],
    category_id: Optional[str],
    drafts: Sequence[Entry] = (),
    races: Sequence[Race] = (),
    registrations: Sequence[Entry] = (),
) -> Optional[int]:
    """Propose the next crew number for ``club`` in ``category_id``.

    Returns ``None`` when there is no club to number against. Calling it again
    with the same inputs gives the same answer.
    """

    if club is None:
        return None
    numbers = (
        _numbers_from_drafts(club, drafts)
        + _numbers_from_races(club, category_id, races)
        + _numbers_from_registrations(club, category_id, registrations)
    )
    if numbers:
        return max(numbers) + 1
    if club.has_context:
        return 1
    return None


def assign_crew_numbers(
    entries: Sequence[Entry],
    category_id: Optional[str],
    races: Sequence[Race] = (),
    registrations: Sequence[Entry] = (),
) -> List[Entry]:
    """Give every entry without a crew number the next free one for its club.

    Entries are handled in order and each stamped entry counts when numbering
    the ones after it.
    """

    stamped: List[Entry] = []
    for index, entry in enumerate(entries):
        if entry.crew_number is not None:
            stamped.append(entry)
            continue
        others = stamped + list(entries[index + 1 :])
        number = next_crew_number(entry.club, category_id, others, races, registrations)
        if number is None:
            logger.debug("Entry %s has no club context; leaving crew number unset", entry.member_ids())
            stamped.append(entry)
            continue
        stamped.append(replace(entry, crew_number=number))
    return stamped
