from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, Optional

_STOPWORDS = frozenset({"de", "la", "les", "des", "du", "of", "the", "and"})
_NAME_PUNCTUATION = re.compile(r"[()\-.,]")


def club_code_from_name(name: Optional[str]) -> Optional[str]:
    """Guess a four-letter club code from a display name.

    The first word of four or more letters (stopwords dropped) gives its
    first four letters; otherwise up to four initials are used.
    """

    if not name or not isinstance(name, str):
        return None
    words = [
        word
        for word in _NAME_PUNCTUATION.sub(" ", name).split()
        if word.lower() not in _STOPWORDS
    ]
    if not words:
        return None
    if len(words[0]) >= 4:
        return words[0][:4].upper()
    initials = "".join(word[0].upper() for word in words[:4])
    return initials or None


def _clean(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class ClubIdentity:
    """Everything known about a club from one record.

    Records coming from drafts, races and registrations rarely agree on how
    a club is referenced, so matching goes code first, then id, then any
    overlap between the derived identifiers.
    """

    club_id: Optional[str] = None
    code: Optional[str] = None
    name: Optional[str] = None
    kind: str = "club"

    def __post_init__(self) -> None:
        object.__setattr__(self, "club_id", _clean(self.club_id))
        object.__setattr__(self, "code", _clean(self.code))
        object.__setattr__(self, "name", _clean(self.name))

    @property
    def has_context(self) -> bool:
        return bool(self.club_id or self.code)

    def identifiers(self) -> FrozenSet[str]:
        values = {self.club_id, self.code, self.name, club_code_from_name(self.name)}
        return frozenset(value.lower() for value in values if value)

    def matches(self, other: Optional["ClubIdentity"]) -> bool:
        if other is None:
            return False
        if self.code and other.code:
            return self.code.upper() == other.code.upper()
        if self.club_id and other.club_id:
            return self.club_id == other.club_id
        return bool(self.identifiers() & other.identifiers())

    def label(self) -> str:
        if self.name:
            return self.name
        if self.code:
            return self.code
        if self.club_id:
            return f"Club {self.club_id[-4:]}"
        return ""
