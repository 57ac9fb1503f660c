"""
Domain Models
=============

Value records read by the ranking engine. Raw event rows coming from the
app's store may carry roster entries as JSON strings, mappings, or bare
user ids; everything is normalized here into the canonical shapes before
any scoring code sees it.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .utils import normalize_tags, parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_FULL_NAME = "User"
DEFAULT_AVATAR_URL = "/placeholder.svg"


class ParticipantParseError(ValueError):
    """Raised when a roster entry cannot be turned into a Participant."""


@dataclass
class Participant:
    """A user's RSVP on an event, with a snapshot of their music tags."""
    id: str
    full_name: str = DEFAULT_FULL_NAME
    avatar_url: str = DEFAULT_AVATAR_URL
    instruments: List[str] = field(default_factory=list)
    genres: List[str] = field(default_factory=list)

    def __post_init__(self):
        # Stale snapshots may carry null tag fields
        if self.instruments is None:
            self.instruments = []
        if self.genres is None:
            self.genres = []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "avatar_url": self.avatar_url,
            "instruments": list(self.instruments),
            "genres": list(self.genres),
        }


def _participant_from_mapping(data: Dict[str, Any]) -> Participant:
    participant_id = data.get("id")
    if not isinstance(participant_id, str) or not participant_id:
        raise ParticipantParseError(f"Participant record has no id: {data!r}")

    full_name = data.get("full_name")
    avatar_url = data.get("avatar_url")
    return Participant(
        id=participant_id,
        full_name=full_name if isinstance(full_name, str) and full_name else DEFAULT_FULL_NAME,
        avatar_url=avatar_url if isinstance(avatar_url, str) and avatar_url else DEFAULT_AVATAR_URL,
        instruments=normalize_tags(data.get("instruments")),
        genres=normalize_tags(data.get("genres")),
    )


def parse_participant(raw: Any) -> Participant:
    """
    Normalize one raw roster entry into a Participant.

    Accepted shapes:
        - a mapping with at least a string ``id``
        - a JSON string encoding such a mapping
        - a bare, non-JSON string, taken as the user id

    Missing or malformed tag fields become empty lists.

    Raises:
        ParticipantParseError: If no participant id can be recovered
    """
    if isinstance(raw, Participant):
        return raw

    if isinstance(raw, dict):
        return _participant_from_mapping(raw)

    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            raise ParticipantParseError("Empty participant string")
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError:
            return Participant(id=text)
        if isinstance(decoded, dict):
            return _participant_from_mapping(decoded)
        if isinstance(decoded, str) and decoded:
            return Participant(id=decoded)
        raise ParticipantParseError(f"Unsupported participant JSON: {text!r}")

    raise ParticipantParseError(f"Unsupported participant value: {raw!r}")


def parse_roster(raw_entries: Any) -> List[Participant]:
    """Parse a roster field leniently, dropping entries that cannot be read."""
    if not raw_entries:
        return []

    participants = []
    for raw in raw_entries:
        try:
            participants.append(parse_participant(raw))
        except ParticipantParseError as e:
            logger.warning("Dropping roster entry: %s", e)
    return participants


@dataclass
class EventDocument:
    """Title and description of one event, as fed to the TF-IDF corpus."""
    id: str
    title: Optional[str]
    description: Optional[str]

    @property
    def text(self) -> str:
        return f"{self.title} {self.description}"


@dataclass
class EventSummary:
    """An event with its rosters; the unit being ranked."""
    id: str
    title: str
    start_time: datetime
    description: str = ""
    participants_going: List[Participant] = field(default_factory=list)
    participants_maybe: List[Participant] = field(default_factory=list)

    @property
    def participants(self) -> List[Participant]:
        """Going participants followed by maybe participants."""
        return self.participants_going + self.participants_maybe

    def document(self) -> EventDocument:
        return EventDocument(id=self.id, title=self.title, description=self.description)

    def is_upcoming(self, now: datetime) -> bool:
        return self.start_time > now

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "EventSummary":
        """
        Build an EventSummary from a raw event row.

        Raises:
            KeyError: If ``id`` or ``start_time`` is missing
            ValueError: If ``start_time`` is not ISO-8601
        """
        return cls(
            id=str(record["id"]),
            title=record.get("title"),
            start_time=parse_timestamp(record["start_time"]),
            description=record.get("description"),
            participants_going=parse_roster(record.get("participants_going")),
            participants_maybe=parse_roster(record.get("participants_maybe")),
        )


@dataclass
class UserProfile:
    """Genre and instrument tags of the viewer."""
    genres: List[str] = field(default_factory=list)
    instruments: List[str] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> "UserProfile":
        if not record:
            return cls()
        return cls(
            genres=normalize_tags(record.get("genres")),
            instruments=normalize_tags(record.get("instruments")),
        )


@dataclass
class UserEvent:
    """One entry of a user's event history."""
    event_id: str
    title: str
    start_time: datetime
    participation_status: str  # "going" or "maybe"
    is_past: bool = False
