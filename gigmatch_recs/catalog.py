"""
Event Catalog and Profile Store
===============================

Read-only collaborators the ranking engine pulls its inputs from:
- the event catalog (corpus documents, scored events, per-user history)
- the profile store (viewer genre/instrument tags)

The engine only depends on the Protocols below. The in-memory versions
back the CLI and the tests, built from the same row shape the app stores
(``participants_going`` / ``participants_maybe`` roster arrays).
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol

from .models import EventDocument, EventSummary, UserEvent, UserProfile

logger = logging.getLogger(__name__)


class EventCatalog(Protocol):
    async def list_event_documents(self) -> List[EventDocument]:
        ...

    async def list_event_summaries(self) -> List[EventSummary]:
        ...

    async def get_user_events(self, user_id: str) -> List[UserEvent]:
        ...


class ProfileStore(Protocol):
    async def get_profile(self, user_id: str) -> UserProfile:
        ...


class InMemoryEventCatalog:
    """
    Event catalog over a fixed list of events.

    Attributes:
        events: Events in catalog order
        clock: Callable returning "now", used to split past from upcoming
    """

    def __init__(self, events: Iterable[EventSummary], clock=None):
        self.events: List[EventSummary] = list(events)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]], clock=None) -> "InMemoryEventCatalog":
        """
        Build a catalog from raw event rows.

        Raises:
            KeyError, ValueError: If a row has no id or an unreadable start_time
        """
        return cls([EventSummary.from_record(r) for r in records], clock=clock)

    async def list_event_documents(self) -> List[EventDocument]:
        return [event.document() for event in self.events]

    async def list_event_summaries(self) -> List[EventSummary]:
        return list(self.events)

    async def get_user_events(self, user_id: str) -> List[UserEvent]:
        """
        Every event the user is going to or might attend, past and upcoming.

        A user listed in both rosters counts as going.
        """
        now = self.clock()
        history = []

        for event in self.events:
            if any(p.id == user_id for p in event.participants_going):
                status = "going"
            elif any(p.id == user_id for p in event.participants_maybe):
                status = "maybe"
            else:
                continue

            history.append(UserEvent(
                event_id=event.id,
                title=event.title,
                start_time=event.start_time,
                participation_status=status,
                is_past=not event.is_upcoming(now),
            ))

        return history


class InMemoryProfileStore:
    """Profile store over a user id -> profile mapping."""

    def __init__(self, profiles: Optional[Dict[str, UserProfile]] = None):
        self.profiles = dict(profiles or {})

    @classmethod
    def from_records(cls, records: Optional[Dict[str, Dict[str, Any]]]) -> "InMemoryProfileStore":
        return cls({
            user_id: UserProfile.from_record(record)
            for user_id, record in (records or {}).items()
        })

    async def get_profile(self, user_id: str) -> UserProfile:
        profile = self.profiles.get(user_id)
        if profile is None:
            logger.info("No profile for user %s, using empty tags", user_id)
            return UserProfile()
        return profile


def load_snapshot(path: str, clock=None):
    """
    Load a JSON snapshot ``{"events": [...], "profiles": {...}}``.

    Args:
        path: Snapshot file path
        clock: Optional "now" provider for the catalog

    Returns:
        Tuple of (InMemoryEventCatalog, InMemoryProfileStore)
    """
    with open(Path(path), "r", encoding="utf-8") as f:
        data = json.load(f)

    catalog = InMemoryEventCatalog.from_records(data.get("events", []), clock=clock)
    profiles = InMemoryProfileStore.from_records(data.get("profiles"))

    logger.info(
        "Loaded snapshot %s: %d events, %d profiles",
        path,
        len(catalog.events),
        len(profiles.profiles)
    )
    return catalog, profiles
