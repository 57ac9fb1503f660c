"""
Attendee Overlap Calculators
============================

Per-attendee signals comparing the viewer with the people already going
to (or considering) an event:

1. Genre overlap      shared genres minus a light penalty for unshared ones
2. Instrument overlap average table affinity over instrument pairs
3. Friend overlap     shared event history with each attendee

Each calculator averages over the full attendee list and returns 0 for
an event nobody has RSVP'd to.
"""

import logging
import math
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Sequence

from .config import GENRE_MISMATCH_PENALTY, INSTRUMENT_COMPATIBILITY
from .models import Participant, UserEvent
from .utils import bounded_gather

logger = logging.getLogger(__name__)

HistoryLookup = Callable[[str], Awaitable[List[UserEvent]]]


class InstrumentCompatibility:
    """
    Lookup over the static instrument affinity table.

    Pairs outside the table are not an error and carry no default value;
    they are simply left out of the average.
    """

    def __init__(self, table: Optional[Dict[str, Dict[str, float]]] = None):
        self.table = table if table is not None else INSTRUMENT_COMPATIBILITY

    def lookup(self, user_instrument: str, participant_instrument: str) -> Optional[float]:
        """Affinity for (viewer instrument, attendee instrument), or None."""
        return self.table.get(user_instrument, {}).get(participant_instrument)

    def pair_affinity(
        self,
        user_instruments: Iterable[str],
        participant_instruments: Iterable[str]
    ) -> float:
        """
        Mean affinity over every covered pair in the cross product.

        Returns:
            Average affinity, or 0.0 if no pair is in the table
        """
        participant_instruments = list(participant_instruments or [])
        total = 0.0
        count = 0

        for mine in user_instruments or []:
            for theirs in participant_instruments:
                weight = self.lookup(mine, theirs)
                if weight is None:
                    continue
                total += weight
                count += 1

        return total / count if count else 0.0


def genre_overlap(participant_genres: Iterable[str], user_genres: Iterable[str]) -> float:
    """
    |shared| - penalty * |symmetric difference|

    e.g. identical {rock, jazz} -> 2.0, {rock} vs {jazz} -> -0.4
    """
    theirs = set(participant_genres or [])
    mine = set(user_genres or [])
    return len(theirs & mine) - GENRE_MISMATCH_PENALTY * len(theirs ^ mine)


def average_genre_overlap(participants: Sequence[Participant], user_genres: Iterable[str]) -> float:
    if not participants:
        return 0.0
    user_genres = list(user_genres or [])
    total = sum(genre_overlap(p.genres, user_genres) for p in participants)
    return total / len(participants)


def average_instrument_overlap(
    participants: Sequence[Participant],
    user_instruments: Iterable[str],
    compatibility: Optional[InstrumentCompatibility] = None
) -> float:
    if not participants:
        return 0.0
    compatibility = compatibility or InstrumentCompatibility()
    user_instruments = list(user_instruments or [])
    total = sum(
        compatibility.pair_affinity(user_instruments, p.instruments)
        for p in participants
    )
    return total / len(participants)


def history_overlap(participant_event_ids: Iterable[str], user_event_ids: Iterable[str]) -> float:
    """
    sqrt(shared / max(|participant history|, |viewer history|))

    Returns 0.0 when both histories are empty.
    """
    theirs = list(participant_event_ids)
    mine = list(user_event_ids)
    denominator = max(len(theirs), len(mine))
    if denominator == 0:
        return 0.0
    shared = len(set(theirs) & set(mine))
    return math.sqrt(shared / denominator)


async def average_friend_overlap(
    participants: Sequence[Participant],
    user_events: Sequence[UserEvent],
    history_lookup: HistoryLookup,
    max_concurrency: int = 8
) -> Dict[str, float]:
    """
    Average history overlap between the viewer and each attendee.

    Only the attendees' own histories are fetched; their co-attendees are
    not followed. A failed lookup drops that attendee's contribution but
    still counts them in the denominator.

    Args:
        participants: Attendees of the candidate event
        user_events: The viewer's event history
        history_lookup: Async user id -> event history
        max_concurrency: Lookups in flight at once

    Returns:
        Dict with ``score`` and ``failed`` (number of failed lookups)
    """
    if not participants:
        return {"score": 0.0, "failed": 0}

    user_event_ids = [e.event_id for e in user_events]

    async def one(participant: Participant) -> Optional[float]:
        try:
            history = await history_lookup(participant.id)
            return history_overlap([e.event_id for e in history], user_event_ids)
        except Exception as e:
            logger.warning("History overlap failed for participant %s: %s", participant.id, e)
            return None

    results = await bounded_gather((one(p) for p in participants), max_concurrency)

    total = sum(r for r in results if r is not None)
    failed = sum(1 for r in results if r is None)
    return {"score": total / len(participants), "failed": failed}
