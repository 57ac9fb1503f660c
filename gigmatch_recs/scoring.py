"""
Event Scoring Engine
====================

Computes the relevance of one upcoming event for one viewer as the sum of:
1. Text similarity (mean cosine similarity to events the viewer attended)
2. Genre overlap with attendees
3. Instrument compatibility with attendees
4. Friend overlap (shared event history with attendees)

Mathematical Formulation:
-------------------------

Final Score = Σ (w_i × S_i) for each component i

where:
    S_text       = mean over viewer events e of cos(v_event, v_e), NaN excluded
    S_genre      = mean over attendees of |G ∩ G_u| - 0.2 |G △ G_u|
    S_instrument = mean over attendees of mean table affinity of I_u × I
    S_friend     = mean over attendees of sqrt(|H ∩ H_u| / max(|H|, |H_u|))

All weights default to 1.0. Scores are unbounded and only meaningful
relative to each other.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .config import DEFAULT_WEIGHTS, ScoringWeights
from .features import ScoringSession, cosine_similarity
from .models import EventSummary, Participant, UserEvent
from .overlap import (
    HistoryLookup,
    InstrumentCompatibility,
    average_friend_overlap,
    average_genre_overlap,
    average_instrument_overlap,
)

logger = logging.getLogger(__name__)


@dataclass
class ScoreBreakdown:
    """Detailed breakdown of how an event's score was computed."""
    event_id: str
    final_score: float = 0.0

    # Component scores
    text_score: float = 0.0
    genre_score: float = 0.0
    instrument_score: float = 0.0
    friend_score: float = 0.0

    # Additional details for explanation
    matched_genres: List[str] = field(default_factory=list)
    compared_events: int = 0
    participant_count: int = 0
    failed_lookups: int = 0
    failed: bool = False

    def to_dict(self) -> dict:
        return {
            "text_similarity": round(self.text_score, 4),
            "genre_overlap": round(self.genre_score, 4),
            "instrument_overlap": round(self.instrument_score, 4),
            "friend_overlap": round(self.friend_score, 4),
            "participant_count": self.participant_count,
            "failed_lookups": self.failed_lookups,
            "failed": self.failed,
        }


class EventScorer:
    """
    Scores candidate events for a viewer.

    Stateless between calls: all corpus state arrives through the
    ScoringSession argument, so one scorer can serve concurrent requests.
    """

    def __init__(
        self,
        history_lookup: HistoryLookup,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        compatibility: Optional[InstrumentCompatibility] = None,
        max_concurrent_participants: int = 8
    ):
        """
        Initialize the scorer.

        Args:
            history_lookup: Async user id -> event history, used for friend overlap
            weights: Component multipliers
            compatibility: Instrument affinity lookup (defaults to the static table)
            max_concurrent_participants: History lookups in flight per event
        """
        self.history_lookup = history_lookup
        self.weights = weights
        self.compatibility = compatibility or InstrumentCompatibility()
        self.max_concurrent_participants = max_concurrent_participants

    async def score_event(
        self,
        event: EventSummary,
        session: ScoringSession,
        user_events: Sequence[UserEvent],
        user_genres: Sequence[str],
        participants: Sequence[Participant],
        user_instruments: Sequence[str]
    ) -> float:
        """Score one event; 0.0 if scoring fails."""
        breakdown = await self.score_event_breakdown(
            event, session, user_events, user_genres, participants, user_instruments
        )
        return breakdown.final_score

    async def score_event_breakdown(
        self,
        event: EventSummary,
        session: ScoringSession,
        user_events: Sequence[UserEvent],
        user_genres: Sequence[str],
        participants: Sequence[Participant],
        user_instruments: Sequence[str]
    ) -> ScoreBreakdown:
        """
        Score one event and keep the per-component values.

        Never raises on scoring errors: a failure is logged and reported as
        a breakdown with ``failed=True`` and a final score of 0.0.
        """
        breakdown = ScoreBreakdown(event_id=event.id)
        try:
            await self._fill_breakdown(
                breakdown, event, session, user_events,
                user_genres, participants, user_instruments
            )
        except Exception:
            logger.warning("Scoring failed for event %s", event.id, exc_info=True)
            return ScoreBreakdown(event_id=event.id, failed=True)

        logger.debug(
            "Event %s: text=%.4f genre=%.4f instrument=%.4f friend=%.4f final=%.4f",
            event.id,
            breakdown.text_score,
            breakdown.genre_score,
            breakdown.instrument_score,
            breakdown.friend_score,
            breakdown.final_score,
        )
        return breakdown

    async def _fill_breakdown(
        self,
        breakdown: ScoreBreakdown,
        event: EventSummary,
        session: ScoringSession,
        user_events: Sequence[UserEvent],
        user_genres: Sequence[str],
        participants: Sequence[Participant],
        user_instruments: Sequence[str]
    ) -> None:
        participants = list(participants or [])
        user_genres = list(user_genres or [])
        user_instruments = list(user_instruments or [])

        # 1. Text similarity
        breakdown.text_score, breakdown.compared_events = self._compute_text_similarity(
            event, session, user_events
        )

        # 2. Genre overlap
        breakdown.genre_score = average_genre_overlap(participants, user_genres)
        shared = set()
        for p in participants:
            shared.update(set(p.genres or []) & set(user_genres))
        breakdown.matched_genres = [g for g in user_genres if g in shared]

        # 3. Instrument compatibility
        breakdown.instrument_score = average_instrument_overlap(
            participants, user_instruments, self.compatibility
        )

        # 4. Friend overlap
        friend = await average_friend_overlap(
            participants,
            user_events,
            self.history_lookup,
            self.max_concurrent_participants
        )
        breakdown.friend_score = friend["score"]
        breakdown.failed_lookups = friend["failed"]
        breakdown.participant_count = len(participants)

        breakdown.final_score = (
            self.weights.text_similarity * breakdown.text_score +
            self.weights.genre_overlap * breakdown.genre_score +
            self.weights.instrument_overlap * breakdown.instrument_score +
            self.weights.friend_overlap * breakdown.friend_score
        )

    def _compute_text_similarity(
        self,
        event: EventSummary,
        session: ScoringSession,
        user_events: Sequence[UserEvent]
    ) -> tuple:
        """
        Mean cosine similarity between the event and the viewer's events.

        NaN similarities (zero vectors) carry no signal and are left out of
        the mean rather than counted as 0.

        Returns:
            (mean similarity or 0.0, number of similarities averaged)
        """
        if not user_events:
            return 0.0, 0

        event_vector = session.vector_for(event.id)

        similarities = []
        for user_event in user_events:
            if user_event.event_id not in session.event_index:
                logger.debug("Viewer event %s not in corpus, skipping", user_event.event_id)
                continue
            sim = cosine_similarity(event_vector, session.vector_for(user_event.event_id))
            if math.isnan(sim):
                continue
            similarities.append(sim)

        if not similarities:
            return 0.0, 0
        return sum(similarities) / len(similarities), len(similarities)
