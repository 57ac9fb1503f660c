"""
Main Recommendation Engine
==========================

Orchestrates one ranking request:
1. Fetch every visible event, the viewer's profile and history
2. Build the TF-IDF scoring session over all events
3. Score each upcoming event concurrently
4. Sort by score (descending, stable)
5. Attach explanations and return formatted output

Scoring state lives only for the duration of one request.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .catalog import EventCatalog, ProfileStore
from .config import (
    DEFAULT_ENGINE_CONFIG,
    DEFAULT_WEIGHTS,
    EngineConfig,
    GENRE_NAMES,
    ScoringWeights,
)
from .features import ScoringSession
from .models import EventSummary, UserProfile, UserEvent
from .scoring import EventScorer, ScoreBreakdown
from .utils import bounded_gather

logger = logging.getLogger(__name__)


@dataclass
class RecommendationResult:
    """Single event recommendation with explanation."""
    event_id: str
    title: str
    start_time: datetime
    score: float
    explanation: str

    # Optional detailed breakdown
    breakdown: Optional[Dict] = None


@dataclass
class RecommendationOutput:
    """Complete ranking for one viewer."""
    user_id: str
    upcoming_count: int
    recommendations: List[RecommendationResult]

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "user_id": self.user_id,
            "upcoming_count": self.upcoming_count,
            "recommendations": [
                {
                    "event_id": r.event_id,
                    "title": r.title,
                    "start_time": r.start_time.isoformat(),
                    "score": round(r.score, 4),
                    "explanation": r.explanation,
                    "breakdown": r.breakdown,
                }
                for r in self.recommendations
            ]
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


class RecommendationEngine:
    """
    Ranks upcoming events for a viewer.

    Usage:
        engine = RecommendationEngine(catalog, profiles)
        result = await engine.recommend("user-1")
        print(result.to_json())
    """

    def __init__(
        self,
        catalog: EventCatalog,
        profiles: ProfileStore,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG
    ):
        """
        Initialize recommendation engine.

        Args:
            catalog: Source of events and user histories
            profiles: Source of viewer tags
            weights: Score component multipliers
            config: Concurrency limits
        """
        self.catalog = catalog
        self.profiles = profiles
        self.config = config
        self.scorer = EventScorer(
            catalog.get_user_events,
            weights=weights,
            max_concurrent_participants=config.max_concurrent_participants,
        )

    async def recommend(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        n_recommendations: Optional[int] = None
    ) -> RecommendationOutput:
        """
        Rank every upcoming event for a viewer.

        Args:
            user_id: Viewer id
            now: Reference time separating past from upcoming (defaults to UTC now)
            n_recommendations: Keep only the top N (all when None)

        Returns:
            RecommendationOutput sorted by descending score

        A viewer whose profile or history cannot be read is ranked as a
        viewer with no tags and no history.

        Raises:
            CorpusError: If an event lacks a title or description
        """
        now = now or datetime.now(timezone.utc)

        documents, summaries, profile, user_events = await asyncio.gather(
            self.catalog.list_event_documents(),
            self.catalog.list_event_summaries(),
            self._viewer_profile(user_id),
            self._viewer_history(user_id),
        )

        session = ScoringSession.build(documents)

        upcoming = [e for e in summaries if e.is_upcoming(now)]
        logger.info(
            "Ranking %d upcoming events for user %s (history: %d events)",
            len(upcoming),
            user_id,
            len(user_events)
        )

        breakdowns = await bounded_gather(
            (
                self._score(event, session, profile, user_events)
                for event in upcoming
            ),
            self.config.max_concurrent_events
        )

        # sorted() is stable, ties keep catalog order
        ranked = sorted(
            zip(upcoming, breakdowns),
            key=lambda pair: pair[1].final_score,
            reverse=True
        )
        if n_recommendations is not None:
            ranked = ranked[:n_recommendations]

        failed = sum(1 for _, b in ranked if b.failed)
        if failed:
            logger.warning("%d events could not be scored and were ranked at 0", failed)

        recommendations = [
            RecommendationResult(
                event_id=event.id,
                title=event.title,
                start_time=event.start_time,
                score=breakdown.final_score,
                explanation=self._generate_explanation(breakdown),
                breakdown=breakdown.to_dict(),
            )
            for event, breakdown in ranked
        ]

        return RecommendationOutput(
            user_id=user_id,
            upcoming_count=len(upcoming),
            recommendations=recommendations
        )

    def recommend_sync(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        n_recommendations: Optional[int] = None
    ) -> RecommendationOutput:
        """Synchronous wrapper around recommend()."""
        return asyncio.run(self.recommend(user_id, now, n_recommendations))

    async def _viewer_profile(self, user_id: str) -> UserProfile:
        try:
            return await self.profiles.get_profile(user_id)
        except Exception:
            logger.warning("Profile lookup failed for user %s, using empty profile", user_id, exc_info=True)
            return UserProfile()

    async def _viewer_history(self, user_id: str) -> List[UserEvent]:
        try:
            return list(await self.catalog.get_user_events(user_id))
        except Exception:
            logger.warning("History lookup failed for user %s, using empty history", user_id, exc_info=True)
            return []

    async def _score(
        self,
        event: EventSummary,
        session: ScoringSession,
        profile: UserProfile,
        user_events: List[UserEvent]
    ) -> ScoreBreakdown:
        return await self.scorer.score_event_breakdown(
            event,
            session,
            user_events,
            profile.genres,
            event.participants,
            profile.instruments,
        )

    def _generate_explanation(self, breakdown: ScoreBreakdown) -> str:
        """
        Generate a short human-readable reason for a recommendation.

        Args:
            breakdown: Score breakdown of the event

        Returns:
            Explanation string
        """
        if breakdown.failed:
            return "Upcoming event"

        parts = []

        # Text similarity
        if breakdown.text_score > 0.5:
            parts.append("Very similar to events you've joined")
        elif breakdown.text_score > 0.1:
            parts.append("Similar to events you've joined")

        # Genre overlap
        if breakdown.matched_genres:
            names = [GENRE_NAMES.get(g, g) for g in breakdown.matched_genres]
            if len(names) > 2:
                genres_str = ", ".join(names[:2]) + f" +{len(names) - 2} more"
            else:
                genres_str = ", ".join(names)
            parts.append(f"Attendees into {genres_str}")

        # Instrument compatibility
        if breakdown.instrument_score >= 0.7:
            parts.append("Players who fit your instruments")

        # Friend overlap
        if breakdown.friend_score > 0:
            parts.append("People you've played with before")

        # Fallback
        if not parts:
            parts.append("Upcoming event")

        return "; ".join(parts)
