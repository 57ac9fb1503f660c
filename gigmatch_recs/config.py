"""
Configuration and constants for the GigMatch Recs event ranking engine.
"""
import os
from dataclasses import dataclass, field
from typing import Dict

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
LOG_LEVEL = os.environ.get("GIGMATCH_LOG_LEVEL", "INFO").upper()

# =============================================================================
# INSTRUMENT COMPATIBILITY TABLE
# =============================================================================
# Affinity in [0, 1] between the viewer's instrument (outer key) and another
# attendee's instrument (inner key). Hand-authored; mostly symmetric, with a
# few deliberate differences where one side benefits more from the pairing.
INSTRUMENT_COMPATIBILITY: Dict[str, Dict[str, float]] = {
    "guitar": {
        "guitar": 0.6, "piano": 0.8, "drums": 0.95, "saxophone": 0.7,
        "trumpet": 0.65, "violin": 0.7, "vocals": 0.9, "dj": 0.4,
    },
    "piano": {
        "guitar": 0.8, "piano": 0.5, "drums": 0.85, "saxophone": 0.9,
        "trumpet": 0.85, "violin": 0.9, "vocals": 0.95, "dj": 0.5,
    },
    "drums": {
        "guitar": 0.95, "piano": 0.85, "drums": 0.3, "saxophone": 0.8,
        "trumpet": 0.8, "violin": 0.5, "vocals": 0.85, "dj": 0.7,
    },
    "saxophone": {
        "guitar": 0.7, "piano": 0.9, "drums": 0.8, "saxophone": 0.6,
        "trumpet": 0.85, "violin": 0.55, "vocals": 0.75, "dj": 0.6,
    },
    "trumpet": {
        "guitar": 0.65, "piano": 0.85, "drums": 0.8, "saxophone": 0.85,
        "trumpet": 0.6, "violin": 0.5, "vocals": 0.7, "dj": 0.55,
    },
    "violin": {
        "guitar": 0.7, "piano": 0.9, "drums": 0.5, "saxophone": 0.55,
        "trumpet": 0.5, "violin": 0.7, "vocals": 0.8, "dj": 0.35,
    },
    "vocals": {
        "guitar": 0.9, "piano": 0.95, "drums": 0.8, "saxophone": 0.75,
        "trumpet": 0.7, "violin": 0.8, "vocals": 0.65, "dj": 0.7,
    },
    "dj": {
        "guitar": 0.45, "piano": 0.5, "drums": 0.75, "saxophone": 0.6,
        "trumpet": 0.55, "violin": 0.35, "vocals": 0.8, "dj": 0.4,
    },
}

# =============================================================================
# OVERLAP PARAMETERS
# =============================================================================
# Penalty per genre held by only one side of a viewer/attendee pair
GENRE_MISMATCH_PENALTY = 0.2

# =============================================================================
# SCORING WEIGHTS
# =============================================================================
@dataclass
class ScoringWeights:
    """Multipliers for each score component. All 1.0 means a plain sum."""
    text_similarity: float = 1.0
    genre_overlap: float = 1.0
    instrument_overlap: float = 1.0
    friend_overlap: float = 1.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "text_similarity": self.text_similarity,
            "genre_overlap": self.genre_overlap,
            "instrument_overlap": self.instrument_overlap,
            "friend_overlap": self.friend_overlap,
        }

DEFAULT_WEIGHTS = ScoringWeights()

# =============================================================================
# CONCURRENCY CONFIGURATION
# =============================================================================
def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return max(1, int(value))
    except ValueError:
        return default


@dataclass
class EngineConfig:
    """Fan-out limits for a single ranking request."""
    # Events scored at the same time
    max_concurrent_events: int = field(
        default_factory=lambda: _env_int("GIGMATCH_MAX_CONCURRENT_EVENTS", 16)
    )

    # Participant history lookups in flight per event
    max_concurrent_participants: int = field(
        default_factory=lambda: _env_int("GIGMATCH_MAX_CONCURRENT_PARTICIPANTS", 8)
    )

DEFAULT_ENGINE_CONFIG = EngineConfig()

# =============================================================================
# OUTPUT CONFIGURATION
# =============================================================================
NUM_RECOMMENDATIONS = 10
OUTPUT_FORMAT = "json"  # json, csv or simple

# =============================================================================
# TAG VOCABULARY (display names used by the app's profile pickers)
# =============================================================================
INSTRUMENT_NAMES = {
    "guitar": "Guitar",
    "piano": "Piano",
    "drums": "Drums",
    "bass": "Bass",
    "violin": "Violin",
    "vocals": "Vocals",
    "saxophone": "Saxophone",
    "trumpet": "Trumpet",
    "dj": "DJ",
}

GENRE_NAMES = {
    "rock": "Rock",
    "jazz": "Jazz",
    "pop": "Pop",
    "hiphop": "Hip Hop",
    "rnb": "R&B",
    "electronic": "Electronic",
    "classical": "Classical",
    "country": "Country",
    "reggae": "Reggae",
}

# Flatten for quick lookup (display name, lower-cased -> canonical id)
TAG_ALIASES = {}
for tag_id, name in {**INSTRUMENT_NAMES, **GENRE_NAMES}.items():
    TAG_ALIASES[name.lower()] = tag_id
