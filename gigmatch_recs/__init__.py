"""
GigMatch Recs - Event Recommendations for Musicians
===================================================

Ranks upcoming jam sessions and gigs for a musician by combining text
similarity to events they already joined with genre, instrument and
social overlap with the people attending.

Modules:
    - config: Configuration and constants
    - models: Event, participant and profile records
    - features: Tokenizer, TF-IDF index, vectors and cosine similarity
    - overlap: Per-attendee genre, instrument and friend overlap
    - scoring: Event scoring engine
    - catalog: Event catalog and profile store collaborators
    - recommender: Main recommendation orchestrator
    - cli: Command-line interface
"""

__version__ = "1.0.0"
__author__ = "GigMatch Team"
