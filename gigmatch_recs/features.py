"""
Text Feature Module
===================

Bag-of-words text features for event similarity.

Pipeline:
    1. Tokenize title + description of every visible event
    2. Build a TF-IDF index over that corpus
    3. Derive a shared vocabulary (term -> vector position)
    4. Project events into fixed-length TF-IDF vectors
    5. Compare vectors with cosine similarity

Mathematical Formulation:
-------------------------

    tf(t, d)  = count(t, d) / |tokens(d)|
    idf(t)    = ln(N / (1 + df(t)))
    w(t, d)   = tf(t, d) * idf(t)
    cos(a, b) = a . b / (|a| |b|)

idf is not floored: a term present in every document gets a negative
weight, and a single-document corpus gives ln(0.5) for its own terms.
"""

import logging
import math
import re
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import numpy as np

from .models import EventDocument

logger = logging.getLogger(__name__)

_NON_TOKEN_CHARS = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


class CorpusError(ValueError):
    """Raised when an event cannot be added to the TF-IDF corpus."""


def tokenize(text: Optional[str]) -> List[str]:
    """
    Split free text into lower-case ASCII word tokens.

    Punctuation and non-ASCII characters are removed before splitting on
    whitespace. No stemming, no stopwords.
    """
    if not text:
        return []
    cleaned = _NON_TOKEN_CHARS.sub("", text.lower())
    return [token for token in _WHITESPACE.split(cleaned) if token]


class TfIdfIndex:
    """
    TF-IDF statistics over a growing corpus of documents.

    Term frequencies are stored per exact document string and are
    length-normalized; document frequency counts each term once per
    document.
    """

    def __init__(self):
        self._documents: List[str] = []
        self._term_frequencies: Dict[str, Dict[str, float]] = {}
        self._document_frequency: Counter = Counter()

    @property
    def total_documents(self) -> int:
        return len(self._documents)

    @property
    def documents(self) -> List[str]:
        """Documents in the order they were added."""
        return list(self._documents)

    def add_document(self, text: str) -> int:
        """
        Add a document to the corpus.

        Args:
            text: Document text

        Returns:
            Position of the document in the corpus
        """
        tokens = tokenize(text)
        counts = Counter(tokens)
        total = len(tokens)

        self._term_frequencies[text] = {
            term: count / total for term, count in counts.items()
        }
        self._document_frequency.update(counts.keys())
        self._documents.append(text)

        return len(self._documents) - 1

    def document_at(self, position: int) -> str:
        return self._documents[position]

    def term_frequency(self, term: str, document: str) -> float:
        return self._term_frequencies.get(document, {}).get(term, 0.0)

    def document_frequency(self, term: str) -> int:
        return self._document_frequency.get(term, 0)

    def idf(self, term: str) -> float:
        return math.log(self.total_documents / (1 + self.document_frequency(term)))

    def calculate_tfidf(self, term: str, document: str) -> float:
        """TF-IDF weight of ``term`` in ``document``; 0 if the term is absent."""
        tf = self.term_frequency(term, document)
        if tf == 0.0:
            return 0.0
        return tf * self.idf(term)

    def terms(self) -> Iterable[str]:
        """Distinct terms in first-seen corpus order."""
        seen = set()
        for document in self._documents:
            for term in tokenize(document):
                if term not in seen:
                    seen.add(term)
                    yield term


@dataclass(frozen=True)
class Vocabulary:
    """Ordered distinct corpus terms with a term -> position lookup."""
    terms: List[str]
    index: Dict[str, int]

    def __len__(self) -> int:
        return len(self.terms)

    @classmethod
    def from_index(cls, tfidf_index: TfIdfIndex) -> "Vocabulary":
        terms = list(tfidf_index.terms())
        return cls(terms=terms, index={term: i for i, term in enumerate(terms)})


def build_vector(
    document_index: int,
    vocabulary: List[str],
    vocabulary_index: Dict[str, int],
    tfidf_index: TfIdfIndex
) -> np.ndarray:
    """
    Build the TF-IDF vector of one corpus document.

    Known quirk: the term at vocabulary position 0 is never written, so it
    never contributes to any vector. Kept for score compatibility with the
    existing rankings.

    Args:
        document_index: Position of the document in the corpus
        vocabulary: Ordered vocabulary terms
        vocabulary_index: Term -> vector position
        tfidf_index: Index the vocabulary was built from

    Returns:
        Vector of length ``len(vocabulary)``
    """
    document = tfidf_index.document_at(document_index)
    vector = np.zeros(len(vocabulary))

    for token in tokenize(document):
        position = vocabulary_index.get(token)
        if not position:
            continue
        vector[position] = tfidf_index.calculate_tfidf(token, document)

    return vector


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """
    Cosine similarity of two vectors built from the same vocabulary.

    Returns NaN when either vector is all zeros.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)

    with np.errstate(divide="ignore", invalid="ignore"):
        similarity = np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b))

    return float(similarity)


@dataclass(frozen=True)
class ScoringSession:
    """
    Read-only text state for one ranking request.

    Built once from every visible event, then shared by all event scores
    of that request. Never reused across requests.
    """
    index: TfIdfIndex
    vocabulary: Vocabulary
    event_index: Dict[str, int]

    @classmethod
    def build(cls, documents: Iterable[EventDocument]) -> "ScoringSession":
        """
        Build the corpus, vocabulary and event position map.

        Args:
            documents: Every visible event, past and upcoming

        Raises:
            CorpusError: If an event has no title or description
        """
        tfidf_index = TfIdfIndex()
        event_index: Dict[str, int] = {}

        for doc in documents:
            if doc.title is None or doc.description is None:
                raise CorpusError(f"Event {doc.id} is missing a title or description")
            event_index[doc.id] = tfidf_index.add_document(doc.text)

        vocabulary = Vocabulary.from_index(tfidf_index)
        logger.info(
            "Built scoring session: %d documents, %d terms",
            tfidf_index.total_documents,
            len(vocabulary)
        )
        return cls(index=tfidf_index, vocabulary=vocabulary, event_index=event_index)

    def vector_for(self, event_id: str) -> np.ndarray:
        """
        TF-IDF vector of a corpus event.

        Raises:
            KeyError: If the event is not part of this session's corpus
        """
        return build_vector(
            self.event_index[event_id],
            self.vocabulary.terms,
            self.vocabulary.index,
            self.index
        )
