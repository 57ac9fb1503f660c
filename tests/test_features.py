# Tests for the tokenizer, TF-IDF index, vectors and cosine similarity.

import math

import numpy as np
import pytest

from gigmatch_recs.features import (
    CorpusError,
    ScoringSession,
    TfIdfIndex,
    Vocabulary,
    build_vector,
    cosine_similarity,
    tokenize,
)
from gigmatch_recs.models import EventDocument


def test_tokenize_empty_and_none():
    assert tokenize("") == []
    assert tokenize(None) == []


def test_tokenize_strips_punctuation_and_lowercases():
    assert tokenize("Guitar, Piano!! 2 jam") == ["guitar", "piano", "2", "jam"]


def test_tokenize_drops_non_ascii_letters():
    assert tokenize("  Café   night ") == ["caf", "night"]


def test_term_frequency_is_length_normalized():
    index = TfIdfIndex()
    doc = "jam jam rock night"
    index.add_document(doc)

    assert index.term_frequency("jam", doc) == pytest.approx(0.5)
    assert index.term_frequency("rock", doc) == pytest.approx(0.25)
    total = sum(index.term_frequency(t, doc) for t in set(tokenize(doc)))
    assert total == pytest.approx(1.0)


def test_document_frequency_counts_once_per_document():
    index = TfIdfIndex()
    index.add_document("jam jam jam")
    index.add_document("jam rock")

    assert index.document_frequency("jam") == 2
    assert index.document_frequency("rock") == 1
    assert index.document_frequency("polka") == 0


def test_idf_rarer_term_scores_higher():
    index = TfIdfIndex()
    index.add_document("alpha beta")
    for i in range(4):
        index.add_document(f"beta filler{i}")
    for i in range(5):
        index.add_document(f"other{i}")

    assert index.total_documents == 10
    assert index.idf("alpha") == pytest.approx(math.log(10 / 2))
    assert index.idf("beta") == pytest.approx(math.log(10 / 6))
    assert index.idf("alpha") > index.idf("beta")


def test_idf_unseen_term_and_single_document_corpus():
    index = TfIdfIndex()
    index.add_document("solo set")

    assert index.idf("unseen") == pytest.approx(math.log(1 / 1))
    # ln(1 / (1 + 1)) is negative and is not floored
    assert index.idf("solo") == pytest.approx(math.log(0.5))
    assert index.calculate_tfidf("solo", "solo set") == pytest.approx(0.5 * math.log(0.5))


def test_calculate_tfidf_absent_term_is_zero():
    index = TfIdfIndex()
    index.add_document("jazz night")
    index.add_document("rock night")

    assert index.calculate_tfidf("rock", "jazz night") == 0.0


def test_vocabulary_keeps_first_seen_order():
    index = TfIdfIndex()
    index.add_document("jazz jam night")
    index.add_document("rock jam show")

    vocabulary = Vocabulary.from_index(index)
    assert vocabulary.terms == ["jazz", "jam", "night", "rock", "show"]
    assert vocabulary.index["rock"] == 3
    assert len(vocabulary) == 5


def _corpus():
    index = TfIdfIndex()
    for doc in [
        "jazz jam night",
        "jazz jam night",
        "rock show downtown",
        "open mic poetry",
        "brass band parade",
    ]:
        index.add_document(doc)
    return index, Vocabulary.from_index(index)


def test_identical_documents_have_similarity_one():
    index, vocabulary = _corpus()
    a = build_vector(0, vocabulary.terms, vocabulary.index, index)
    b = build_vector(1, vocabulary.terms, vocabulary.index, index)

    assert len(a) == len(vocabulary)
    assert cosine_similarity(a, b) == pytest.approx(1.0)


def test_disjoint_documents_have_similarity_zero():
    index, vocabulary = _corpus()
    a = build_vector(0, vocabulary.terms, vocabulary.index, index)
    c = build_vector(2, vocabulary.terms, vocabulary.index, index)

    assert cosine_similarity(a, c) == pytest.approx(0.0)


def test_zero_vector_similarity_is_nan():
    assert math.isnan(cosine_similarity(np.zeros(3), np.array([1.0, 0.0, 0.0])))
    assert math.isnan(cosine_similarity(np.zeros(3), np.zeros(3)))


def test_first_vocabulary_term_never_written_to_vector():
    # Known quirk: vocabulary position 0 is skipped when building vectors.
    index = TfIdfIndex()
    index.add_document("alpha beta")
    index.add_document("gamma")
    index.add_document("delta")
    vocabulary = Vocabulary.from_index(index)

    vector = build_vector(0, vocabulary.terms, vocabulary.index, index)

    assert vocabulary.index["alpha"] == 0
    assert index.calculate_tfidf("alpha", "alpha beta") > 0
    assert vector[0] == 0.0
    assert vector[vocabulary.index["beta"]] == pytest.approx(
        index.calculate_tfidf("beta", "alpha beta")
    )


def test_session_maps_events_to_corpus_positions():
    session = ScoringSession.build([
        EventDocument(id="e1", title="Jazz Night", description="bebop standards"),
        EventDocument(id="e2", title="Rock Show", description="loud guitars"),
    ])

    assert session.event_index == {"e1": 0, "e2": 1}
    assert session.index.total_documents == 2
    assert session.index.document_at(1) == "Rock Show loud guitars"
    assert len(session.vector_for("e2")) == len(session.vocabulary)


def test_session_rejects_missing_description():
    with pytest.raises(CorpusError):
        ScoringSession.build([
            EventDocument(id="e1", title="Jazz Night", description=None),
        ])


def test_session_vector_for_unknown_event_raises():
    session = ScoringSession.build([
        EventDocument(id="e1", title="Jazz Night", description="bebop"),
    ])
    with pytest.raises(KeyError):
        session.vector_for("missing")
