# Tests for the roster parse boundary and record constructors.

import json
from datetime import timezone

import pytest

from gigmatch_recs.models import (
    EventSummary,
    Participant,
    ParticipantParseError,
    UserProfile,
    parse_participant,
    parse_roster,
)


def test_parse_full_mapping():
    p = parse_participant({
        "id": "u1",
        "full_name": "Ada",
        "avatar_url": "/a.png",
        "instruments": ["guitar"],
        "genres": ["rock"],
    })
    assert p == Participant(id="u1", full_name="Ada", avatar_url="/a.png",
                            instruments=["guitar"], genres=["rock"])


def test_parse_json_string():
    raw = json.dumps({"id": "u2", "full_name": "Bo", "avatar_url": "/b.png",
                      "instruments": ["Drums"], "genres": ["Hip Hop", "R&B"]})
    p = parse_participant(raw)
    assert p.id == "u2"
    assert p.instruments == ["drums"]
    assert p.genres == ["hiphop", "rnb"]


def test_parse_partial_mapping_fills_defaults():
    p = parse_participant({"id": "u3", "instruments": "guitar", "genres": ["jazz", 7]})
    assert p.full_name == "User"
    assert p.avatar_url == "/placeholder.svg"
    assert p.instruments == []
    assert p.genres == ["jazz"]


def test_parse_bare_id_string():
    p = parse_participant("user-42")
    assert p == Participant(id="user-42")


@pytest.mark.parametrize("raw", [None, 5, {"full_name": "No Id"}, "", "[1, 2]"])
def test_parse_rejects_unusable_values(raw):
    with pytest.raises(ParticipantParseError):
        parse_participant(raw)


def test_parse_roster_drops_bad_entries():
    roster = parse_roster(["u1", None, {"id": "u2"}, {"name": "x"}])
    assert [p.id for p in roster] == ["u1", "u2"]
    assert parse_roster(None) == []


def test_event_summary_from_record():
    event = EventSummary.from_record({
        "id": "e1",
        "title": "Jazz Night",
        "description": "bebop",
        "start_time": "2024-05-10T20:00:00Z",
        "participants_going": ['{"id": "u1"}'],
        "participants_maybe": ["u2"],
    })
    assert event.start_time.tzinfo == timezone.utc
    assert [p.id for p in event.participants] == ["u1", "u2"]
    assert event.document().text == "Jazz Night bebop"


def test_user_profile_from_record():
    profile = UserProfile.from_record({"genres": ["Jazz"], "instruments": None})
    assert profile.genres == ["jazz"]
    assert profile.instruments == []
    assert UserProfile.from_record(None) == UserProfile()


def test_participant_null_tags_become_empty():
    p = Participant(id="u1", instruments=None, genres=None)
    assert p.instruments == []
    assert p.genres == []
    assert p.to_dict()["genres"] == []
