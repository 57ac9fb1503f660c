# Tests for the in-memory event catalog and profile store.

import asyncio
import json

from gigmatch_recs.catalog import InMemoryEventCatalog, InMemoryProfileStore, load_snapshot
from gigmatch_recs.models import UserProfile
from gigmatch_recs.utils import parse_timestamp

NOW = parse_timestamp("2024-05-01T00:00:00Z")

EVENTS = [
    {
        "id": "past",
        "title": "Spring Jam",
        "description": "open jam in the park",
        "start_time": "2024-04-12T18:00:00Z",
        "participants_going": ['{"id": "u1", "full_name": "Ada", "avatar_url": "/a.png", "instruments": [], "genres": []}'],
        "participants_maybe": [],
    },
    {
        "id": "soon",
        "title": "Jazz Night",
        "description": "bebop standards",
        "start_time": "2024-05-10T20:00:00Z",
        "participants_going": [{"id": "u2"}],
        "participants_maybe": ["u1"],
    },
    {
        "id": "both",
        "title": "Prom",
        "description": "school band",
        "start_time": "2024-05-15T19:00:00Z",
        "participants_going": ["u1"],
        "participants_maybe": ["u1"],
    },
]


def _catalog():
    return InMemoryEventCatalog.from_records(EVENTS, clock=lambda: NOW)


def test_user_history_covers_going_and_maybe_past_and_upcoming():
    history = asyncio.run(_catalog().get_user_events("u1"))

    assert [(e.event_id, e.participation_status, e.is_past) for e in history] == [
        ("past", "going", True),
        ("soon", "maybe", False),
        ("both", "going", False),
    ]


def test_user_history_unknown_user_is_empty():
    assert asyncio.run(_catalog().get_user_events("nobody")) == []


def test_documents_follow_catalog_order():
    docs = asyncio.run(_catalog().list_event_documents())
    assert [d.id for d in docs] == ["past", "soon", "both"]
    assert docs[1].text == "Jazz Night bebop standards"


def test_profile_store_defaults_to_empty_profile():
    store = InMemoryProfileStore.from_records({"u1": {"genres": ["Jazz"], "instruments": ["Piano"]}})

    assert asyncio.run(store.get_profile("u1")) == UserProfile(genres=["jazz"], instruments=["piano"])
    assert asyncio.run(store.get_profile("u9")) == UserProfile()


def test_load_snapshot(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps({"events": EVENTS, "profiles": {"u1": {"genres": ["rock"]}}}))

    catalog, profiles = load_snapshot(str(path), clock=lambda: NOW)

    assert len(catalog.events) == 3
    assert asyncio.run(profiles.get_profile("u1")).genres == ["rock"]
