# Tests for tag normalization, timestamp parsing and bounded fan-out.

import asyncio
from datetime import datetime, timezone

import pytest

from gigmatch_recs.utils import bounded_gather, normalize_tag, normalize_tags, parse_timestamp


def test_normalize_tag_aliases_and_fallback():
    assert normalize_tag("Hip Hop") == "hiphop"
    assert normalize_tag("DJ") == "dj"
    assert normalize_tag(" Drum and Bass ") == "drumandbass"
    assert normalize_tag("") is None
    assert normalize_tag(3) is None


def test_normalize_tags_dedupes_and_filters():
    assert normalize_tags(["Rock", "rock", None, "R&B"]) == ["rock", "rnb"]
    assert normalize_tags("rock") == []
    assert normalize_tags(None) == []


def test_parse_timestamp():
    assert parse_timestamp("2024-05-10T20:00:00Z") == datetime(2024, 5, 10, 20, tzinfo=timezone.utc)
    assert parse_timestamp("2024-05-10T20:00:00").tzinfo == timezone.utc
    with pytest.raises(ValueError):
        parse_timestamp("next friday")
    with pytest.raises(ValueError):
        parse_timestamp(None)


def test_bounded_gather_keeps_order_and_limit():
    running = 0
    peak = 0

    async def work(i):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01 * (5 - i))
        running -= 1
        return i

    results = asyncio.run(bounded_gather((work(i) for i in range(5)), limit=2))

    assert results == [0, 1, 2, 3, 4]
    assert peak <= 2


def test_bounded_gather_cancels_siblings_on_error():
    finished = []

    async def slow(i):
        await asyncio.sleep(1)
        finished.append(i)
        return i

    async def broken():
        await asyncio.sleep(0)
        raise RuntimeError("boom")

    async def run():
        with pytest.raises(RuntimeError):
            await bounded_gather([slow(0), broken(), slow(2), slow(3)], limit=2)
        # give any leftover task a chance to run
        await asyncio.sleep(1.2)

    asyncio.run(run())

    assert finished == []


def test_bounded_gather_return_exceptions():
    async def ok():
        return 1

    async def broken():
        raise ValueError("bad")

    results = asyncio.run(bounded_gather([ok(), broken()], limit=2, return_exceptions=True))

    assert results[0] == 1
    assert isinstance(results[1], ValueError)
