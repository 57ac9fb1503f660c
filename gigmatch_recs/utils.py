"""
Utility Functions
=================

Common utilities used across the GigMatch Recs system.
"""

import asyncio
import re
from datetime import datetime, timezone
from typing import Any, Awaitable, Iterable, List, Optional

from .config import TAG_ALIASES

_WHITESPACE = re.compile(r"\s+")


def normalize_tag(tag: Any) -> Optional[str]:
    """
    Map a genre or instrument tag to its canonical id.

    Known display names ("Hip Hop", "R&B") resolve through the alias table;
    anything else is lower-cased with whitespace removed.

    Args:
        tag: Raw tag value from a profile or roster snapshot

    Returns:
        Canonical tag id, or None if the value is not a usable string
    """
    if not isinstance(tag, str):
        return None

    cleaned = tag.strip().lower()
    if not cleaned:
        return None

    if cleaned in TAG_ALIASES:
        return TAG_ALIASES[cleaned]

    return _WHITESPACE.sub("", cleaned)


def normalize_tags(tags: Any) -> List[str]:
    """Canonicalize a tag list, dropping unusable values and duplicates."""
    if not isinstance(tags, (list, tuple)):
        return []

    result = []
    seen = set()
    for tag in tags:
        canonical = normalize_tag(tag)
        if canonical and canonical not in seen:
            seen.add(canonical)
            result.append(canonical)
    return result


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    Accepts a trailing ``Z``. Naive values are treated as UTC.

    Raises:
        ValueError: If the value is not a datetime or ISO-8601 string
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported timestamp value: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


async def bounded_gather(
    coroutines: Iterable[Awaitable[Any]],
    limit: int,
    return_exceptions: bool = False
) -> List[Any]:
    """
    Run awaitables concurrently with at most ``limit`` in flight.

    Results come back in input order, like ``asyncio.gather``. Unlike
    ``asyncio.gather``, when one awaitable raises the others are cancelled
    and awaited before the error propagates.

    Args:
        coroutines: Awaitables to run
        limit: Maximum number running at once
        return_exceptions: Return raised exceptions in place of results

    Returns:
        List of results
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def run(coro: Awaitable[Any]) -> Any:
        try:
            async with semaphore:
                return await coro
        finally:
            # Cancelled while queued: the coroutine never started
            if asyncio.iscoroutine(coro):
                coro.close()

    tasks = [asyncio.ensure_future(run(c)) for c in coroutines]
    try:
        return await asyncio.gather(*tasks, return_exceptions=return_exceptions)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
