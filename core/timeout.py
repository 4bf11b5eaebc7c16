"""Pacing delay used between the steps of an operation sequence."""

import asyncio


async def delay(duration_ms: float) -> None:
    """Wait at least duration_ms milliseconds.

    A zero (or negative) duration still yields to the event loop, so work that
    was queued earlier runs first.
    """
    await asyncio.sleep(max(duration_ms, 0) / 1000)
