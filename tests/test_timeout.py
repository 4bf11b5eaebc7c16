"""Tests for the pacing delay."""

import asyncio

import pytest

from core.timeout import delay


@pytest.mark.asyncio
async def test_waits_at_least_duration():
    loop = asyncio.get_running_loop()
    started = loop.time()
    await delay(20)
    assert loop.time() - started >= 0.015


@pytest.mark.asyncio
async def test_zero_yields_to_queued_work():
    """A zero delay still lets earlier scheduled callbacks run first."""
    order = []
    asyncio.get_running_loop().call_soon(order.append, 'queued')

    await delay(0)
    order.append('after delay')

    assert order == ['queued', 'after delay']


@pytest.mark.asyncio
async def test_negative_duration_treated_as_zero():
    await asyncio.wait_for(delay(-500), timeout=1)


@pytest.mark.asyncio
async def test_cancellable():
    task = asyncio.create_task(delay(10_000))
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
