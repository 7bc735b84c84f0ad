import asyncio

import pytest

from quest_src.progression.locks import KeyedLock


@pytest.mark.asyncio
async def test_same_key_runs_one_at_a_time():
    locks = KeyedLock()
    events = []

    async def worker(name):
        async with locks.hold("user-1"):
            events.append(f"{name}:start")
            await asyncio.sleep(0.01)
            events.append(f"{name}:end")

    await asyncio.gather(worker("a"), worker("b"))

    assert events in (
        ["a:start", "a:end", "b:start", "b:end"],
        ["b:start", "b:end", "a:start", "a:end"],
    )


@pytest.mark.asyncio
async def test_different_keys_do_not_block_each_other():
    locks = KeyedLock()
    inside = asyncio.Event()

    async def holder():
        async with locks.hold("user-1"):
            await asyncio.wait_for(inside.wait(), timeout=1)

    async def other():
        async with locks.hold("user-2"):
            inside.set()

    await asyncio.gather(holder(), other())


@pytest.mark.asyncio
async def test_locks_are_released_after_use():
    locks = KeyedLock()
    async with locks.hold("user-1"):
        assert len(locks) == 1
    assert len(locks) == 0
