import asyncio

import pytest

from app.services.strategy_locks import StrategyLockRegistry


@pytest.mark.asyncio
async def test_same_strategy_writers_are_serialized():
    locks = StrategyLockRegistry()
    events = []

    async def writer(name: str):
        async with locks.hold(7):
            events.append(f"{name}-start")
            await asyncio.sleep(0.01)
            events.append(f"{name}-end")

    await asyncio.gather(writer("a"), writer("b"))

    assert events in (
        ["a-start", "a-end", "b-start", "b-end"],
        ["b-start", "b-end", "a-start", "a-end"],
    )


@pytest.mark.asyncio
async def test_different_strategies_do_not_block_each_other():
    locks = StrategyLockRegistry()

    async with locks.hold(1):
        assert locks.is_locked(1)
        assert not locks.is_locked(2)
        # would deadlock if strategy 2 shared strategy 1's lock
        await asyncio.wait_for(_enter(locks, 2), timeout=1)

    assert not locks.is_locked(1)


async def _enter(locks: StrategyLockRegistry, strategy_id: int):
    async with locks.hold(strategy_id):
        return True


@pytest.mark.asyncio
async def test_idle_locks_are_released():
    locks = StrategyLockRegistry()
    entered = asyncio.Event()
    release = asyncio.Event()

    async def holder():
        async with locks.hold(3):
            entered.set()
            await release.wait()

    first = asyncio.create_task(holder())
    await entered.wait()
    waiter = asyncio.create_task(_enter(locks, 3))
    await asyncio.sleep(0)

    # held by one writer, awaited by another
    assert len(locks) == 1

    release.set()
    await asyncio.gather(first, waiter)

    assert len(locks) == 0
    assert not locks.is_locked(3)


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_leak_lock():
    locks = StrategyLockRegistry()

    async with locks.hold(5):
        waiter = asyncio.create_task(_enter(locks, 5))
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

    assert len(locks) == 0
