"""Per-key lock serialization and cleanup."""

import asyncio

from zerolag.locks import KeyedLock


class TestKeyedLock:
    async def test_same_key_is_serialized(self):
        locks = KeyedLock()
        order: list[str] = []

        async def worker(name: str) -> None:
            async with locks.hold("task:1"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))
        # No interleaving: each worker leaves before the next enters.
        assert order in (
            ["a-in", "a-out", "b-in", "b-out"],
            ["b-in", "b-out", "a-in", "a-out"],
        )

    async def test_different_keys_do_not_block(self):
        locks = KeyedLock()
        entered = asyncio.Event()

        async def holder() -> None:
            async with locks.hold("a"):
                await entered.wait()

        task = asyncio.create_task(holder())
        await asyncio.sleep(0)
        async with locks.hold("b"):
            entered.set()
        await asyncio.wait_for(task, timeout=1)

    async def test_locks_are_released_after_use(self):
        locks = KeyedLock()
        async with locks.hold("a"):
            assert len(locks) == 1
        assert len(locks) == 0

    async def test_lock_released_on_error(self):
        locks = KeyedLock()
        try:
            async with locks.hold("a"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert len(locks) == 0
        async with locks.hold("a"):
            pass

    async def test_hold_many_opposite_orders_do_not_deadlock(self):
        locks = KeyedLock()

        async def worker(*keys: str) -> None:
            async with locks.hold_many(*keys):
                await asyncio.sleep(0.01)

        await asyncio.wait_for(asyncio.gather(worker("a", "b"), worker("b", "a")), timeout=1)
        assert len(locks) == 0

    async def test_hold_many_ignores_duplicate_keys(self):
        locks = KeyedLock()
        async with locks.hold_many("a", "a", "b"):
            assert len(locks) == 2
        assert len(locks) == 0
