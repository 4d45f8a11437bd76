"""Tests for the supervised job task pool"""

import asyncio

import pytest

from videoai.services.task_pool import JobTaskPool


class TestJobTaskPool:

    def test_unbounded_pool_runs_jobs_concurrently(self):
        async def scenario():
            pool = JobTaskPool()
            state = {"active": 0, "peak": 0}

            async def work():
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
                await asyncio.sleep(0.01)
                state["active"] -= 1

            for index in range(3):
                pool.spawn(f"job-{index}", work())
            await pool.join()
            return state["peak"]

        assert asyncio.run(scenario()) == 3

    def test_bounded_pool_limits_concurrency(self):
        async def scenario():
            pool = JobTaskPool(max_concurrency=1)
            state = {"active": 0, "peak": 0, "done": 0}

            async def work():
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
                await asyncio.sleep(0.01)
                state["active"] -= 1
                state["done"] += 1

            for index in range(3):
                pool.spawn(f"job-{index}", work())
            stats = pool.stats()
            await pool.join()
            return state, stats

        state, stats = asyncio.run(scenario())

        assert state["peak"] == 1
        assert state["done"] == 3
        assert stats["waiting"] == 3
        assert stats["max_concurrency"] == 1

    def test_job_error_is_contained(self):
        async def scenario():
            pool = JobTaskPool()
            finished = []

            async def broken():
                raise RuntimeError("boom")

            async def healthy():
                finished.append("ok")

            pool.spawn("job-broken", broken())
            pool.spawn("job-healthy", healthy())
            await pool.join()
            return finished, pool.stats()

        finished, stats = asyncio.run(scenario())

        assert finished == ["ok"]
        assert stats["active"] == 0
        assert stats["running"] is True

    def test_stop_cancels_jobs_and_rejects_new_ones(self):
        async def scenario():
            pool = JobTaskPool()
            cancelled = []

            async def forever():
                try:
                    await asyncio.sleep(3600)
                except asyncio.CancelledError:
                    cancelled.append(True)
                    raise

            async def never():
                pass

            pool.spawn("job-1", forever())
            await asyncio.sleep(0)
            await pool.stop()

            with pytest.raises(RuntimeError):
                pool.spawn("job-2", never())
            return cancelled, pool.stats()

        cancelled, stats = asyncio.run(scenario())

        assert cancelled == [True]
        assert stats["running"] is False
