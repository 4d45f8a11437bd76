"""Tests for progress fan-out"""

import asyncio

from fakes import FakeConnection, drain
from videoai.models.progress import ProgressEvent, ProgressStage
from videoai.services.progress_broadcaster import ProgressBroadcaster


def _event(job_id="job-1", stage=ProgressStage.GENERATING, progress=50):
    return ProgressEvent(job_id=job_id, stage=stage, progress=progress, message="Video generated")


class TestFanOut:

    def test_every_open_subscriber_receives_every_event(self):
        async def scenario():
            broadcaster = ProgressBroadcaster()
            first = await broadcaster.subscribe(FakeConnection())
            second = await broadcaster.subscribe(FakeConnection())
            broadcaster.publish_progress(_event(job_id="job-1"))
            broadcaster.publish_progress(_event(job_id="job-2"))
            return drain(first), drain(second)

        first, second = asyncio.run(scenario())

        assert first == second
        assert [payload["data"]["job_id"] for payload in first] == ["job-1", "job-2"]
        assert first[0] == {
            "type": "progress",
            "data": {
                "job_id": "job-1",
                "stage": "generating",
                "progress": 50,
                "message": "Video generated",
            },
        }

    def test_closed_subscriber_does_not_block_others(self):
        async def scenario():
            broadcaster = ProgressBroadcaster()
            healthy = await broadcaster.subscribe(FakeConnection())
            closed = await broadcaster.subscribe(FakeConnection(open=False))
            broadcaster.publish_completion("job-1", "https://cdn.test/v.mp4", "https://cdn.test/t.jpg")
            return broadcaster, drain(healthy), drain(closed)

        broadcaster, healthy, closed = asyncio.run(scenario())

        assert healthy == [{
            "type": "completed",
            "data": {
                "job_id": "job-1",
                "video_url": "https://cdn.test/v.mp4",
                "thumbnail_url": "https://cdn.test/t.jpg",
            },
        }]
        assert closed == []
        assert broadcaster.subscriber_count == 1

    def test_full_queue_drops_oldest(self):
        async def scenario():
            broadcaster = ProgressBroadcaster(max_queue_size=2)
            subscription = await broadcaster.subscribe(FakeConnection())
            for job_id in ("job-1", "job-2", "job-3"):
                broadcaster.publish_error(job_id, "boom")
            return drain(subscription)

        payloads = asyncio.run(scenario())

        assert [payload["data"]["job_id"] for payload in payloads] == ["job-2", "job-3"]

    def test_late_subscriber_gets_nothing_buffered(self):
        async def scenario():
            broadcaster = ProgressBroadcaster()
            broadcaster.publish_progress(_event())
            subscription = await broadcaster.subscribe(FakeConnection())
            return drain(subscription)

        assert asyncio.run(scenario()) == []

    def test_publish_from_worker_thread(self):
        async def scenario():
            broadcaster = ProgressBroadcaster()
            broadcaster.bind_loop(asyncio.get_running_loop())
            subscription = await broadcaster.subscribe(FakeConnection())
            await asyncio.get_running_loop().run_in_executor(
                None, broadcaster.publish_error, "job-1", "boom"
            )
            return await asyncio.wait_for(subscription.next_payload(), 1)

        payload = asyncio.run(scenario())

        assert payload == {"type": "error", "data": {"job_id": "job-1", "error": "boom"}}

    def test_publish_without_loop_is_skipped(self):
        broadcaster = ProgressBroadcaster()
        broadcaster.publish_error("job-1", "boom")
        assert broadcaster.subscriber_count == 0


class TestSubscriptions:

    def test_unsubscribe_is_idempotent(self):
        async def scenario():
            broadcaster = ProgressBroadcaster()
            connection = FakeConnection()
            subscription = await broadcaster.subscribe(connection)
            first = await broadcaster.unsubscribe(connection)
            second = await broadcaster.unsubscribe(connection)
            return broadcaster, subscription, first, second

        broadcaster, subscription, first, second = asyncio.run(scenario())

        assert first is True
        assert second is False
        assert subscription.closed is True
        assert broadcaster.subscriber_count == 0

    def test_subscribe_twice_reuses_subscription(self):
        async def scenario():
            broadcaster = ProgressBroadcaster()
            connection = FakeConnection()
            return broadcaster, await broadcaster.subscribe(connection), await broadcaster.subscribe(connection)

        broadcaster, first, second = asyncio.run(scenario())

        assert first is second
        assert broadcaster.subscriber_count == 1
