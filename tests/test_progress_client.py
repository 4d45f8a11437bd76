"""Tests for the progress channel client"""

import asyncio
import json
from types import SimpleNamespace

import aiohttp
import pytest

from videoai.client.progress_client import ProgressClient, ProgressTracker, VideoListCache
from videoai.utils.backoff import ExponentialBackoff


def _progress(job_id, stage, progress):
    return {"type": "progress", "data": {"job_id": job_id, "stage": stage, "progress": progress}}


class TestProgressTracker:

    def test_progress_replaces_previous_entry(self):
        tracker = ProgressTracker()
        assert tracker.apply(_progress("job-1", "enhancing", 25)) is False
        assert tracker.apply(_progress("job-1", "generating", 50)) is False

        assert list(tracker.progress_map) == ["job-1"]
        assert tracker.get("job-1").stage == "generating"
        assert tracker.current_progress.progress == 50

    def test_terminal_stage_removes_entry(self):
        tracker = ProgressTracker()
        tracker.apply(_progress("job-1", "finalizing", 95))
        tracker.apply(_progress("job-1", "completed", 100))

        assert tracker.progress_map == {}
        assert tracker.current_progress is None

    def test_completed_and_error_invalidate(self):
        tracker = ProgressTracker()
        tracker.apply(_progress("job-1", "generating", 50))
        tracker.apply(_progress("job-2", "generating", 50))

        completed = {"type": "completed", "data": {
            "job_id": "job-1", "video_url": "https://cdn.test/v.mp4", "thumbnail_url": "https://cdn.test/t.jpg",
        }}
        error = {"type": "error", "data": {"job_id": "job-2", "error": "quota exceeded"}}

        assert tracker.apply(completed) is True
        assert tracker.apply(error) is True
        assert tracker.progress_map == {}

    def test_unknown_messages_ignored(self):
        tracker = ProgressTracker()
        assert tracker.apply({"type": "pong"}) is False
        assert tracker.progress_map == {}


class _FakeWebSocket:
    def __init__(self, messages):
        self._messages = list(messages)
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._messages:
            self.closed = True
            raise StopAsyncIteration
        return SimpleNamespace(type=aiohttp.WSMsgType.TEXT, data=self._messages.pop(0))

    async def close(self):
        self.closed = True


class _FakeConnect:
    def __init__(self, outcome):
        self._outcome = outcome

    async def __aenter__(self):
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return self._outcome

    async def __aexit__(self, *exc_info):
        return False


class _FakeSession:
    """Plays back one outcome per connection attempt; fails once exhausted."""

    def __init__(self, outcomes):
        self._outcomes = list(outcomes)
        self.attempts = 0

    def ws_connect(self, url, headers=None):
        self.attempts += 1
        if self._outcomes:
            return _FakeConnect(self._outcomes.pop(0))
        return _FakeConnect(aiohttp.ClientConnectionError("refused"))


class TestProgressClient:

    def test_reconnect_delays_follow_backoff_and_reset_on_open(self):
        refused = aiohttp.ClientConnectionError("refused")
        completed = json.dumps({"type": "completed", "data": {
            "job_id": "job-1", "video_url": "https://cdn.test/v.mp4", "thumbnail_url": "https://cdn.test/t.jpg",
        }})
        messages = [json.dumps(_progress("job-1", "generating", 50)), completed]
        session = _FakeSession([refused, refused, refused, _FakeWebSocket(messages)])

        delays = []
        connected_during_invalidate = []

        async def scenario():
            client = None

            async def sleep(delay):
                delays.append(delay)
                if len(delays) == 5:
                    await client.close()

            def invalidate():
                connected_during_invalidate.append(client.is_connected)

            client = ProgressClient(
                "ws://server.test/ws/progress",
                on_invalidate=invalidate,
                backoff=ExponentialBackoff(seed=1.0),
                session=session,
                sleep=sleep,
            )
            await client.run()
            return client

        client = asyncio.run(scenario())

        assert delays == [1, 2, 4, 1, 2]
        assert connected_during_invalidate == [True]
        assert client.progress_map == {}
        assert client.is_connected is False

    def test_close_cancels_pending_reconnect(self):
        async def scenario():
            session = _FakeSession([])
            client = ProgressClient(
                "ws://server.test/ws/progress",
                backoff=ExponentialBackoff(seed=60.0),
                session=session,
            )
            task = client.start()
            await asyncio.sleep(0.01)
            await asyncio.wait_for(client.close(), 1)
            return task, session

        task, session = asyncio.run(scenario())

        assert task.done()
        assert session.attempts == 1

    def test_close_cancels_reconnect_when_run_awaited_directly(self):
        async def scenario():
            session = _FakeSession([])
            client = ProgressClient(
                "ws://server.test/ws/progress",
                backoff=ExponentialBackoff(seed=60.0),
                session=session,
            )
            task = asyncio.create_task(client.run())
            await asyncio.sleep(0.01)
            await asyncio.wait_for(client.close(), 1)
            return task, session

        task, session = asyncio.run(scenario())

        assert task.done()
        assert session.attempts == 1

    @pytest.mark.parametrize("error", [
        KeyError("title"),
        aiohttp.ClientConnectionError("503 Service Unavailable"),
    ])
    def test_failed_refresh_keeps_connection(self, error):
        completed = json.dumps({"type": "completed", "data": {
            "job_id": "job-1", "video_url": "https://cdn.test/v.mp4", "thumbnail_url": "https://cdn.test/t.jpg",
        }})
        later = json.dumps(_progress("job-2", "generating", 50))
        session = _FakeSession([_FakeWebSocket([completed, later]), _FakeWebSocket([])])

        delays = []
        refreshes = []

        async def scenario():
            client = None

            async def sleep(delay):
                delays.append(delay)
                if len(delays) == 3:
                    await client.close()

            def refresh():
                refreshes.append("refresh")
                raise error

            client = ProgressClient(
                "ws://server.test/ws/progress",
                on_invalidate=refresh,
                session=session,
                sleep=sleep,
            )
            await client.run()
            return client

        client = asyncio.run(scenario())

        assert refreshes == ["refresh"]
        assert list(client.progress_map) == ["job-2"]
        assert delays == [1, 1, 2]
        assert session.attempts == 3

    def test_malformed_message_is_ignored(self):
        calls = []

        async def scenario():
            client = ProgressClient("ws://server.test/ws/progress", on_invalidate=lambda: calls.append(1))
            await client.handle_message("not json")
            await client.handle_message(json.dumps([1, 2]))
            await client.handle_message(json.dumps({"type": "progress", "data": {"job_id": "job-1"}}))
            return client

        client = asyncio.run(scenario())

        assert calls == []
        assert client.progress_map == {}

    def test_async_invalidate_callback_is_awaited(self):
        calls = []

        async def refresh():
            calls.append("refreshed")

        async def scenario():
            client = ProgressClient("ws://server.test/ws/progress", on_invalidate=refresh)
            await client.handle_message(json.dumps({"type": "error", "data": {"job_id": "job-1", "error": "boom"}}))

        asyncio.run(scenario())

        assert calls == ["refreshed"]


class _FakeResponse:
    def __init__(self, payload):
        self._payload = payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    def raise_for_status(self):
        pass

    async def json(self):
        return self._payload


class _ListSession:
    def __init__(self):
        self.requests = []

    def get(self, url, headers=None):
        self.requests.append((url, headers))
        return _FakeResponse([{"id": f"video-{len(self.requests)}"}])


class TestVideoListCache:

    def test_fetches_once_until_invalidated(self):
        session = _ListSession()
        cache = VideoListCache("http://server.test/", session, headers={"X-User-Id": "owner-1"})

        async def scenario():
            first = await cache.get()
            second = await cache.get()
            cache.invalidate()
            third = await cache.get()
            return first, second, third

        first, second, third = asyncio.run(scenario())

        assert first == second == [{"id": "video-1"}]
        assert third == [{"id": "video-2"}]
        assert session.requests[0] == ("http://server.test/api/videos", {"X-User-Id": "owner-1"})


@pytest.mark.parametrize("base_url, expected", [
    ("http://localhost:8000", "ws://localhost:8000/ws/progress"),
    ("https://videos.test/", "wss://videos.test/ws/progress"),
])
def test_cli_derives_channel_url(base_url, expected):
    from videoai.client.__main__ import _ws_url
    assert _ws_url(base_url) == expected
