import asyncio

import pytest
from loguru import logger
from video_job_client.job import Job
from video_job_client.models import ApiResponse


class FakeHttp:
    """Scripted transport keyed by the joined request path.

    Each key maps to a list of responses served in order; the last one
    repeats. A response that is an exception instance is raised instead.
    """

    def __init__(self, get=None, post=None, latency=0.0):
        self.latency = latency
        self.get_responses = {key: list(value) for key, value in (get or {}).items()}
        self.post_responses = {key: list(value) for key, value in (post or {}).items()}
        self.calls = []

    async def get(self, path):
        key = "/".join(path)
        self.calls.append(("GET", key, None))
        if self.latency:
            await asyncio.sleep(self.latency)
        return self._next(self.get_responses, key)

    async def post(self, path, body=None):
        key = "/".join(path)
        self.calls.append(("POST", key, body))
        if self.latency:
            await asyncio.sleep(self.latency)
        return self._next(self.post_responses, key)

    def calls_to(self, method, key):
        return [call for call in self.calls if call[0] == method and call[1] == key]

    @staticmethod
    def _next(responses, key):
        queue = responses[key]
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, BaseException):
            raise item
        return ApiResponse.model_validate(item)


def listen(job):
    """Register listeners on ``job`` and return a future with ("success"|"error", value)"""
    outcome = asyncio.get_running_loop().create_future()
    job.on("success", lambda value: outcome.set_result(("success", value)))
    job.on("error", lambda error: outcome.set_result(("error", error)))
    return outcome


@pytest.fixture
def delays(monkeypatch):
    """Record backoff waits instead of sleeping."""
    recorded = []

    async def record_wait(self, delay):
        recorded.append(delay)

    monkeypatch.setattr(Job, "_wait_before_retry", record_wait)
    return recorded


@pytest.fixture
def log_messages():
    messages = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="DEBUG")
    yield messages
    logger.remove(handler_id)
