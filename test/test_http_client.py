from typing import AsyncGenerator

import pytest
import pytest_asyncio
from aiohttp.test_utils import unused_port
from mock_server import MockVideoServer
from video_job_client.errors import (
    AuthenticationError,
    InvalidRequestError,
    VideodbError,
)
from video_job_client.http_client import HttpClient
from video_job_client.models import UploadConfig

API_KEY = "test-key"


@pytest_asyncio.fixture
async def server() -> AsyncGenerator[MockVideoServer, None]:
    server_instance = MockVideoServer(api_key=API_KEY, completion_time=0.0, error_rate=0.0)
    await server_instance.start(port=unused_port())
    try:
        yield server_instance
    finally:
        await server_instance.stop()


@pytest_asyncio.fixture
async def http(server) -> AsyncGenerator[HttpClient, None]:
    async with HttpClient(API_KEY, base_url=server.base_url) as client:
        yield client


@pytest.mark.parametrize(
    "path, expected",
    [
        (["video", "m-1"], "https://api.test/video/m-1"),
        (
            ["video", "m-1", "transcription", "?force=true"],
            "https://api.test/video/m-1/transcription/?force=true",
        ),
        (["https://cb.test/async-response/1"], "https://cb.test/async-response/1"),
        (["/collection/", "c-1", "upload"], "https://api.test/collection/c-1/upload"),
    ],
)
def test_build_url(path, expected):
    client = HttpClient(API_KEY, base_url="https://api.test/")
    assert client.build_url(path) == expected


@pytest.mark.asyncio
async def test_get_returns_api_response(server, http):
    res = await http.get(["video", "m-video", "transcription", "?force=false"])

    assert res.success is True
    assert res.data["output_url"].startswith(f"{server.base_url}/async-response/")


@pytest.mark.asyncio
async def test_callback_url_is_used_as_is(http):
    res = await http.get(["video", "m-video", "transcription", "?force=false"])

    done = await http.get([res.data["output_url"]])

    assert done.status == "done"
    assert done.response.success is True
    assert done.response.data["text"] == "hello world"


@pytest.mark.asyncio
async def test_post_sends_pydantic_body(server, http):
    res = await http.post(
        ["collection", "c-1", "upload"], UploadConfig(url="https://x/a.mp4", name="a")
    )

    job = next(iter(server.jobs.values()))
    assert "output_url" in res.data
    assert job["upload"] == {"url": "https://x/a.mp4", "name": "a"}


@pytest.mark.asyncio
async def test_bad_api_key_raises_authentication_error(server):
    async with HttpClient("wrong", base_url=server.base_url) as client:
        with pytest.raises(AuthenticationError, match="Invalid API key"):
            await client.get(["video", "m-video", "transcription", "?force=false"])


@pytest.mark.asyncio
async def test_unknown_video_raises_invalid_request(http):
    with pytest.raises(InvalidRequestError, match="Video not found"):
        await http.get(["video", "missing", "transcription", "?force=false"])


@pytest.mark.asyncio
async def test_connection_failure_raises_videodb_error():
    async with HttpClient(API_KEY, base_url=f"http://localhost:{unused_port()}") as client:
        with pytest.raises(VideodbError) as excinfo:
            await client.get(["video", "m-video"])

    assert excinfo.value.cause is not None


@pytest.mark.asyncio
async def test_closed_client_refuses_requests(server):
    client = HttpClient(API_KEY, base_url=server.base_url)
    await client.get(["video", "m-video", "transcription", "?force=false"])
    await client.close()

    with pytest.raises(VideodbError, match="HttpClient is closed"):
        await client.get(["video", "m-video", "transcription", "?force=false"])
    assert client._session is None
