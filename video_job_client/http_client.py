import asyncio
from typing import Any, Optional, Sequence, Union

import aiohttp
from loguru import logger
from pydantic import BaseModel, ValidationError

from video_job_client.errors import (
    AuthenticationError,
    InvalidRequestError,
    VideodbError,
)
from video_job_client.models import DEFAULT_BASE_URL, ApiResponse

PathSegments = Sequence[str]

AUTH_STATUS_CODES = {401, 403}
INVALID_REQUEST_STATUS_CODES = {400, 404, 422}


class HttpClient:
    """Thin aiohttp transport for the VideoDB API.

    Paths are passed as segments; the client joins them. Segments that begin
    with ``?`` are appended verbatim as a query suffix, and an absolute URL
    (such as a callback URL returned by the server) is used as-is.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.logger = logger
        self._session: Optional[aiohttp.ClientSession] = None
        self._closed = False

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._closed:
            raise VideodbError("HttpClient is closed")
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"x-access-token": self.api_key},
                timeout=self.timeout,
            )
        return self._session

    async def close(self) -> None:
        self._closed = True
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def build_url(self, path: PathSegments) -> str:
        segments = [str(segment) for segment in path if segment]
        parts = [s.strip("/") for s in segments if not s.startswith("?")]
        query = "".join(s for s in segments if s.startswith("?"))

        joined = "/".join(parts)
        if joined.startswith(("http://", "https://")):
            url = joined
        else:
            url = f"{self.base_url}/{joined}"
        if query:
            url = f"{url}/{query}"
        return url

    async def get(self, path: PathSegments) -> ApiResponse:
        return await self._request("GET", path)

    async def post(
        self, path: PathSegments, body: Union[BaseModel, dict, None] = None
    ) -> ApiResponse:
        if isinstance(body, BaseModel):
            body = body.model_dump(mode="json", exclude_none=True)
        return await self._request("POST", path, body or {})

    async def _request(
        self, method: str, path: PathSegments, body: Optional[dict] = None
    ) -> ApiResponse:
        url = self.build_url(path)
        session = self._get_session()

        try:
            async with session.request(method, url, json=body) as response:
                try:
                    payload: Any = await response.json(content_type=None)
                except ValueError:
                    payload = None

                if response.status >= 400:
                    raise self._error_for(response.status, payload, url)

                if not isinstance(payload, dict):
                    raise VideodbError(f"Malformed response from {url}")
                return ApiResponse.model_validate(payload)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.error(f"{method} {url} failed: {e}")
            raise VideodbError(f"Request to {url} failed", e) from e
        except ValidationError as e:
            raise VideodbError(f"Malformed response from {url}", e) from e

    def _error_for(self, status: int, payload: Any, url: str) -> VideodbError:
        message = None
        if isinstance(payload, dict):
            message = payload.get("message") or payload.get("detail")
        message = message or f"HTTP error {status} at {url}"

        self.logger.error(f"HTTP error {status} at {url}: {message}")
        if status in AUTH_STATUS_CODES:
            return AuthenticationError(message)
        if status in INVALID_REQUEST_STATUS_CODES:
            return InvalidRequestError(message)
        return VideodbError(message)
