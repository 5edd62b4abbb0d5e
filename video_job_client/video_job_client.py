import os
from typing import Optional

from loguru import logger
from video_job_client.errors import AuthenticationError
from video_job_client.http_client import HttpClient
from video_job_client.job import IndexJob, TranscriptJob, UploadJob
from video_job_client.models import (
    DEFAULT_BASE_URL,
    BackoffConfig,
    IndexType,
    UploadConfig,
)

API_KEY_ENV = "VIDEO_DB_API_KEY"


class VideoJobClient:
    """Entry point that builds jobs sharing one HttpClient.

    Jobs come back un-started so listeners can be registered first.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        config: Optional[BackoffConfig] = None,
        timeout: float = 30.0,
    ):
        api_key = api_key or os.environ.get(API_KEY_ENV)
        if not api_key:
            raise AuthenticationError(
                f"No API key provided; pass api_key or set {API_KEY_ENV}"
            )
        self.config = config or BackoffConfig()
        self.http = HttpClient(api_key, base_url=base_url, timeout=timeout)
        self.logger = logger

    async def __aenter__(self) -> "VideoJobClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self.http.close()

    def transcript_job(self, video_id: str, force: bool = False) -> TranscriptJob:
        return TranscriptJob(self.http, video_id, force, config=self.config)

    def upload_job(self, collection_id: str, upload_config: UploadConfig) -> UploadJob:
        self.logger.debug(f"Creating upload job for {upload_config.url} in {collection_id}")
        return UploadJob(self.http, upload_config, collection_id, config=self.config)

    def index_job(
        self, video_id: str, index_type: IndexType = IndexType.semantic
    ) -> IndexJob:
        return IndexJob(self.http, video_id, index_type, config=self.config)
