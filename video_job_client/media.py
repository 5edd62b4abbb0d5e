from typing import TYPE_CHECKING, Any, Mapping, Optional

from video_job_client.models import BackoffConfig, IndexType

if TYPE_CHECKING:
    from video_job_client.http_client import HttpClient
    from video_job_client.job import IndexJob, TranscriptJob


class Media:
    """Common fields of uploaded media, built from snake_case API data"""

    def __init__(self, http: "HttpClient", data: Mapping[str, Any]):
        self.http = http
        self.meta = dict(data)
        self.id: str = data["id"]
        self.collection_id: Optional[str] = data.get("collection_id")
        self.name: Optional[str] = data.get("name")
        self.length: Optional[float] = data.get("length")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, name={self.name!r})"


class Audio(Media):
    pass


class Video(Media):
    def __init__(self, http: "HttpClient", data: Mapping[str, Any]):
        super().__init__(http, data)
        self.stream_url: Optional[str] = data.get("stream_url")
        self.player_url: Optional[str] = data.get("player_url")
        self.thumbnail_url: Optional[str] = data.get("thumbnail_url")

    def transcript_job(
        self, force: bool = False, config: Optional[BackoffConfig] = None
    ) -> "TranscriptJob":
        from video_job_client.job import TranscriptJob

        return TranscriptJob(self.http, self.id, force, config=config)

    def index_job(
        self,
        index_type: IndexType = IndexType.semantic,
        config: Optional[BackoffConfig] = None,
    ) -> "IndexJob":
        from video_job_client.job import IndexJob

        return IndexJob(self.http, self.id, index_type, config=config)
