from enum import Enum
from typing import Any, List, Optional, TypedDict

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BASE_URL = "https://api.videodb.io"


class ApiPath:
    video = "video"
    transcription = "transcription"
    collection = "collection"
    upload = "upload"
    index = "index"


class ResponseStatus(str, Enum):
    in_progress = "in_progress"
    processing = "processing"
    done = "done"


PENDING_STATUSES = (ResponseStatus.in_progress.value, ResponseStatus.processing.value)


class IndexType(str, Enum):
    semantic = "semantic"
    scene = "scene"


class JobState(str, Enum):
    created = "created"
    started = "started"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"


class ResponseEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    success: Optional[bool] = None
    message: Optional[str] = None
    data: Any = None


class ApiResponse(BaseModel):
    """A decoded response from the VideoDB API"""

    model_config = ConfigDict(extra="allow")

    success: Optional[bool] = None
    status: Optional[str] = None
    message: Optional[str] = None
    data: Any = Field(default_factory=dict)
    response: Optional[ResponseEnvelope] = None


class BackoffConfig(BaseModel):
    initial_delay: float = Field(default=2.0, gt=0)  # seconds
    multiplier: int = Field(default=2, ge=2)
    max_delay: float = Field(default=500.0, gt=0)


class UploadConfig(BaseModel):
    url: str
    name: Optional[str] = None
    description: Optional[str] = None
    callback_url: Optional[str] = None
    media_type: Optional[str] = None


class IndexConfig(BaseModel):
    index_type: IndexType


class Transcript(TypedDict, total=False):
    text: str
    word_timestamps: List[dict]


class IndexResult(TypedDict, total=False):
    success: bool
    message: Optional[str]
