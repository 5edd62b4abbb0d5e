import asyncio
import inspect
from abc import ABC, abstractmethod
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    Literal,
    Optional,
    TypeVar,
    Union,
    overload,
)

from loguru import logger
from video_job_client.errors import (
    AuthenticationError,
    InvalidRequestError,
    VideodbError,
)
from video_job_client.http_client import HttpClient
from video_job_client.media import Audio, Video
from video_job_client.models import (
    PENDING_STATUSES,
    ApiResponse,
    ApiPath,
    BackoffConfig,
    IndexConfig,
    IndexResult,
    IndexType,
    JobState,
    Transcript,
    UploadConfig,
)
from video_job_client.utils import is_media_audio, to_snake_case

ApiResponseT = TypeVar("ApiResponseT")
SdkBaseT = TypeVar("SdkBaseT")
FinalReturnT = TypeVar("FinalReturnT")

SuccessCallback = Callable[[FinalReturnT], Union[None, Awaitable[None]]]
ErrorCallback = Callable[[VideodbError], Union[None, Awaitable[None]]]

RECOGNIZED_ERRORS = (AuthenticationError, InvalidRequestError, VideodbError)
TERMINAL_STATES = (JobState.completed, JobState.failed, JobState.cancelled)


class Job(ABC, Generic[ApiResponseT, SdkBaseT, FinalReturnT]):
    """Base class for long running tasks on the VideoDB API.

    A single request for these tasks would time out, so the server accepts
    them and hands back a callback URL. The job polls that URL with an
    exponentially increasing delay until the task leaves the pending state.

    Type parameters:
        ApiResponseT: the data received from the API.
        SdkBaseT: the same data after its keys are converted to snake_case.
        FinalReturnT: the value handed to the success listener, produced by
            ``before_success``.

    Outcomes are only delivered through the listeners registered with ``on``.
    Register them before calling ``start``; an outcome with no listener is
    logged and dropped.
    """

    job_title = "Job"
    normalize_response = True

    def __init__(self, http: HttpClient, config: Optional[BackoffConfig] = None):
        self.http = http
        self.config = config or BackoffConfig()
        self.current_delay = self.config.initial_delay
        self.state = JobState.created
        self.task: Optional[asyncio.Task] = None
        self.logger = logger
        self._on: Dict[str, Callable[[Any], Any]] = {}

    @abstractmethod
    async def _start(self) -> None:
        """Issue the request that kicks the task off on the server"""

    @abstractmethod
    def before_success(self, data: SdkBaseT) -> FinalReturnT:
        """Turn the normalized payload into the value given to the success listener"""

    @overload
    def on(self, option: Literal["success"], method: SuccessCallback[FinalReturnT]) -> None: ...

    @overload
    def on(self, option: Literal["error"], method: ErrorCallback) -> None: ...

    def on(self, option, method) -> None:
        """Register the success or error listener, replacing any previous one"""
        if option not in ("success", "error"):
            raise ValueError(f"Unknown job event: {option!r}")
        self._on[option] = method

    async def start(self) -> None:
        """Start the job.

        Returns once the initial request has been answered. Polling, if
        needed, continues in ``self.task``; do not rely on the return value.
        """
        if self.state != JobState.created:
            self.logger.warning(
                f"{self.job_title} is already {self.state.value}; ignoring start()"
            )
            return

        self.state = JobState.started
        try:
            await self._start()
        except Exception as err:
            await self._handle_error(err)

    def cancel(self) -> None:
        """Stop polling. No listener fires for a cancelled job."""
        if self.task is not None and not self.task.done():
            self.task.cancel()
        if self.state not in TERMINAL_STATES:
            self.state = JobState.cancelled

    @property
    def done(self) -> bool:
        return self.state in TERMINAL_STATES

    def _increment_delay(self) -> None:
        self.current_delay = self.config.multiplier * self.current_delay

    async def _wait_before_retry(self, delay: float) -> None:
        await asyncio.sleep(delay)

    async def _dispatch(self, method: Callable[[Any], Any], value: Any) -> None:
        try:
            result = method(value)
            if inspect.isawaitable(result):
                await result
        except Exception:
            self.logger.exception(f"{self.job_title} listener raised")

    async def _handle_error(self, err: BaseException) -> None:
        if self.state in TERMINAL_STATES:
            self.logger.warning(
                f"{self.job_title} is already {self.state.value}; dropping error: {err}"
            )
            return

        self.state = JobState.failed
        if not isinstance(err, RECOGNIZED_ERRORS):
            err = VideodbError("Unknown Error", err)

        method = self._on.get("error")
        if method is None:
            self.logger.error(f"Unregistered Job Error: {err}")
            return
        await self._dispatch(method, err)

    async def _handle_success(self, data: ApiResponseT) -> None:
        if self.state in TERMINAL_STATES:
            return

        transformed = to_snake_case(data) if self.normalize_response else data
        final_data = self.before_success(transformed)
        self.state = JobState.completed

        method = self._on.get("success")
        if method is None:
            self.logger.info(
                f"{self.job_title} Completed but success listener wasn't registered: {data}"
            )
            return
        await self._dispatch(method, final_data)

    @staticmethod
    def _callback_url(res: ApiResponse) -> Optional[str]:
        if isinstance(res.data, dict):
            return res.data.get("output_url")
        return None

    def _initiate_backoff(self, callback_url: str) -> None:
        """Poll ``callback_url`` in a background task until the job finishes.

        The task is kept on ``self.task`` so ``cancel`` can stop it. A job
        cancelled while its first request was in flight never starts polling.
        """
        if self.state != JobState.started:
            self.logger.debug(
                f"{self.job_title} is {self.state.value}; not polling {callback_url}"
            )
            return
        self.task = asyncio.create_task(self._backoff(callback_url))

    async def _backoff(self, callback_url: str) -> None:
        while True:
            try:
                res = await self.http.get([callback_url])
                if res.status in PENDING_STATUSES:
                    self.logger.info(
                        f"Backoff {self.job_title}; Current delay: "
                        f"{self.current_delay}/{self.config.max_delay}"
                    )
                    if self.current_delay >= self.config.max_delay:
                        raise VideodbError("Job timed out")
                    delay = self.current_delay
                    self._increment_delay()
                    await self._wait_before_retry(delay)
                    continue

                # Not pending: whatever came back is the outcome
                if res.response is not None:
                    if res.response.success is False:
                        raise VideodbError(res.response.message or "Job failed")
                    await self._handle_success(res.response.data)
                else:
                    await self._handle_success(res.data)
            except Exception as err:
                await self._handle_error(err)
            return


class TranscriptJob(Job[Dict[str, Any], Transcript, Transcript]):
    """Generates the transcript of a video.

    If the transcript already exists the success listener is called
    straight away, otherwise the job polls until it is ready.
    """

    job_title = "Transcript Job"

    def __init__(
        self,
        http: HttpClient,
        video_id: str,
        force: bool = False,
        config: Optional[BackoffConfig] = None,
    ):
        super().__init__(http, config)
        self.video_id = video_id
        self.force = force

    async def _start(self) -> None:
        res = await self.http.get(
            [
                ApiPath.video,
                self.video_id,
                ApiPath.transcription,
                f"?force={str(self.force).lower()}",
            ]
        )
        callback_url = self._callback_url(res)
        if callback_url:
            self._initiate_backoff(callback_url)
        elif isinstance(res.data, dict):
            await self._handle_success(res.data)
        else:
            raise VideodbError(f"Unexpected transcript response for {self.video_id}")

    def before_success(self, data: Transcript) -> Transcript:
        return data


class UploadJob(Job[Dict[str, Any], Dict[str, Any], Union[Video, Audio]]):
    """Uploads media to a collection and resolves to a Video or Audio"""

    job_title = "Upload Job"

    def __init__(
        self,
        http: HttpClient,
        upload_config: UploadConfig,
        collection_id: str,
        config: Optional[BackoffConfig] = None,
    ):
        super().__init__(http, config)
        self.upload_config = upload_config
        self.collection_id = collection_id

    async def _start(self) -> None:
        res = await self.http.post(
            [ApiPath.collection, self.collection_id, ApiPath.upload],
            self.upload_config,
        )
        callback_url = self._callback_url(res)
        if not callback_url:
            raise VideodbError("Upload response is missing output_url")
        self._initiate_backoff(callback_url)

    def before_success(self, data: Dict[str, Any]) -> Union[Video, Audio]:
        if is_media_audio(data):
            return Audio(self.http, data)
        return Video(self.http, data)


class IndexJob(Job[Dict[str, Any], Dict[str, Any], IndexResult]):
    """Indexes a video.

    Indexing needs the transcript, so this job runs a TranscriptJob first
    and only calls the index endpoint once that succeeds. A transcript
    failure is reported as this job's failure.
    """

    job_title = "Index Job"

    def __init__(
        self,
        http: HttpClient,
        video_id: str,
        index_type: IndexType = IndexType.semantic,
        config: Optional[BackoffConfig] = None,
    ):
        super().__init__(http, config)
        self.video_id = video_id
        self.index_config = IndexConfig(index_type=index_type)
        self.transcript_job: Optional[TranscriptJob] = None

    async def _start(self) -> None:
        if self.state != JobState.started:
            return
        self.transcript_job = TranscriptJob(self.http, self.video_id, config=self.config)
        self.transcript_job.on("success", self._on_transcript_ready)
        self.transcript_job.on("error", self._handle_error)
        await self.transcript_job.start()

    async def _on_transcript_ready(self, _transcript: Transcript) -> None:
        try:
            res = await self.http.post(
                [ApiPath.video, self.video_id, ApiPath.index], self.index_config
            )
            await self._handle_success(res.model_dump(exclude_none=True))
        except Exception as err:
            await self._handle_error(err)

    def cancel(self) -> None:
        if self.transcript_job is not None:
            self.transcript_job.cancel()
        super().cancel()

    def before_success(self, data: Dict[str, Any]) -> IndexResult:
        if data.get("success"):
            return {"success": True}
        return {"success": False, "message": data.get("message")}
