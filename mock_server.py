import itertools
import random
from datetime import datetime

from aiohttp import web
from loguru import logger


class MockVideoServer:
    """Stand-in for the VideoDB API used by tests and the example.

    Transcripts, uploads and indexing all go through the async-response
    endpoint, which reports ``processing`` until ``completion_time`` seconds
    have passed since the job was created.
    """

    def __init__(
        self,
        api_key: str = "test-key",
        completion_time: float = 10.0,
        error_rate: float = 0.1,
    ):
        self.api_key = api_key
        self.completion_time = completion_time
        self.error_rate = error_rate
        self.port = None
        self.runner = None
        self.videos = {"m-video"}
        self.transcripts = {}
        self.jobs = {}
        self.requests = []
        self._ids = itertools.count(1)
        self.app = web.Application(middlewares=[self.check_api_key])
        self.app.router.add_get(
            "/video/{video_id}/transcription/", self.handle_transcription
        )
        self.app.router.add_post("/video/{video_id}/index", self.handle_index)
        self.app.router.add_post(
            "/collection/{collection_id}/upload", self.handle_upload
        )
        self.app.router.add_get("/async-response/{job_id}", self.handle_async_response)
        self.logger = logger

    @property
    def base_url(self) -> str:
        return f"http://localhost:{self.port}"

    @web.middleware
    async def check_api_key(self, request, handler):
        self.requests.append((request.method, request.path))
        if request.headers.get("x-access-token") != self.api_key:
            self.logger.info("Rejecting request with bad API key")
            return web.json_response({"message": "Invalid API key"}, status=401)
        return await handler(request)

    def _new_job(self, kind: str, **payload) -> str:
        job_id = f"{kind}-{next(self._ids)}"
        self.jobs[job_id] = {"kind": kind, "start_time": datetime.now(), **payload}
        return f"{self.base_url}/async-response/{job_id}"

    async def handle_transcription(self, request):
        video_id = request.match_info["video_id"]
        if video_id not in self.videos:
            return web.json_response({"message": "Video not found"}, status=404)

        force = request.query.get("force") == "true"
        if video_id in self.transcripts and not force:
            self.logger.info(f"Returning stored transcript for {video_id}")
            return web.json_response(
                {"success": True, "data": self.transcripts[video_id]}
            )

        output_url = self._new_job("transcript", video_id=video_id)
        return web.json_response({"success": True, "data": {"output_url": output_url}})

    async def handle_upload(self, request):
        body = await request.json()
        output_url = self._new_job(
            "upload",
            collection_id=request.match_info["collection_id"],
            upload=body,
        )
        return web.json_response({"success": True, "data": {"output_url": output_url}})

    async def handle_index(self, request):
        video_id = request.match_info["video_id"]
        body = await request.json()
        if video_id not in self.transcripts:
            return web.json_response(
                {"message": "Transcript not available"}, status=400
            )
        self.logger.info(f"Indexed {video_id} ({body.get('index_type')})")
        return web.json_response({"success": True, "status": "done", "data": {}})

    async def handle_async_response(self, request):
        job = self.jobs.get(request.match_info["job_id"])
        if job is None:
            return web.json_response({"message": "Job not found"}, status=404)

        elapsed = (datetime.now() - job["start_time"]).total_seconds()
        if elapsed < self.completion_time:
            self.logger.info(f"Returning processing status (elapsed: {elapsed:.1f}s)")
            return web.json_response(
                {"success": True, "status": "processing", "data": {}}
            )

        if random.random() < self.error_rate:
            self.logger.info("Returning error status")
            return web.json_response(
                {
                    "success": True,
                    "status": "done",
                    "response": {"success": False, "message": "Job failed"},
                }
            )

        self.logger.info("Returning completed status")
        return web.json_response(
            {
                "success": True,
                "status": "done",
                "response": {"success": True, "data": self._finish(job)},
            }
        )

    def _finish(self, job: dict) -> dict:
        if job["kind"] == "transcript":
            transcript = {
                "text": "hello world",
                "wordTimestamps": [
                    {"word": "hello", "startTime": 0.0, "endTime": 0.4},
                    {"word": "world", "startTime": 0.5, "endTime": 0.9},
                ],
            }
            self.transcripts[job["video_id"]] = transcript
            return transcript

        upload = job["upload"]
        prefix = "a" if upload.get("media_type") == "audio" else "m"
        media_id = f"{prefix}-{next(self._ids)}"
        self.videos.add(media_id)
        return {
            "id": media_id,
            "collectionId": job["collection_id"],
            "name": upload.get("name"),
            "length": 12.5,
            "streamUrl": f"{self.base_url}/stream/{media_id}.m3u8",
            "playerUrl": f"{self.base_url}/player/{media_id}",
        }

    async def start(self, port: int = 8080):
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, "localhost", port)
        await site.start()
        self.port = port
        self.logger.info(f"Server started on port {port}")
        return site

    async def stop(self):
        if self.runner is not None:
            await self.runner.cleanup()
            self.runner = None
