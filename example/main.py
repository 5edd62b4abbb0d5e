import asyncio

from mock_server import MockVideoServer
from video_job_client.models import BackoffConfig, IndexType, UploadConfig
from video_job_client.video_job_client import VideoJobClient


async def main():
    PORT = 8000
    server = MockVideoServer(api_key="demo-key", completion_time=5.0, error_rate=0.1)
    await server.start(port=PORT)
    print(f"Server started on http://localhost:{PORT}")

    config = BackoffConfig(initial_delay=1.0, multiplier=2, max_delay=16.0)
    finished = asyncio.Event()

    async with VideoJobClient(
        "demo-key", base_url=server.base_url, config=config
    ) as client:

        async def index_uploaded(video):
            print(f"Uploaded: {video!r}")
            index_job = client.index_job(video.id, IndexType.semantic)
            index_job.on("success", on_indexed)
            index_job.on("error", on_error)
            await index_job.start()

        def on_indexed(result):
            print(f"Index result: {result}")
            finished.set()

        def on_error(error):
            print(f"Error occurred: {error}")
            finished.set()

        upload_job = client.upload_job(
            "default", UploadConfig(url="https://example.com/talk.mp4", name="talk")
        )
        upload_job.on("success", index_uploaded)
        upload_job.on("error", on_error)
        await upload_job.start()

        await finished.wait()


if __name__ == "__main__":
    asyncio.run(main())
