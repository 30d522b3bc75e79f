"""
Folder polling service that drives each new image through the upload pipeline.
"""

import asyncio
import contextlib
from pathlib import Path

import aiofiles

from rayosx_agent.exceptions import ArchiveError, UploadConnectionError, UploadResponseError
from rayosx_agent.models import FileState, UploadRequest, WatchedFile
from rayosx_agent.services.archive import move_to_processed
from rayosx_agent.services.metadata import extract_correlation_id, media_kind, mime_type
from rayosx_agent.services.stability import wait_until_stable
from rayosx_agent.services.tracker import FileTracker
from rayosx_agent.services.upload import UploadClient
from rayosx_agent.settings import Settings
from rayosx_agent.utils.logger import logger


class DirectoryScanner:
    """Periodic scan of the watched folder.

    Runs an ``asyncio.Task`` loop that lists the folder every
    ``settings.poll_interval`` seconds (and once right away). Each new file
    with an allowed extension is registered in the tracker and handed to its
    own pipeline task: debounce, upload, then move to the processed folder.

    Pipelines are fire-and-forget. They are not awaited by the loop, not
    cancelled by ``stop()`` and, once dispatched, a filename is never
    dispatched again in this process.

    Args:
        settings: Agent settings
        client: Upload client shared by all pipelines
        tracker: Registry of dispatched files (a new one if None)
    """

    def __init__(
        self,
        settings: Settings,
        client: UploadClient,
        tracker: FileTracker | None = None,
    ):
        self.settings = settings
        self.watch_dir = Path(settings.watch_dir)
        self.client = client
        self.tracker = tracker if tracker is not None else FileTracker()
        self.is_running = False
        self._task: asyncio.Task[None] | None = None
        self._pipelines: set[asyncio.Task[FileState]] = set()
        self._semaphore = (
            asyncio.Semaphore(settings.max_concurrent_uploads)
            if settings.max_concurrent_uploads
            else None
        )

    async def start(self) -> None:
        """Start the polling loop."""
        if self.is_running:
            logger.warning("Folder scanner already running")
            return

        self.is_running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.success(
            f"Agent running. Watching {self.watch_dir} every {self.settings.poll_interval:g}s"
        )

    async def stop(self) -> None:
        """Stop the polling loop. In-flight uploads are left to finish on their own."""
        self.is_running = False
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        logger.info("Folder scanner stopped")

    async def run_forever(self) -> None:
        """Start polling and block until the loop ends."""
        await self.start()
        if self._task:
            await self._task

    async def join(self) -> None:
        """Wait until every dispatched pipeline has reached a terminal state."""
        while self._pipelines:
            await asyncio.gather(*self._pipelines)

    @property
    def pending(self) -> int:
        """Number of pipeline tasks still running."""
        return len(self._pipelines)

    async def _poll_loop(self) -> None:
        """Main polling loop, runs until ``is_running`` is False."""
        while self.is_running:
            try:
                await self.scan_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error scanning folder: {e}")
            await asyncio.sleep(self.settings.poll_interval)

    async def scan_once(self) -> int:
        """List the folder once and dispatch every file not seen before.

        Returns:
            Number of pipelines dispatched in this tick
        """
        if not self.watch_dir.exists():
            try:
                self.watch_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(f"Cannot create folder {self.watch_dir}: {e}")
                return 0
            logger.info(f"Folder created: {self.watch_dir}")
            return 0

        try:
            entries = sorted(self.watch_dir.iterdir())
        except OSError as e:
            logger.error(f"Error reading folder: {e}")
            return 0

        dispatched = 0
        for entry in entries:
            if entry.name in self.tracker or not self.settings.is_allowed(entry.name):
                continue

            try:
                stat = entry.stat()
                if not entry.is_file():
                    continue
            except OSError as e:
                logger.debug(f"Skipping {entry.name}: {e}")
                continue

            watched = WatchedFile(path=entry.absolute(), size=stat.st_size)
            self.tracker.register(watched)
            self._dispatch(watched)
            dispatched += 1

        return dispatched

    def _dispatch(self, watched: WatchedFile) -> None:
        task = asyncio.create_task(self._process_file(watched), name=f"upload:{watched.filename}")
        self._pipelines.add(task)
        task.add_done_callback(self._pipelines.discard)

    async def _process_file(self, watched: WatchedFile) -> FileState:
        """Run one file through debounce, upload and archive.

        Every failure is logged as a single line and recorded as the file's
        terminal state; nothing is raised to the caller.
        """
        name = watched.filename
        try:
            self.tracker.set_state(name, FileState.DEBOUNCING)
            if not await wait_until_stable(watched.path, self.settings.debounce_seconds):
                return self._finish(name, FileState.GONE)

            async with self._semaphore or contextlib.nullcontext():
                return await self._upload_and_archive(watched)
        except UploadConnectionError as e:
            logger.error(f"Could not connect while uploading {name}: {e}")
        except UploadResponseError as e:
            logger.error(f"Non-JSON response for {name}: {e.body}")
        except OSError as e:
            logger.error(f"Cannot read {name}: {e}")
        except Exception as e:
            logger.error(f"Error processing {name}: {e}")
        return self._finish(name, FileState.FAILED)

    async def _upload_and_archive(self, watched: WatchedFile) -> FileState:
        name = watched.filename
        self.tracker.set_state(name, FileState.UPLOADING)

        correlation_id = extract_correlation_id(name)
        logger.info(f"Uploading: {name}" + (f" (LIS: {correlation_id})" if correlation_id else ""))

        async with aiofiles.open(watched.path, "rb") as f:
            content = await f.read()

        request = UploadRequest(
            filename=name,
            content=content,
            media_kind=media_kind(watched.extension),
            mime_type=mime_type(watched.extension),
            station_name=self.settings.station_name,
            correlation_id=correlation_id,
        )
        result = await self.client.upload(request)

        if not result.success:
            logger.warning(f"Server rejected {name}: {result.message}")
            return self._finish(name, FileState.REJECTED)

        logger.success(f"Image uploaded: {name}")
        self.tracker.set_state(name, FileState.UPLOADED)

        try:
            move_to_processed(watched.path, self.settings.processed_dir_name)
        except ArchiveError as e:
            logger.error(f"Could not move {name}: {e}")
            return FileState.UPLOADED

        return self._finish(name, FileState.ARCHIVED)

    def _finish(self, filename: str, state: FileState) -> FileState:
        self.tracker.set_state(filename, state)
        return state
