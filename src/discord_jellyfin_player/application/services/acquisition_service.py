"""Acquisition pipeline - makes tracks ready to stream.

Remote-stream tracks are always ready: their URI is built from the id at play
time. Downloadable tracks are fetched by a background task; the pipeline only
decides synchronously whether to start one, so callers never block on a
download. Failed acquisitions are terminal for a track instance.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ...domain.music.entities import DownloadableTrack, RemoteStreamTrack, Track
from ...domain.music.value_objects import AcquisitionOutcome, AcquisitionState
from ...domain.shared.exceptions import AcquisitionError, InvalidOperationError
from ...domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ..interfaces.acquisition_backend import AcquisitionBackend
    from ..interfaces.stream_url_builder import StreamUrlBuilder

logger = logging.getLogger(__name__)

DEFAULT_PREFETCH_WINDOW_MS: int = 30_000


class AcquisitionPipeline:
    """Resolves tracks into ready-to-stream sources."""

    def __init__(
        self,
        *,
        backend: AcquisitionBackend,
        stream_url_builder: StreamUrlBuilder,
        prefetch_window_ms: int = DEFAULT_PREFETCH_WINDOW_MS,
    ) -> None:
        self._backend = backend
        self._stream_url_builder = stream_url_builder
        self._prefetch_window_ms = prefetch_window_ms
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def ensure_ready(self, track: Track) -> AcquisitionOutcome:
        """Report whether *track* can be played, starting acquisition if needed.

        Must be called from a running event loop; a started acquisition runs as
        its own task and this call returns immediately.
        """
        match track:
            case RemoteStreamTrack():
                return AcquisitionOutcome.ALREADY_READY
            case DownloadableTrack():
                return self._ensure_downloaded(track)
            case _:
                raise TypeError(f"Unsupported track type: {type(track).__name__}")

    def _ensure_downloaded(self, track: DownloadableTrack) -> AcquisitionOutcome:
        match track.acquisition_state:
            case AcquisitionState.NOT_STARTED:
                track.mark_acquiring()
                task = asyncio.create_task(self._acquire(track), name=f"acquire-{track.id}")
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
                logger.info(LogTemplates.ACQUISITION_STARTED, track.name)
                return AcquisitionOutcome.STARTED
            case AcquisitionState.ACQUIRING:
                return AcquisitionOutcome.ALREADY_IN_PROGRESS
            case AcquisitionState.READY:
                return AcquisitionOutcome.ALREADY_READY
            case AcquisitionState.FAILED:
                return AcquisitionOutcome.FAILED

    async def _acquire(self, track: DownloadableTrack) -> None:
        try:
            path = await self._backend.acquire(track)
        except asyncio.CancelledError:
            track.mark_failed()
            raise
        except AcquisitionError as e:
            logger.warning(LogTemplates.ACQUISITION_FAILED, track.name, e.message)
            track.mark_failed()
            return
        except Exception as e:
            logger.exception(LogTemplates.ACQUISITION_FAILED, track.name, e)
            track.mark_failed()
            return

        track.mark_ready(path)
        logger.info(LogTemplates.ACQUISITION_READY, track.name, path)

    def resolve_source(self, track: Track) -> str:
        """Return the URI the transport should play for a ready track."""
        match track:
            case RemoteStreamTrack():
                return self._stream_url_builder.build_stream_url(track.id)
            case DownloadableTrack(local_path=str() as path) if track.is_ready:
                return path
            case DownloadableTrack():
                raise InvalidOperationError(
                    operation="resolve source",
                    current_state=track.acquisition_state.value,
                    message=ErrorMessages.TRACK_NOT_READY.format(track_id=track.id),
                )
            case _:
                raise TypeError(f"Unsupported track type: {type(track).__name__}")

    def should_prefetch(self, active: Track | None, upcoming: Track | None, progress_ms: int) -> bool:
        """Whether *upcoming* should be fetched now to hide its acquisition latency."""
        if active is None or not isinstance(upcoming, DownloadableTrack):
            return False
        if upcoming.acquisition_state != AcquisitionState.NOT_STARTED:
            return False
        return active.duration_ms - progress_ms <= self._prefetch_window_ms

    async def drain(self) -> None:
        """Wait for every in-flight acquisition to settle."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel in-flight acquisitions (used at shutdown)."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(LogTemplates.ACQUISITION_CANCELLED, len(tasks))
