"""Per-guild playback session.

Each session is an actor: a single consumer task drains an inbox and applies
commands and transport signals one at a time against the guild's
``GuildPlaybackState``. Sessions for different guilds never share a lock.

Acquisition never blocks the loop. While the active track is still being
fetched the session schedules a timer that posts a re-check message back into
the inbox; a re-check that no longer matches the active track is dropped.

Transport requests are published from inside the loop, in order. Playstate
telemetry goes through a separate outbox drained by its own task, so slow
telemetry subscribers never hold up the guild.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from ...domain.music.entities import GuildPlaybackState, Track
from ...domain.music.events import (
    PlaybackPaused,
    PlaybackResumed,
    PlaybackStarted,
    PlaybackStopped,
    TransportPauseRequested,
    TransportPlayRequested,
    TransportStopRequested,
    TransportUnpauseRequested,
)
from ...domain.music.value_objects import AcquisitionOutcome, ControlCommand
from ...domain.shared.events import DomainEvent, get_event_bus
from ...domain.shared.exceptions import (
    DomainError,
    InvalidTrackNumberError,
    NoNextTrackError,
    NoPreviousTrackError,
    NotPlayingError,
)
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import DiscordSnowflake
from .queue_models import QueueInfo

if TYPE_CHECKING:
    from ...domain.shared.events import EventBus
    from .acquisition_service import AcquisitionPipeline

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_S: float = 1.0
DEFAULT_MAX_POLLS: int = 600


class _Signal(Enum):
    """Inbox messages that do not come from a user command."""

    ENDED = "ended"
    PROGRESS = "progress"
    RECHECK = "recheck"
    ADVANCE = "advance"
    RESET = "reset"


@dataclass(frozen=True)
class _Message:
    kind: ControlCommand | _Signal
    tracks: tuple[Track, ...] = ()
    track_number: int | None = None
    elapsed_ms: int = 0
    target: Track | None = None
    generation: int = 0
    attempt: int = 0
    reply: asyncio.Future[Any] | None = None


class PlaybackSession:
    """Serialized playback state machine for one guild."""

    def __init__(
        self,
        guild_id: DiscordSnowflake,
        *,
        pipeline: AcquisitionPipeline,
        event_bus: EventBus | None = None,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        max_polls: int = DEFAULT_MAX_POLLS,
    ) -> None:
        self._guild_id = guild_id
        self._state = GuildPlaybackState(guild_id=guild_id)
        self._pipeline = pipeline
        self._event_bus = event_bus or get_event_bus()
        self._poll_interval_s = poll_interval_s
        self._max_polls = max_polls

        self._inbox: asyncio.Queue[_Message] = asyncio.Queue()
        self._loop_task: asyncio.Task[None] | None = None
        self._outbox: asyncio.Queue[DomainEvent] = asyncio.Queue()
        self._outbox_task: asyncio.Task[None] | None = None
        self._timers: set[asyncio.Task[None]] = set()

        # Bumped whenever the active track changes or the session is stopped,
        # so timers and skip requests scheduled earlier can recognise themselves as stale.
        self._generation = 0
        # The track last handed to the transport; None while the active track is acquiring.
        self._dispatched: Track | None = None

    @property
    def guild_id(self) -> DiscordSnowflake:
        return self._guild_id

    @property
    def state(self) -> GuildPlaybackState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def play_token(self) -> int:
        """Token of the latest activation, carried by play requests and echoed by ended signals."""
        return self._generation

    # === Lifecycle ===

    def start(self) -> None:
        if not self.is_running:
            self._loop_task = asyncio.create_task(self._run(), name=f"playback-session-{self._guild_id}")
        if self._outbox_task is None or self._outbox_task.done():
            self._outbox_task = asyncio.create_task(
                self._drain_outbox(), name=f"playback-telemetry-{self._guild_id}"
            )

    async def aclose(self) -> None:
        """Stop the actor loop and cancel anything still waiting on it."""
        self._cancel_timers()
        for task in (self._loop_task, self._outbox_task):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._loop_task = None
        self._outbox_task = None

        while not self._inbox.empty():
            message = self._inbox.get_nowait()
            if message.reply is not None and not message.reply.done():
                message.reply.cancel()
        while not self._outbox.empty():
            self._outbox.get_nowait()
            self._outbox.task_done()

    async def drain(self) -> None:
        """Wait until every message posted so far, and the telemetry it produced, is handled."""
        await self._inbox.join()
        await self._outbox.join()

    # === Commands ===

    async def enqueue(self, tracks: Iterable[Track]) -> int:
        return await self.submit(ControlCommand.ENQUEUE, tracks=tracks)

    async def enqueue_next(self, tracks: Iterable[Track]) -> int:
        return await self.submit(ControlCommand.ENQUEUE_NEXT, tracks=tracks)

    async def next(self) -> int:
        return await self.submit(ControlCommand.NEXT)

    async def previous(self) -> int:
        return await self.submit(ControlCommand.PREVIOUS)

    async def goto(self, track_number: int) -> int:
        return await self.submit(ControlCommand.GOTO, track_number=track_number)

    async def remove(self, track_number: int) -> bool:
        return await self.submit(ControlCommand.REMOVE, track_number=track_number)

    async def pause(self) -> None:
        await self.submit(ControlCommand.PAUSE)

    async def unpause(self) -> None:
        await self.submit(ControlCommand.UNPAUSE)

    async def toggle_pause(self) -> bool:
        """Flip the pause flag and return the new value."""
        return await self.submit(ControlCommand.TOGGLE_PAUSE)

    async def stop(self) -> None:
        await self.submit(ControlCommand.STOP)

    async def reset(self) -> None:
        """Return to a fresh idle state after the voice connection went away."""
        reply = self._new_future()
        self._post(_Message(_Signal.RESET, reply=reply))
        await reply

    def submit(
        self,
        command: ControlCommand,
        *,
        tracks: Iterable[Track] = (),
        track_number: int | None = None,
    ) -> asyncio.Future[Any]:
        """Post a command and return the future its result will be set on."""
        if command.needs_track_number and track_number is None:
            raise ValueError(f"{command.value} requires a track number")

        reply = self._new_future()
        self._post(
            _Message(command, tracks=tuple(tracks), track_number=track_number, reply=reply)
        )
        return reply

    # === Inbound transport signals ===

    def notify_ended(self, play_token: int) -> None:
        self._post(_Message(_Signal.ENDED, generation=play_token))

    def notify_progress(self, elapsed_ms: int) -> None:
        self._post(_Message(_Signal.PROGRESS, elapsed_ms=elapsed_ms))

    # === Read side ===

    def queue_info(self) -> QueueInfo:
        queue = self._state.queue
        return QueueInfo(
            guild_id=self._guild_id,
            state=self._state.state,
            active_track=queue.active_track(),
            active_track_number=queue.active_track_number(),
            tracks=list(queue.tracks),
            total_duration_ms=queue.total_duration_ms,
            progress_ms=self._state.progress_ms,
        )

    # === Actor loop ===

    def _new_future(self) -> asyncio.Future[Any]:
        return asyncio.get_running_loop().create_future()

    def _post(self, message: _Message) -> None:
        self.start()
        self._inbox.put_nowait(message)

    async def _run(self) -> None:
        logger.debug(LogTemplates.SESSION_LOOP_STARTED, self._guild_id)
        try:
            while True:
                message = await self._inbox.get()
                try:
                    result = await self._handle(message)
                except DomainError as e:
                    if message.reply is not None and not message.reply.done():
                        message.reply.set_exception(e)
                    else:
                        logger.info(LogTemplates.SESSION_SIGNAL_REJECTED, message.kind.value, self._guild_id, e.message)
                except Exception as e:
                    logger.exception(LogTemplates.SESSION_HANDLER_ERROR, message.kind.value, self._guild_id)
                    if message.reply is not None and not message.reply.done():
                        message.reply.set_exception(e)
                else:
                    if message.reply is not None and not message.reply.done():
                        message.reply.set_result(result)
                finally:
                    self._inbox.task_done()
        finally:
            logger.debug(LogTemplates.SESSION_LOOP_STOPPED, self._guild_id)

    async def _handle(self, message: _Message) -> Any:
        match message.kind:
            case ControlCommand.ENQUEUE:
                return await self._on_enqueue(message.tracks, play_next=False)
            case ControlCommand.ENQUEUE_NEXT:
                return await self._on_enqueue(message.tracks, play_next=True)
            case ControlCommand.NEXT:
                return await self._on_next()
            case ControlCommand.PREVIOUS:
                return await self._on_previous()
            case ControlCommand.GOTO:
                return await self._on_goto(message.track_number or 0)
            case ControlCommand.REMOVE:
                return self._on_remove(message.track_number or 0)
            case ControlCommand.PAUSE:
                return await self._set_paused(True)
            case ControlCommand.UNPAUSE:
                return await self._set_paused(False)
            case ControlCommand.TOGGLE_PAUSE:
                return await self._set_paused(not self._state.paused)
            case ControlCommand.STOP:
                await self._on_stop()
                logger.info(LogTemplates.PLAYBACK_STOPPED, self._guild_id)
                return None
            case _Signal.RESET:
                await self._on_stop()
                logger.info(LogTemplates.SESSION_RESET, self._guild_id)
                return None
            case _Signal.ENDED:
                return await self._on_ended(message.generation)
            case _Signal.PROGRESS:
                return self._on_progress(message.elapsed_ms)
            case _Signal.RECHECK:
                return await self._on_recheck(message)
            case _Signal.ADVANCE:
                return await self._on_skip(message.generation)

    # === Transitions ===

    async def _on_enqueue(self, tracks: tuple[Track, ...], *, play_next: bool) -> int:
        queue = self._state.queue
        if play_next:
            length = queue.enqueue_next(tracks)
            logger.info(LogTemplates.QUEUE_ENQUEUED_NEXT, len(tracks), self._guild_id)
        else:
            length = queue.enqueue_append(tracks)
            logger.info(LogTemplates.QUEUE_ENQUEUED, len(tracks), self._guild_id, length)

        if length and self._state.is_idle and queue.advance():
            await self._activate()
        return length

    async def _on_next(self) -> int:
        if not self._state.queue.advance():
            raise NoNextTrackError()
        return await self._activate()

    async def _on_previous(self) -> int:
        if not self._state.queue.retreat():
            raise NoPreviousTrackError()
        return await self._activate()

    async def _on_goto(self, track_number: int) -> int:
        queue = self._state.queue
        if not queue.jump_to(track_number):
            raise InvalidTrackNumberError(track_number, len(queue))
        return await self._activate()

    def _on_remove(self, track_number: int) -> bool:
        queue = self._state.queue
        if not queue.remove_at(track_number):
            raise InvalidTrackNumberError(track_number, len(queue))
        logger.info(LogTemplates.QUEUE_REMOVED, track_number, self._guild_id)
        return True

    async def _set_paused(self, paused: bool) -> bool:
        if not self._state.playing:
            raise NotPlayingError()

        self._state.paused = paused
        if paused:
            logger.info(LogTemplates.PLAYBACK_PAUSED, self._guild_id)
            await self._publish(TransportPauseRequested(guild_id=self._guild_id))
            self._report(PlaybackPaused(guild_id=self._guild_id))
        else:
            logger.info(LogTemplates.PLAYBACK_RESUMED, self._guild_id)
            await self._publish(TransportUnpauseRequested(guild_id=self._guild_id))
            self._report(PlaybackResumed(guild_id=self._guild_id))
        return paused

    async def _on_stop(self) -> None:
        self._cancel_timers()
        self._generation += 1
        self._dispatched = None
        self._state.reset()

        await self._publish(TransportStopRequested(guild_id=self._guild_id))
        self._report(PlaybackStopped(guild_id=self._guild_id))

    async def _on_ended(self, play_token: int) -> None:
        if play_token != self._generation:
            logger.debug(LogTemplates.SESSION_STALE_ENDED, play_token, self._guild_id, self._generation)
            return
        if not self._state.is_playing or self._dispatched is None:
            logger.debug(
                LogTemplates.SESSION_ENDED_IGNORED,
                self._guild_id,
                self._state.state.value,
                self._dispatched is not None,
            )
            return

        self._dispatched = None
        await self._advance_or_settle()

    async def _on_skip(self, generation: int) -> None:
        if generation != self._generation:
            return
        await self._advance_or_settle()

    async def _advance_or_settle(self) -> None:
        if self._state.queue.advance():
            await self._activate()
            return

        logger.info(LogTemplates.QUEUE_EXHAUSTED, self._guild_id)
        self._cancel_timers()
        self._generation += 1
        self._state.settle_idle()
        self._report(PlaybackStopped(guild_id=self._guild_id))

    def _on_progress(self, elapsed_ms: int) -> None:
        if self._state.is_idle:
            return

        self._state.progress_ms = max(0, elapsed_ms)
        queue = self._state.queue
        active = queue.active_track()
        upcoming = queue.peek_next()
        if active is None or upcoming is None:
            return

        if self._pipeline.should_prefetch(active, upcoming, self._state.progress_ms):
            logger.info(
                LogTemplates.PLAYBACK_PREFETCH,
                upcoming.name,
                self._guild_id,
                active.duration_ms - self._state.progress_ms,
            )
            self._pipeline.ensure_ready(upcoming)

    async def _on_recheck(self, message: _Message) -> None:
        active = self._state.queue.active_track()
        if message.generation != self._generation or active is None or active is not message.target:
            logger.debug(
                LogTemplates.SESSION_STALE_RECHECK,
                message.target.name if message.target is not None else None,
                self._guild_id,
            )
            return
        await self._play_active(attempt=message.attempt)

    # === Playing the active track ===

    async def _activate(self) -> int:
        """Start playing whatever the queue cursor now points at."""
        previous = self._dispatched
        self._cancel_timers()
        self._generation += 1
        self._dispatched = None
        self._state.engage()

        await self._play_active(attempt=0)

        # The old audio must not keep playing while the new track acquires.
        if previous is not None and self._dispatched is None:
            await self._publish(TransportStopRequested(guild_id=self._guild_id))
        return self._state.queue.active_track_number()

    async def _play_active(self, *, attempt: int) -> None:
        track = self._state.queue.active_track()
        if track is None:
            await self._advance_or_settle()
            return

        outcome = self._pipeline.ensure_ready(track)
        if outcome.is_pending:
            if attempt >= self._max_polls:
                logger.warning(LogTemplates.PLAYBACK_ACQUISITION_TIMEOUT, track.name, self._guild_id, attempt)
                self._request_skip()
                return
            logger.debug(LogTemplates.PLAYBACK_WAITING_ACQUISITION, track.name, self._guild_id, attempt + 1)
            self._schedule_recheck(track, attempt + 1)
        elif outcome is AcquisitionOutcome.FAILED:
            logger.warning(LogTemplates.PLAYBACK_SKIPPING_FAILED, track.name, self._guild_id)
            self._request_skip()
        else:
            await self._dispatch(track)

    async def _dispatch(self, track: Track) -> None:
        try:
            source_uri = self._pipeline.resolve_source(track)
        except DomainError as e:
            logger.warning(LogTemplates.ACQUISITION_FAILED, track.name, e.message)
            self._request_skip()
            return

        self._dispatched = track
        logger.info(LogTemplates.PLAYBACK_PLAY_REQUESTED, track.name, self._guild_id)
        play = TransportPlayRequested(
            guild_id=self._guild_id,
            track=track,
            source_uri=source_uri,
            play_token=self._generation,
        )
        await self._publish(play)
        self._report(PlaybackStarted(guild_id=self._guild_id, track=track))

        if self._state.paused:
            await self._publish(TransportPauseRequested(guild_id=self._guild_id))

    def _request_skip(self) -> None:
        self._post(_Message(_Signal.ADVANCE, generation=self._generation))

    def _schedule_recheck(self, track: Track, attempt: int) -> None:
        generation = self._generation

        async def recheck_later() -> None:
            await asyncio.sleep(self._poll_interval_s)
            self._post(_Message(_Signal.RECHECK, target=track, generation=generation, attempt=attempt))

        timer = asyncio.create_task(recheck_later(), name=f"recheck-{self._guild_id}-{track.id}")
        self._timers.add(timer)
        timer.add_done_callback(self._timers.discard)

    def _cancel_timers(self) -> None:
        for timer in list(self._timers):
            timer.cancel()
        self._timers.clear()

    async def _publish(self, event: DomainEvent) -> None:
        await self._event_bus.publish(event)

    def _report(self, event: DomainEvent) -> None:
        self._outbox.put_nowait(event)

    async def _drain_outbox(self) -> None:
        while True:
            event = await self._outbox.get()
            try:
                await self._event_bus.publish(event)
            except Exception:
                logger.exception(LogTemplates.SESSION_TELEMETRY_ERROR, type(event).__name__, self._guild_id)
            finally:
                self._outbox.task_done()
