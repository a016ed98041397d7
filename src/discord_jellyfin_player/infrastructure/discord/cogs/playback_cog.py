"""Slash-command cog mapping playback controls onto the guild's session."""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import discord
from discord import app_commands
from discord.ext import commands

from discord_jellyfin_player.domain.music.value_objects import MediaKind, PlaybackState
from discord_jellyfin_player.domain.shared.exceptions import UserActionError
from discord_jellyfin_player.domain.shared.messages import DiscordUIMessages, ErrorMessages
from discord_jellyfin_player.infrastructure.discord.guards.voice_guards import (
    ensure_voice,
    get_member,
    get_voice_channel,
    send_ephemeral,
)
from discord_jellyfin_player.utils.reply import (
    format_duration,
    format_track_line,
    is_http_url,
    truncate,
)

if TYPE_CHECKING:
    from ....application.services.playback_session import PlaybackSession
    from ....config.container import Container
    from ....domain.music.entities import Track

logger = logging.getLogger(__name__)

QUEUE_PER_PAGE = 10

# Autocomplete values carry the item id so the command can skip a second search.
NATIVE_PREFIX = "native-"
AUTOCOMPLETE_LIMIT = 20
AUTOCOMPLETE_NAME_LENGTH = 90
RANDOM_DEFAULT_COUNT = 20
RANDOM_MAX_COUNT = 100

SEARCH_KINDS: dict[str, tuple[MediaKind, ...]] = {
    "song": (MediaKind.AUDIO,),
    "album": (MediaKind.ALBUM,),
    "playlist": (MediaKind.PLAYLIST,),
}
ALL_SEARCH_KINDS = (MediaKind.AUDIO, MediaKind.PLAYLIST, MediaKind.ALBUM)

SHUFFLE = "shuffle"
PLAY_NEXT = "next"

SessionAction = Callable[["PlaybackSession"], Awaitable[Any]]


def search_kinds(kind: str | None) -> tuple[MediaKind, ...]:
    return SEARCH_KINDS.get(kind or "", ALL_SEARCH_KINDS)


class PlaybackCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    async def _run_on_session(
        self, interaction: discord.Interaction, action: SessionAction
    ) -> tuple[bool, Any]:
        """Run *action* against the guild's session; user errors are replied ephemerally."""
        member = await get_member(interaction)
        if member is None:
            return False, None

        session = self.container.session_registry.get_or_create(member.guild.id)
        try:
            return True, await action(session)
        except UserActionError as e:
            await send_ephemeral(interaction, e.message)
            return False, None

    # ─────────────────────────────────────────────────────────────────
    # Voice connection
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="summon", description="Join your voice channel.")
    async def summon(self, interaction: discord.Interaction) -> None:
        channel = await get_voice_channel(interaction)
        if channel is None:
            return

        if not await self.container.voice_transport.ensure_connected(channel):
            await send_ephemeral(interaction, DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE)
            return

        await interaction.response.send_message(
            DiscordUIMessages.SUCCESS_JOINED_VOICE.format(channel=channel.name), ephemeral=True
        )

    @app_commands.command(name="disconnect", description="Stop playback and leave voice.")
    async def disconnect(self, interaction: discord.Interaction) -> None:
        member = await get_member(interaction)
        if member is None:
            return

        guild_id = member.guild.id
        await self.container.session_registry.reset(guild_id)
        disconnected = await self.container.voice_transport.disconnect(guild_id)

        if disconnected:
            await interaction.response.send_message(
                DiscordUIMessages.ACTION_DISCONNECTED, ephemeral=True
            )
        else:
            await interaction.response.send_message(
                DiscordUIMessages.STATE_NOT_CONNECTED_TO_VOICE, ephemeral=True
            )

    # ─────────────────────────────────────────────────────────────────
    # Enqueue
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="playyt", description="Download a YouTube video and queue its audio.")
    @app_commands.describe(url="YouTube video URL")
    async def playyt(self, interaction: discord.Interaction, url: str) -> None:
        if not is_http_url(url):
            await send_ephemeral(interaction, DiscordUIMessages.ERROR_NOT_A_URL)
            return

        await interaction.response.defer()
        if not await ensure_voice(interaction, self.container.voice_transport):
            return

        try:
            track = await self.container.download_backend.lookup(url.strip())
        except Exception as e:
            logger.exception("Error looking up %s", url)
            await interaction.followup.send(
                DiscordUIMessages.ERROR_OCCURRED.format(error=e), ephemeral=True
            )
            return

        if track is None:
            await interaction.followup.send(
                DiscordUIMessages.ERROR_TRACK_NOT_FOUND.format(query=url), ephemeral=True
            )
            return

        ok, length = await self._run_on_session(interaction, lambda s: s.enqueue([track]))
        if not ok:
            return

        await interaction.followup.send(
            DiscordUIMessages.SUCCESS_ENQUEUED.format(
                track_title=truncate(track.display_name, 60),
                duration=format_duration(track.duration_ms),
                length=length,
            )
        )

    async def _item_name_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        if not current.strip():
            return []

        kinds = search_kinds(getattr(interaction.namespace, "kind", None))
        hints = await self.container.item_client.search(
            current, kinds=kinds, limit=AUTOCOMPLETE_LIMIT
        )
        return [
            app_commands.Choice(
                name=truncate(hint.display_name, AUTOCOMPLETE_NAME_LENGTH),
                value=f"{NATIVE_PREFIX}{hint.id}",
            )
            for hint in hints
        ]

    async def _resolve_tracks(self, name: str, kinds: tuple[MediaKind, ...]) -> list[Track]:
        """Tracks for an autocompleted item id, or for the best match of free text."""
        lookup = self.container.item_client
        if name.startswith(NATIVE_PREFIX):
            return list(await lookup.get_tracks_for_item(name.removeprefix(NATIVE_PREFIX)))

        hints = await lookup.search(name, kinds=kinds, limit=1)
        if not hints:
            return []
        return list(await lookup.get_tracks_for_item(hints[0].id))

    @app_commands.command(name="play", description="Search Jellyfin and queue a song, album or playlist.")
    @app_commands.describe(
        name="Item name on Jellyfin",
        kind="Item type to search for",
        mode="How the tracks are added",
        position="Where in the queue the tracks go",
    )
    @app_commands.choices(
        kind=[
            app_commands.Choice(name="Song", value="song"),
            app_commands.Choice(name="Album", value="album"),
            app_commands.Choice(name="Playlist", value="playlist"),
        ],
        mode=[
            app_commands.Choice(name="Normal", value="normal"),
            app_commands.Choice(name="Shuffle", value=SHUFFLE),
        ],
        position=[
            app_commands.Choice(name="End of queue", value="end"),
            app_commands.Choice(name="Play next", value=PLAY_NEXT),
        ],
    )
    @app_commands.autocomplete(name=_item_name_autocomplete)
    async def play(
        self,
        interaction: discord.Interaction,
        name: str,
        kind: str | None = None,
        mode: str | None = None,
        position: str | None = None,
    ) -> None:
        await interaction.response.defer()
        if not await ensure_voice(interaction, self.container.voice_transport):
            return

        tracks = await self._resolve_tracks(name, search_kinds(kind))
        if not tracks:
            await interaction.followup.send(
                DiscordUIMessages.ERROR_NO_RESULTS.format(query=truncate(name, 60)),
                ephemeral=True,
            )
            return

        if mode == SHUFFLE:
            random.shuffle(tracks)

        if position == PLAY_NEXT:
            ok, length = await self._run_on_session(interaction, lambda s: s.enqueue_next(tracks))
        else:
            ok, length = await self._run_on_session(interaction, lambda s: s.enqueue(tracks))
        if not ok:
            return

        embed = discord.Embed(
            title=DiscordUIMessages.SUCCESS_ADDED_TRACKS.format(
                count=len(tracks),
                duration=format_duration(sum(track.duration_ms for track in tracks)),
            ),
            description=DiscordUIMessages.SUCCESS_QUEUE_LENGTH.format(length=length),
            color=discord.Color.blurple(),
        )
        artwork_url = next((track.artwork_url for track in tracks if track.artwork_url), None)
        if artwork_url:
            embed.set_thumbnail(url=artwork_url)

        await interaction.followup.send(embed=embed)

    @app_commands.command(name="random", description="Queue a random selection of songs.")
    @app_commands.describe(count="Number of songs to add")
    async def random(
        self,
        interaction: discord.Interaction,
        count: app_commands.Range[int, 1, RANDOM_MAX_COUNT] = RANDOM_DEFAULT_COUNT,
    ) -> None:
        await interaction.response.defer()
        if not await ensure_voice(interaction, self.container.voice_transport):
            return

        tracks = await self.container.item_client.get_random_tracks(count)
        if not tracks:
            await interaction.followup.send(
                DiscordUIMessages.ERROR_NO_RESULTS.format(query="random songs"), ephemeral=True
            )
            return

        ok, _ = await self._run_on_session(interaction, lambda s: s.enqueue(tracks))
        if ok:
            await interaction.followup.send(
                DiscordUIMessages.SUCCESS_RANDOM_ADDED.format(count=len(tracks))
            )

    # ─────────────────────────────────────────────────────────────────
    # Playback Controls
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="next", description="Skip to the next track in the queue.")
    async def next(self, interaction: discord.Interaction) -> None:
        ok, track_number = await self._run_on_session(interaction, lambda s: s.next())
        if ok:
            await interaction.response.send_message(
                DiscordUIMessages.SUCCESS_NOW_PLAYING_NUMBER.format(track_number=track_number),
                ephemeral=True,
            )

    @app_commands.command(name="previous", description="Go back to the previous track.")
    async def previous(self, interaction: discord.Interaction) -> None:
        ok, track_number = await self._run_on_session(interaction, lambda s: s.previous())
        if ok:
            await interaction.response.send_message(
                DiscordUIMessages.SUCCESS_NOW_PLAYING_NUMBER.format(track_number=track_number),
                ephemeral=True,
            )

    @app_commands.command(name="go", description="Jump to a track by its number in the queue.")
    @app_commands.describe(track="Track number, starting at 1")
    async def go(self, interaction: discord.Interaction, track: int) -> None:
        ok, track_number = await self._run_on_session(interaction, lambda s: s.goto(track))
        if ok:
            await interaction.response.send_message(
                DiscordUIMessages.SUCCESS_NOW_PLAYING_NUMBER.format(track_number=track_number),
                ephemeral=True,
            )

    @app_commands.command(name="remove", description="Remove a track from the queue.")
    @app_commands.describe(track="Track number, starting at 1")
    async def remove(self, interaction: discord.Interaction, track: int) -> None:
        ok, _ = await self._run_on_session(interaction, lambda s: s.remove(track))
        if ok:
            await interaction.response.send_message(
                DiscordUIMessages.SUCCESS_TRACK_REMOVED.format(track_number=track),
                ephemeral=True,
            )

    @app_commands.command(name="pause", description="Pause or resume the current track.")
    async def pause(self, interaction: discord.Interaction) -> None:
        ok, paused = await self._run_on_session(interaction, lambda s: s.toggle_pause())
        if ok:
            message = DiscordUIMessages.ACTION_PAUSED if paused else DiscordUIMessages.ACTION_RESUMED
            await interaction.response.send_message(message, ephemeral=True)

    @app_commands.command(name="stop", description="Stop playback and clear the queue.")
    async def stop(self, interaction: discord.Interaction) -> None:
        ok, _ = await self._run_on_session(interaction, lambda s: s.stop())
        if ok:
            await interaction.response.send_message(
                DiscordUIMessages.ACTION_STOPPED, ephemeral=True
            )

    # ─────────────────────────────────────────────────────────────────
    # Queue display
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="queue", description="Show the current queue.")
    @app_commands.describe(page="Page number")
    async def queue(self, interaction: discord.Interaction, page: int = 1) -> None:
        member = await get_member(interaction)
        if member is None:
            return

        session = self.container.session_registry.get(member.guild.id)
        queue_info = session.queue_info() if session is not None else None
        if queue_info is None or queue_info.total_tracks == 0:
            await interaction.response.send_message(
                DiscordUIMessages.STATE_QUEUE_EMPTY, ephemeral=True
            )
            return

        total_pages = max(1, math.ceil(queue_info.total_tracks / QUEUE_PER_PAGE))
        page = max(1, min(page, total_pages))
        start_idx = (page - 1) * QUEUE_PER_PAGE

        embed = discord.Embed(
            title=DiscordUIMessages.EMBED_QUEUE.format(
                total_tracks=queue_info.total_tracks, page=page, total_pages=total_pages
            ),
            color=discord.Color.blurple(),
        )

        active = queue_info.active_track
        if active is not None and queue_info.state != PlaybackState.IDLE:
            embed.add_field(
                name=DiscordUIMessages.EMBED_NOW_PLAYING,
                value=f"**{truncate(active.display_name)}**\n"
                f"{format_duration(queue_info.progress_ms)} / {format_duration(active.duration_ms)}",
                inline=False,
            )
            if active.artwork_url:
                embed.set_thumbnail(url=active.artwork_url)

        tracks = queue_info.tracks[start_idx : start_idx + QUEUE_PER_PAGE]
        lines = [
            format_track_line(number, track, active=number == queue_info.active_track_number)
            for number, track in enumerate(tracks, start=start_idx + 1)
        ]
        embed.description = "\n".join(lines)
        embed.set_footer(
            text=DiscordUIMessages.EMBED_QUEUE_FOOTER.format(
                total=format_duration(queue_info.total_duration_ms),
                remaining=format_duration(queue_info.remaining_ms),
                state=queue_info.state.value,
            )
        )

        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(name="playing", description="Show the track that is playing now.")
    async def playing(self, interaction: discord.Interaction) -> None:
        member = await get_member(interaction)
        if member is None:
            return

        session = self.container.session_registry.get(member.guild.id)
        queue_info = session.queue_info() if session is not None else None
        if (
            queue_info is None
            or queue_info.state == PlaybackState.IDLE
            or queue_info.active_track is None
        ):
            await interaction.response.send_message(
                DiscordUIMessages.STATE_NOTHING_PLAYING, ephemeral=True
            )
            return

        track = queue_info.active_track
        embed = discord.Embed(
            title=DiscordUIMessages.EMBED_NOW_PLAYING,
            description=truncate(track.name, 50),
            color=discord.Color.blurple(),
        )
        embed.add_field(
            name=DiscordUIMessages.EMBED_FIELD_ALBUM,
            value=truncate(track.album, 50) or "-",
            inline=False,
        )
        embed.add_field(
            name=DiscordUIMessages.EMBED_FIELD_ARTIST,
            value=truncate(track.artist, 50) or "-",
            inline=False,
        )
        embed.add_field(
            name=DiscordUIMessages.EMBED_FIELD_PLAYING,
            value=format_duration(queue_info.progress_ms),
            inline=True,
        )
        embed.add_field(
            name=DiscordUIMessages.EMBED_FIELD_DURATION,
            value=format_duration(track.duration_ms),
            inline=True,
        )
        if track.artwork_url:
            embed.set_thumbnail(url=track.artwork_url)

        await interaction.response.send_message(embed=embed)


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(PlaybackCog(bot, container))
