"""Reusable voice-channel guard functions for Discord slash commands.

These are free functions that accept explicit dependencies rather than relying
on a specific cog instance, making them usable from any cog.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord

from discord_jellyfin_player.domain.shared.messages import DiscordUIMessages

if TYPE_CHECKING:
    from ..adapters.voice_transport import DiscordVoiceTransport


async def send_ephemeral(interaction: discord.Interaction, message: str) -> None:
    """Send an ephemeral message, handling both fresh and already-responded interactions."""
    if interaction.response.is_done():
        await interaction.followup.send(message, ephemeral=True)
    else:
        await interaction.response.send_message(message, ephemeral=True)


async def get_member(interaction: discord.Interaction) -> discord.Member | None:
    """Validate that the interaction comes from a guild member. Returns None with error on failure."""
    if not interaction.guild:
        await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
        return None

    user = interaction.user
    if not isinstance(user, discord.Member):
        await send_ephemeral(interaction, DiscordUIMessages.STATE_VERIFY_VOICE_FAILED)
        return None

    return user


async def get_voice_channel(
    interaction: discord.Interaction,
) -> discord.VoiceChannel | discord.StageChannel | None:
    """Return the voice channel the invoking member sits in, replying with an error otherwise."""
    member = await get_member(interaction)
    if member is None:
        return None

    if not member.voice or not member.voice.channel:
        await send_ephemeral(interaction, DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE)
        return None

    return member.voice.channel


async def ensure_voice(
    interaction: discord.Interaction, voice_transport: DiscordVoiceTransport
) -> bool:
    """Check the user is in voice and connect the bot to their channel if needed."""
    channel = await get_voice_channel(interaction)
    if channel is None:
        return False

    if voice_transport.is_connected(channel.guild.id):
        return True

    if not await voice_transport.ensure_connected(channel):
        await send_ephemeral(interaction, DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE)
        return False
    return True
