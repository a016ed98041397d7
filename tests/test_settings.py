"""
Unit Tests for Application Settings Configuration

Tests for:
- Default values for every settings group
- Aliases and custom validators (Jellyfin URL, log level, snowflake IDs)
- Loading nested settings from environment variables
- Settings caching and clearing
"""

import pytest
from pydantic import SecretStr, ValidationError

from discord_jellyfin_player.config.settings import (
    DiscordSettings,
    DownloadSettings,
    JellyfinSettings,
    PlaybackSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

# =============================================================================
# DiscordSettings Tests
# =============================================================================


class TestDiscordSettings:
    def test_create_with_defaults(self):
        discord = DiscordSettings()

        assert discord.token.get_secret_value() == ""
        assert discord.command_prefix == "!"
        assert discord.test_guild_ids == ()
        assert discord.sync_on_startup is False

    def test_token_alias_bot_token(self):
        discord = DiscordSettings(bot_token=SecretStr("abc"))

        assert discord.token.get_secret_value() == "abc"

    def test_guild_ids_list_becomes_tuple(self):
        discord = DiscordSettings(test_guild_ids=[123, 456])

        assert discord.test_guild_ids == (123, 456)

    @pytest.mark.parametrize("bad_id", [0, -5, 2**64])
    def test_invalid_guild_ids(self, bad_id):
        with pytest.raises(ValidationError, match="snowflake"):
            DiscordSettings(test_guild_ids=[bad_id])

    def test_immutability(self):
        discord = DiscordSettings()

        with pytest.raises(ValidationError):
            discord.command_prefix = "?"


# =============================================================================
# JellyfinSettings Tests
# =============================================================================


class TestJellyfinSettings:
    def test_create_with_defaults(self):
        jellyfin = JellyfinSettings()

        assert jellyfin.server_url == "http://localhost:8096"
        assert jellyfin.max_streaming_bitrate == 96_000
        assert jellyfin.progress_report_interval_s == 5.0
        assert jellyfin.api_key.get_secret_value() == ""
        assert jellyfin.remote_control_enabled is True
        assert jellyfin.keepalive_interval_s == 30.0
        assert (jellyfin.socket_reconnect_initial_s, jellyfin.socket_reconnect_max_s) == (1.0, 30.0)

    def test_trailing_slash_is_stripped(self):
        jellyfin = JellyfinSettings(server_url="https://media.example.com/jellyfin/")

        assert jellyfin.server_url == "https://media.example.com/jellyfin"

    def test_url_alias(self):
        assert JellyfinSettings(url="http://media:8096").server_url == "http://media:8096"

    def test_invalid_scheme_raises_error(self):
        with pytest.raises(ValidationError, match="must start with http"):
            JellyfinSettings(server_url="ftp://media")

    @pytest.mark.parametrize("bitrate", [1_000, 5_000_000])
    def test_bitrate_bounds(self, bitrate):
        with pytest.raises(ValidationError):
            JellyfinSettings(max_streaming_bitrate=bitrate)


# =============================================================================
# DownloadSettings / PlaybackSettings Tests
# =============================================================================


class TestDownloadSettings:
    def test_create_with_defaults(self):
        download = DownloadSettings()

        assert download.cache_dir == "./cache"
        assert download.audio_format == "mp3"
        assert download.audio_quality == "256K"
        assert download.ytdlp_format == "bestaudio"


class TestPlaybackSettings:
    def test_create_with_defaults(self):
        playback = PlaybackSettings()

        assert playback.prefetch_window_ms == 30_000
        assert playback.acquisition_poll_interval_s == 1.0
        assert playback.acquisition_max_polls == 600
        assert playback.progress_interval_s == 1.0
        assert playback.default_volume == 0.5

    def test_volume_validation_maximum(self):
        with pytest.raises(ValidationError):
            PlaybackSettings(default_volume=3.0)

    def test_poll_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            PlaybackSettings(acquisition_poll_interval_s=0)


# =============================================================================
# Settings Tests
# =============================================================================


class TestSettings:
    """Unit tests for main Settings configuration container."""

    def test_create_with_all_defaults(self, monkeypatch):
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        monkeypatch.delenv("DEBUG", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        settings = Settings(_env_file=None)

        assert settings.environment == "development"
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert isinstance(settings.discord, DiscordSettings)
        assert isinstance(settings.jellyfin, JellyfinSettings)
        assert isinstance(settings.download, DownloadSettings)
        assert isinstance(settings.playback, PlaybackSettings)

    def test_load_nested_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("DISCORD__TOKEN", "discord-token")
        monkeypatch.setenv("JELLYFIN__SERVER_URL", "https://jf.example.com/")
        monkeypatch.setenv("JELLYFIN__API_KEY", "jf-key")
        monkeypatch.setenv("DOWNLOAD__CACHE_DIR", "/tmp/yt")
        monkeypatch.setenv("PLAYBACK__PREFETCH_WINDOW_MS", "45000")

        settings = Settings(_env_file=None)

        assert settings.discord.token.get_secret_value() == "discord-token"
        assert settings.jellyfin.server_url == "https://jf.example.com"
        assert settings.jellyfin.api_key.get_secret_value() == "jf-key"
        assert settings.download.cache_dir == "/tmp/yt"
        assert settings.playback.prefetch_window_ms == 45_000

    def test_log_level_validation_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")

        assert Settings(_env_file=None).log_level == "DEBUG"

    def test_log_level_validation_invalid(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "INVALID")

        with pytest.raises(ValidationError, match="Invalid log level"):
            Settings(_env_file=None)

    def test_nested_validation_propagates(self, monkeypatch):
        monkeypatch.setenv("JELLYFIN__SERVER_URL", "jellyfin.local")

        with pytest.raises(ValidationError, match="must start with http"):
            Settings(_env_file=None)


class TestSettingsCache:
    def test_get_settings_is_cached(self):
        clear_settings_cache()
        try:
            assert get_settings() is get_settings()
        finally:
            clear_settings_cache()

    def test_clear_settings_cache(self, monkeypatch):
        clear_settings_cache()
        monkeypatch.setenv("ENVIRONMENT", "test")
        first = get_settings()

        clear_settings_cache()
        second = get_settings()

        assert first is not second
        assert second.environment == "test"
        clear_settings_cache()
