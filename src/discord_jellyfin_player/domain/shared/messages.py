"""Centralized message constants for error messages, validation, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Track Validation Errors
    EMPTY_TRACK_ID = "Track ID cannot be empty"
    TRACK_NOT_READY = "Track '{track_id}' has not finished acquiring"

    # Discord Validation Errors
    INVALID_SNOWFLAKE = "Discord snowflake ID must be positive"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake ID must fit in 64 bits"

    # Configuration Errors
    JELLYFIN_URL_INVALID = "Jellyfin server URL must start with http:// or https://"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    DISCORD_TOKEN_REQUIRED = "DISCORD__TOKEN environment variable is required"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."
    CONTAINER_NOT_FOUND = "Container not found on bot instance"

    # Acquisition Errors
    DOWNLOAD_OUTPUT_MISSING = "yt-dlp finished but '{path}' was not written"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Bot Lifecycle
    BOT_STARTING = "Starting bot in {environment} mode"
    BOT_STARTING_RUN = "Starting bot run loop"
    BOT_STOPPED = "Bot stopped"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, exiting"
    BOT_FATAL_ERROR = "Fatal error while running bot: %s"
    BOT_SETUP = "Running bot setup hook"
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_CONTAINER_INITIALIZED = "Container initialized"
    BOT_CONTAINER_INIT_FAILED = "Failed to initialize container: %s"
    BOT_CONTAINER_SHUTDOWN = "Container shut down"
    BOT_COGS_LOADED_SUMMARY = "Loaded %d cog(s), %d failed"
    BOT_SYNC_ON_STARTUP_FAILED = "Failed to sync commands on startup: %s"
    BOT_ERROR_MESSAGE_SEND_FAILED = "Failed to send error message to user"
    BOT_VOICE_DISCONNECT_FAILED = "Failed to disconnect voice client: %s"
    BOT_READY = "Logged in as %s (id=%s)"
    BOT_CONNECTED_GUILDS = "Connected to %d guild(s)"
    BOT_COG_LOADED = "Loaded cog %s"
    BOT_COG_LOAD_FAILED = "Failed to load cog %s: %s"
    BOT_SYNCED_GUILD = "Synced %d command(s) to guild %s"
    BOT_SYNC_GUILD_FAILED = "Failed to sync commands to guild %s: %s"
    BOT_SYNCED_GLOBAL = "Synced %d global command(s)"
    BOT_SYNC_GLOBAL_FAILED = "Failed to sync global commands: %s"
    BOT_SHUTTING_DOWN = "Shutting down bot"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown timed out after %.1fs"
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error shutting down container: %s"
    BOT_SLASH_COMMAND_ERROR = "Slash command '%s' failed: %s"
    BOT_SLASH_COMMAND_REJECTED = "Slash command '%s' rejected: %s"

    # Session Actor
    SESSION_CREATED = "Created playback session for guild %s"
    SESSION_RESET = "Reset playback session for guild %s"
    SESSION_LOOP_STARTED = "Session loop started for guild %s"
    SESSION_LOOP_STOPPED = "Session loop stopped for guild %s"
    SESSION_HANDLER_ERROR = "Unhandled error processing %s in guild %s"
    SESSION_ENDED_IGNORED = "Ignoring track-ended signal in guild %s (state=%s, dispatched=%s)"
    SESSION_STALE_RECHECK = "Dropping stale acquisition re-check for '%s' in guild %s"
    SESSION_SIGNAL_REJECTED = "Rejected %s in guild %s: %s"
    SESSION_STALE_ENDED = "Dropping track-ended signal for play %d in guild %s (current play %d)"
    SESSION_TELEMETRY_ERROR = "Failed to publish %s telemetry in guild %s"

    # Queue Operations
    QUEUE_ENQUEUED = "Enqueued %d track(s) in guild %s, queue length now %d"
    QUEUE_ENQUEUED_NEXT = "Enqueued %d track(s) to play next in guild %s"
    QUEUE_REMOVED = "Removed track #%d from queue in guild %s"
    QUEUE_EXHAUSTED = "No next track in guild %s, settling idle"

    # Playback Operations
    PLAYBACK_PLAY_REQUESTED = "Requesting transport play of '%s' in guild %s"
    PLAYBACK_STOPPED = "Stopped playback in guild %s"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_WAITING_ACQUISITION = "Waiting for '%s' to finish acquiring in guild %s (poll %d)"
    PLAYBACK_SKIPPING_FAILED = "Skipping '%s' in guild %s: acquisition failed"
    PLAYBACK_ACQUISITION_TIMEOUT = "Gave up waiting for '%s' in guild %s after %d polls"
    PLAYBACK_PREFETCH = "Pre-fetching '%s' in guild %s (%d ms remaining on active track)"

    # Acquisition Pipeline
    ACQUISITION_STARTED = "Started acquisition of '%s'"
    ACQUISITION_READY = "Acquired '%s' at %s"
    ACQUISITION_FAILED = "Acquisition of '%s' failed: %s"
    ACQUISITION_CACHE_HIT = "Found cached artifact for '%s' at %s"
    ACQUISITION_CANCELLED = "Cancelled %d in-flight acquisition(s)"

    # Event Bridge
    BRIDGE_NO_SESSION = "Dropping %s for guild %s without a session"
    BRIDGE_REMOTE_REJECTED = "Remote %s rejected in guild %s: %s"

    # Voice Transport
    VOICE_NOT_CONNECTED = "Not connected to voice in guild %s"
    VOICE_CONNECTED = "Connected to voice channel %s in guild %s"
    VOICE_CONNECTION_TIMEOUT = "Timed out connecting to voice channel %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_PLAYING = "Playing '%s' in guild %s"
    VOICE_TRACK_ENDED = "Track ended in guild %s (error: %s)"
    VOICE_PLAYBACK_ERROR = "Playback error in guild %s: %s"
    VOICE_CLIENT_ERROR = "Discord client error: %r"
    VOICE_PROGRESS_ERROR = "Error reporting progress"

    # Jellyfin
    JELLYFIN_STREAM_URL = "Building stream for '%s' with bitrate %d"
    JELLYFIN_REPORT_FAILED = "Failed to report %s to Jellyfin: %s"
    JELLYFIN_REPORT = "Reporting %s for item '%s' in guild %s"
    JELLYFIN_REQUEST_FAILED = "Jellyfin request to %s failed: %s"
    JELLYFIN_UNSUPPORTED_ITEM = "Cannot expand Jellyfin item of type %s (%s) into tracks"
    JELLYFIN_KEEPALIVE = "Received a %s message from the server"
    JELLYFIN_UNKNOWN_MESSAGE = "Received a message of unknown type: %s"
    JELLYFIN_UNKNOWN_PLAYSTATE = "Unable to process playstate command: %s"
    JELLYFIN_REMOTE_PLAY = "Processing %d item id(s) received via websocket"
    JELLYFIN_SOCKET_CONNECTED = "Opened Jellyfin session socket for guild %s as device %s"
    JELLYFIN_SOCKET_LOST = "Jellyfin session socket for guild %s dropped: %s"
    JELLYFIN_SOCKET_RETRY = "Reconnecting Jellyfin session socket for guild %s in %.0fs"
    JELLYFIN_SOCKET_CLOSED = "Closed Jellyfin session socket for guild %s"
    JELLYFIN_KEEPALIVE_SENT = "Sent a KeepAlive message to the server"
    JELLYFIN_CAPABILITIES_FAILED = "Failed to report session capabilities for guild %s: %s"

    # yt-dlp Download
    YTDLP_DOWNLOADING = "Downloading %s to %s"
    YTDLP_JOINING_DOWNLOAD = "Waiting on running download of %s to %s"
    YTDLP_DOWNLOAD_FAILED = "yt-dlp failed for %s: %s"
    YTDLP_LOOKUP_FAILED = "yt-dlp could not read %s: %s"

    # Voice State
    VOICE_BOT_LEFT = "Bot left voice in guild %s, resetting session"


class DiscordUIMessages:
    """User-facing Discord messages and responses.

    These strings are shown directly to users in Discord interactions.
    Keep them concise, friendly, and include appropriate emoji.
    """

    # Success Messages
    SUCCESS_JOINED_VOICE = "🔊 Joined **{channel}**."
    SUCCESS_ENQUEUED = "➕ Queued **{track_title}** ({duration}). Queue length: {length}"
    SUCCESS_TRACK_REMOVED = "✅ Removed track #{track_number} from the queue."
    SUCCESS_NOW_PLAYING_NUMBER = "⏭️ Now on track #{track_number}."
    SUCCESS_ADDED_TRACKS = "➕ Added {count} tracks ({duration}) to the queue"
    SUCCESS_QUEUE_LENGTH = "The queue now holds {length} tracks."
    SUCCESS_RANDOM_ADDED = "🎲 Added {count} random tracks to the queue. Use `/queue` to see them."

    # Error Messages
    ERROR_OCCURRED = "An error occurred: {error}"
    ERROR_COULD_NOT_JOIN_VOICE = "I couldn't join your voice channel."
    ERROR_TRACK_NOT_FOUND = "Couldn't find a track for: {query}"
    ERROR_NOT_A_URL = "❌ Please provide a full http(s) URL."
    ERROR_NO_RESULTS = (
        "No results found for: {query}\n"
        "- Check for misspellings\n- Make sure I can access the library\n- Avoid special characters"
    )

    # Action Messages
    ACTION_STOPPED = "⏹️ Stopped playback and cleared the queue."
    ACTION_PAUSED = "⏸️ Paused playback."
    ACTION_RESUMED = "▶️ Resumed playback."
    ACTION_DISCONNECTED = "👋 Disconnected from voice channel."

    # State Messages
    STATE_QUEUE_EMPTY = "Queue is empty."
    STATE_NOT_CONNECTED_TO_VOICE = "Not connected to a voice channel."
    STATE_NEED_TO_BE_IN_VOICE = "You need to be in a voice channel first."
    STATE_SERVER_ONLY = "This command can only be used in a server."
    STATE_VERIFY_VOICE_FAILED = "Could not verify your voice state."
    STATE_NOTHING_PLAYING = "There is nothing playing right now."

    # Embed Titles
    EMBED_QUEUE = "📋 Queue ({total_tracks} tracks) · Page {page}/{total_pages}"
    EMBED_NOW_PLAYING = "🎵 Now Playing"
    EMBED_QUEUE_FOOTER = "Total {total} · Remaining {remaining} · {state}"
    EMBED_FIELD_ALBUM = "Album"
    EMBED_FIELD_ARTIST = "Artist"
    EMBED_FIELD_PLAYING = "Playing"
    EMBED_FIELD_DURATION = "Duration"
