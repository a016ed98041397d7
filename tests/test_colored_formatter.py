"""Tests for ColoredFormatter and the console handler."""

import logging
from io import StringIO
from unittest.mock import patch

import pytest

from discord_jellyfin_player.utils.logging import ColoredFormatter, build_console_handler

RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}


def _make_record(level: int, message: str = "test") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )


def _tty_stream() -> StringIO:
    stream = StringIO()
    stream.isatty = lambda: True  # type: ignore[method-assign]
    return stream


class TestColoredFormatter:
    """Tests for ANSI color formatting."""

    def _tty_formatter(self) -> ColoredFormatter:
        return ColoredFormatter("%(levelname)s | %(message)s", stream=_tty_stream())

    @pytest.mark.parametrize(
        "level",
        [logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL],
    )
    def test_color_applied_per_level(self, level: int, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        output = self._tty_formatter().format(_make_record(level))

        assert LEVEL_COLORS[level] in output
        assert RESET in output

    def test_no_color_when_no_color_env_set(self):
        fmt = self._tty_formatter()

        with patch.dict("os.environ", {"NO_COLOR": "1"}):
            output = fmt.format(_make_record(logging.INFO))

        assert "\033[" not in output

    def test_no_color_when_stream_not_tty(self):
        fmt = ColoredFormatter("%(levelname)s | %(message)s", stream=StringIO())

        output = fmt.format(_make_record(logging.ERROR))

        assert "\033[" not in output
        assert output == "ERROR | test"

    def test_format_output_matches_pattern(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        output = self._tty_formatter().format(_make_record(logging.INFO, "hello world"))

        plain = output.replace(LEVEL_COLORS[logging.INFO], "").replace(RESET, "")
        assert plain == "INFO | hello world"

    def test_original_record_not_mutated(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        record = _make_record(logging.WARNING)

        self._tty_formatter().format(record)

        assert record.levelname == "WARNING"


class TestBuildConsoleHandler:
    def test_writes_to_given_stream(self):
        stream = StringIO()
        handler = build_console_handler(stream)

        handler.emit(_make_record(logging.INFO, "ready"))

        output = stream.getvalue()
        assert "INFO" in output
        assert "test.logger" in output
        assert "ready" in output
        assert "\033[" not in output

    def test_formatter_is_colored_formatter(self):
        handler = build_console_handler(StringIO())

        assert isinstance(handler, logging.StreamHandler)
        assert isinstance(handler.formatter, ColoredFormatter)
