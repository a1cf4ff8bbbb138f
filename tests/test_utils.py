"""Tests for shared utility functions and the turn logging context."""

import contextvars
import io
import logging

from repairline.logging_context import (
    LOG_FORMAT,
    NO_TURN,
    TurnIdFilter,
    get_turn_id,
    get_turn_logger,
    install_turn_filter,
    set_turn_id,
    start_turn,
)
from repairline.utils import normalize_callback_number, preview, truncate


class TestNormalizeCallbackNumber:
    def test_dashes(self):
        assert normalize_callback_number("555-123-4567") == "+15551234567"

    def test_parentheses_and_spaces(self):
        assert normalize_callback_number("(555) 123 4567") == "+15551234567"

    def test_dots(self):
        assert normalize_callback_number("555.123.4567") == "+15551234567"

    def test_non_ten_digit_kept_as_digits(self):
        assert normalize_callback_number("1-555-123-4567") == "15551234567"


class TestTruncate:
    def test_short_text_unchanged(self):
        assert truncate("hello", 10) == "hello"

    def test_exact_limit_unchanged(self):
        assert truncate("x" * 10, 10) == "x" * 10

    def test_long_text_cut_with_ellipsis(self):
        assert truncate("abcdefghijkl", 5) == "abcde..."

    def test_preview_single_line(self):
        assert preview("line one\nline two", 12) == "line one lin"


class TestTurnLogging:
    def test_default_turn_id(self):
        ctx = contextvars.Context()
        assert ctx.run(get_turn_id) == NO_TURN

    def test_start_turn_builds_id_from_contact(self):
        turn_id = start_turn("+15551234567")
        contact, _, millis = turn_id.rpartition("-")
        assert contact == "+15551234567"
        assert millis.isdigit()
        assert get_turn_id() == turn_id

    def test_filter_attaches_turn_id(self):
        set_turn_id("turn-42")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        assert TurnIdFilter().filter(record)
        assert record.turn_id == "turn-42"

    def test_filter_keeps_existing_id(self):
        set_turn_id("turn-43")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        record.turn_id = "turn-1"
        TurnIdFilter().filter(record)
        assert record.turn_id == "turn-1"

    def test_logger_filter_added_once(self):
        logger = get_turn_logger("repairline.tests.once")
        get_turn_logger("repairline.tests.once")
        assert sum(isinstance(f, TurnIdFilter) for f in logger.filters) == 1

    def test_handler_output_includes_turn_id(self):
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        install_turn_filter(handler)
        install_turn_filter(handler)
        logger = logging.getLogger("repairline.tests.plain")
        logger.setLevel(logging.INFO)
        logger.addHandler(handler)
        try:
            set_turn_id("turn-7")
            logger.info("slots extracted")
        finally:
            logger.removeHandler(handler)

        assert "[turn-7] INFO: slots extracted" in stream.getvalue()
        assert sum(isinstance(f, TurnIdFilter) for f in handler.filters) == 1
