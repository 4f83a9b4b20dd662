"""test_sinks.py - Unit tests for the trace sinks.

Covers:
    - LoggingSink maps LogLevel to logging levels and formats "[source] message"
    - StreamSink writes one line per message, with optional timestamp
    - BufferSink keeps messages and honours capacity
    - Default sink get / set
"""

import io
import logging
import re

from tracegate.config import LogLevel
from tracegate.sinks import (
    BufferSink,
    LoggingSink,
    StreamSink,
    get_default_sink,
    set_default_sink,
)


class TestLoggingSink:
    def test_logging_sink_formats_source_and_message(self, caplog):
        sink = LoggingSink()
        with caplog.at_level(logging.DEBUG, logger="tracegate.trace"):
            sink.display("load_index", "COUNT:3 ", LogLevel.DEBUG)

        record = caplog.records[-1]
        assert record.name == "tracegate.trace"
        assert record.levelno == logging.DEBUG
        assert record.getMessage() == "[load_index] COUNT:3 "

    def test_logging_sink_maps_levels(self, caplog):
        sink = LoggingSink()
        with caplog.at_level(logging.DEBUG, logger="tracegate.trace"):
            sink.display("s", "w ", LogLevel.WARNING)
            sink.display("s", "e ", LogLevel.ERROR)

        assert [r.levelno for r in caplog.records[-2:]] == [logging.WARNING, logging.ERROR]

    def test_logging_sink_accepts_custom_logger(self, caplog):
        logger = logging.getLogger("custom.trace")
        sink = LoggingSink(logger)
        assert sink.logger is logger
        with caplog.at_level(logging.INFO, logger="custom.trace"):
            sink.display("s", "hello ", LogLevel.INFO)
        assert caplog.records[-1].name == "custom.trace"

    def test_off_level_is_above_critical(self):
        assert LogLevel.OFF.to_logging_level() > logging.CRITICAL


class TestStreamSink:
    def test_stream_sink_writes_line(self):
        stream = io.StringIO()
        StreamSink(stream).display("load", "X:1 ", LogLevel.DEBUG)
        assert stream.getvalue() == "[load] X:1 \n"

    def test_stream_sink_timestamp_prefix(self):
        stream = io.StringIO()
        StreamSink(stream, show_timestamp=True).display("load", "X:1 ", LogLevel.DEBUG)
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z \[load\] X:1 \n", stream.getvalue())


class TestBufferSink:
    def test_buffer_sink_keeps_messages(self):
        sink = BufferSink()
        sink.display("a", "one ", LogLevel.DEBUG)
        sink.display("b", "two ", LogLevel.INFO)
        assert sink.messages() == ["one ", "two "]
        assert [r.source for r in sink.buffer.snapshot()] == ["a", "b"]

    def test_buffer_sink_capacity(self):
        sink = BufferSink(capacity=1)
        sink.display("a", "one ", LogLevel.DEBUG)
        sink.display("a", "two ", LogLevel.DEBUG)
        assert sink.messages() == ["two "]

    def test_buffer_sink_clear(self):
        sink = BufferSink()
        sink.display("a", "one ", LogLevel.DEBUG)
        sink.clear()
        assert sink.messages() == []


class TestDefaultSink:
    def test_default_sink_is_logging_sink(self):
        assert isinstance(get_default_sink(), LoggingSink)

    def test_set_default_sink_returns_previous(self):
        sink = BufferSink()
        previous = set_default_sink(sink)
        try:
            assert get_default_sink() is sink
        finally:
            assert set_default_sink(previous) is sink
