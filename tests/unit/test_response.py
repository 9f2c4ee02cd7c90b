"""
Unit tests for the response sink.
"""

import io

import pytest

from tinyhttpd.http.response import ResponseSink, status_line


class RecordingStream(io.BytesIO):
    """BytesIO that records write and flush calls."""

    def __init__(self):
        super().__init__()
        self.writes = []
        self.flush_count = 0

    def write(self, data):
        self.writes.append(bytes(data))
        return super().write(data)

    def flush(self):
        self.flush_count += 1
        super().flush()


class FailingFlushStream(RecordingStream):
    def flush(self):
        self.flush_count += 1
        raise BrokenPipeError("client went away")


class TestStatusLine:
    """Tests for status line generation."""

    def test_status_line(self):
        assert status_line(200) == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_reason_phrase_is_always_ok(self):
        assert status_line(404) == b"HTTP/1.1 404 OK\r\n\r\n"
        assert status_line(500) == b"HTTP/1.1 500 OK\r\n\r\n"


class TestResponseSink:
    """Tests for ResponseSink class."""

    def test_status_then_body(self):
        stream = RecordingStream()
        with ResponseSink(stream) as response:
            response.set_status(200)
            response.write(b"123456789")

        assert stream.getvalue() == b"HTTP/1.1 200 OK\r\n\r\n123456789"

    def test_write_accepts_str(self):
        stream = RecordingStream()
        with ResponseSink(stream) as response:
            response.write("<h1>Grüß</h1>")

        assert stream.getvalue() == "<h1>Grüß</h1>".encode("utf-8")

    def test_each_write_goes_to_transport(self):
        """Test that writes are passed through one by one."""
        stream = RecordingStream()
        response = ResponseSink(stream)
        response.write(b"a")
        response.write(b"b")

        assert stream.writes == [b"a", b"b"]
        assert stream.flush_count == 0

    def test_second_status_writes_second_line(self):
        stream = RecordingStream()
        with ResponseSink(stream) as response:
            response.set_status(200)
            response.set_status(500)

        assert stream.getvalue() == b"HTTP/1.1 200 OK\r\n\r\nHTTP/1.1 500 OK\r\n\r\n"

    def test_flushes_once_on_normal_exit(self):
        stream = RecordingStream()
        with ResponseSink(stream) as response:
            response.write(b"x")

        assert stream.flush_count == 1
        assert response.flushed

    def test_flushes_once_on_early_return(self):
        stream = RecordingStream()

        def handler(response, params):
            response.set_status(200)
            if "name" not in params:
                return
            response.write(params["name"])

        with ResponseSink(stream) as response:
            handler(response, {})

        assert stream.flush_count == 1
        assert stream.getvalue() == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_flushes_once_on_exception(self):
        stream = RecordingStream()

        with pytest.raises(RuntimeError):
            with ResponseSink(stream) as response:
                response.write(b"partial")
                raise RuntimeError("handler bug")

        assert stream.flush_count == 1
        assert stream.getvalue() == b"partial"

    def test_finish_is_idempotent(self):
        stream = RecordingStream()
        response = ResponseSink(stream)
        response.finish()
        response.finish()
        with response:
            pass

        assert stream.flush_count == 1

    def test_failed_flush_is_logged_not_raised(self, caplog):
        stream = FailingFlushStream()

        with caplog.at_level("WARNING", logger="tinyhttpd.http.response"):
            with ResponseSink(stream) as response:
                response.write(b"x")

        assert stream.flush_count == 1
        assert any("client went away" in r.getMessage() for r in caplog.records)

    def test_failed_flush_does_not_mask_handler_error(self):
        stream = FailingFlushStream()

        with pytest.raises(KeyError):
            with ResponseSink(stream):
                raise KeyError("original")
