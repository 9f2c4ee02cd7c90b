"""
=============================================================================
RESPONSE SINK
=============================================================================

Write-through output for one connection. Handlers write the status line and
then the body, piece by piece, straight to the transport.

=============================================================================
WIRE FORMAT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │    HTTP/1.1 200 OK\r\n          ◄── set_status(200)                 │
    │    \r\n                                                              │
    │    <h1>0</h1>                   ◄── write(...)                      │
    │    <p>more</p>                  ◄── write(...)                      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    • No headers at all: no Content-Length, no Content-Type
    • The reason phrase is ALWAYS "OK", whatever the code
    • set_status() called twice writes two status lines
    • The client learns the body ended when the connection closes

=============================================================================
FLUSH GUARANTEE
=============================================================================

    with ResponseSink(stream) as response:
        handler(request, response)
    # ◄── exactly one flush here, whether the handler returned,
    #     returned early, or raised

=============================================================================
"""

import logging
from typing import BinaryIO, Union


logger = logging.getLogger(__name__)


def status_line(code: int) -> bytes:
    """
    Build the status line plus the blank line that ends the (empty) header.

    >>> status_line(404)
    b'HTTP/1.1 404 OK\\r\\n\\r\\n'
    """
    return f"HTTP/1.1 {code} OK\r\n\r\n".encode("ascii")


class ResponseSink:
    """
    Exclusive writer for one connection's response.

    Attributes:
        stream: Binary writable transport (a SocketStream in production,
                any object with write() and flush() in tests).
        flushed: True once the final flush has been performed.
    """

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.flushed = False

    def set_status(self, code: int) -> None:
        """
        Write the status line for code.

        Args:
            code: Numeric HTTP status, e.g. 200 or 404.

        Raises:
            OSError: If the transport write fails.
        """
        self.stream.write(status_line(code))

    def write(self, data: Union[bytes, str]) -> None:
        """
        Append body data. Strings are encoded as UTF-8.

        Each call is one transport write; nothing is held back here.

        Raises:
            OSError: If the transport write fails.
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.stream.write(data)

    def finish(self) -> None:
        """
        Perform the final flush. Only the first call does anything.

        A transport error here is logged, not raised, so it never replaces
        an exception that is already propagating.
        """
        if self.flushed:
            return
        self.flushed = True
        try:
            self.stream.flush()
        except OSError as e:
            logger.warning(f"Error: {e}")

    def __enter__(self) -> "ResponseSink":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finish()
        return False  # Don't suppress exceptions
