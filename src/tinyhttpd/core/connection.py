"""
=============================================================================
CONNECTION HANDLING
=============================================================================

One accepted connection = one job = one request = one response.

=============================================================================
LIFECYCLE OF A CONNECTION JOB
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    ConnectionHandler.__call__                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   recv(buffer_size)           ◄── exactly ONE read                   │
    │        │                                                             │
    │        ├── read error ──────► warning, close, done                   │
    │        ▼                                                             │
    │   RequestParser.parse()                                              │
    │        │                                                             │
    │        ├── malformed ───────► close without a response               │
    │        ▼                                                             │
    │   RouteTable.dispatch(path, method)                                  │
    │        │                                                             │
    │        ├── handler ─────────► handler(request, response)             │
    │        │                                                             │
    │        └── no match ────────► StaticFileResolver.serve()             │
    │                               (skipped if no document root)          │
    │        ▼                                                             │
    │   final flush, close socket                                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

No keep-alive: the socket is closed when the job ends, which is also how
the client learns where the body stops.

Routes and static files are both looked up by the path WITHOUT its query
string, so "/a.txt?x=1" serves a.txt. Looking files up by the full target
would answer 404 for any static request that carries a query.

=============================================================================
"""

import socket
import logging
from contextlib import closing
from typing import Optional, Tuple

from ..http.request import RequestParser, RequestParseError
from ..http.response import ResponseSink
from ..http.router import RouteTable
from ..handlers.static import StaticFileResolver


logger = logging.getLogger(__name__)


class SocketStream:
    """
    Unbuffered write side of a client socket.

    Every write() is one sendall(): each ResponseSink call has reached the
    kernel before the handler continues.
    """

    def __init__(self, sock: socket.socket):
        self.sock = sock

    def write(self, data: bytes) -> int:
        # sendall() blocks until ALL data is sent or raises
        self.sock.sendall(data)
        return len(data)

    def flush(self) -> None:
        """Nothing is held back, so there is nothing to flush."""


class ConnectionHandler:
    """
    Serves one connection per call, on the calling (worker) thread.

    A single instance is shared by all workers. It only holds read-mostly
    state: the route table (itself lock-guarded), the optional static
    resolver and the read size.

    Usage:
        handler = ConnectionHandler(routes, static)
        pool.execute(functools.partial(handler, client_socket, address))
    """

    def __init__(
        self,
        routes: RouteTable,
        static: Optional[StaticFileResolver] = None,
        buffer_size: int = 1024,
        timeout: Optional[float] = None,
    ):
        """
        Args:
            routes: Shared route table.
            static: Fallback for unmatched requests; None disables it.
            buffer_size: Size of the single read.
            timeout: Socket timeout for the connection; None blocks forever.
        """
        self.routes = routes
        self.static = static
        self.buffer_size = buffer_size
        self.timeout = timeout
        self._parser = RequestParser()

    def __call__(self, client_socket: socket.socket, address: Tuple[str, int]) -> None:
        """
        Handle one connection from read to close.

        Exceptions raised by a route handler propagate to the worker, which
        logs them; the response is flushed and the socket closed first.
        """
        with closing(client_socket):
            client_socket.settimeout(self.timeout)

            try:
                data = client_socket.recv(self.buffer_size)
            except OSError as e:
                logger.warning(f"Error: {e}")
                return

            try:
                parsed = self._parser.parse(data)
            except RequestParseError as e:
                logger.debug(f"Dropping connection from {address[0]}:{address[1]}: {e}")
                return

            logger.debug(f"header: {parsed.method}, request: {parsed.path}")

            handler = self.routes.dispatch(parsed.path, parsed.method)
            if handler is None and self.static is None:
                return

            try:
                with ResponseSink(SocketStream(client_socket)) as response:
                    if handler is not None:
                        logger.info("Users custom route hit")
                        handler(parsed.to_request(), response)
                    else:
                        self.static.serve(parsed.path, response)
            except OSError as e:
                # ─────────────────────────────────────────────────────────
                # TRANSPORT ERROR MID-RESPONSE
                # ─────────────────────────────────────────────────────────
                # The client went away. Whatever was written is all they
                # get; the worker moves on.
                logger.warning(f"Error: {e}")
