"""
=============================================================================
ACCEPTOR
=============================================================================

Owns the listening socket: bind, listen, then accept connections forever
and hand each one to a callback (which submits a job to the thread pool).

=============================================================================
ACCEPT LOOP
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     Accept Loop Flow                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   bind() ── fails ──► log error, return False (nothing started)      │
    │     │                                                                │
    │   listen()                                                           │
    │     │                                                                │
    │   while running:                                                     │
    │     ├──► accept()                                                    │
    │     │      ├── timeout ────► loop (check running flag)               │
    │     │      ├── OSError ────► log warning, loop                       │
    │     │      └── (sock, addr)                                          │
    │     │                                                                │
    │     └──► on_connection(sock, addr)                                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The accept timeout exists only so shutdown() is noticed; it does not limit
how long a client may take.

=============================================================================
"""

import socket
import threading
import logging
from typing import Callable, Optional, Tuple


logger = logging.getLogger(__name__)


ConnectionCallback = Callable[[socket.socket, Tuple[str, int]], None]


class Acceptor:
    """
    TCP listener with an accept loop.

    Usage:
        acceptor = Acceptor("127.0.0.1", 7878)
        acceptor.serve(lambda sock, addr: pool.execute(...))  # blocks

        # From another thread:
        acceptor.shutdown()
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 7878,
        backlog: int = 128,
        accept_timeout: float = 1.0,
    ):
        self.host = host
        self.port = port
        self.backlog = backlog
        self.accept_timeout = accept_timeout

        self._socket: Optional[socket.socket] = None
        self._running = False
        self._listening = threading.Event()
        self._shutdown_event = threading.Event()  # Set once; an Acceptor serves one run
        self._address: Optional[Tuple[str, int]] = None

    @property
    def is_running(self) -> bool:
        """Check if the accept loop is running."""
        return self._running

    @property
    def address(self) -> Optional[Tuple[str, int]]:
        """The bound (host, port), or None before a successful bind."""
        return self._address

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Allow restarting on a port still in TIME_WAIT.
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        sock.settimeout(self.accept_timeout)
        return sock

    def bind(self) -> bool:
        """
        Create, bind and listen.

        Returns:
            True if listening, False if the bind failed (already logged).
        """
        sock = self._create_socket()
        try:
            sock.bind((self.host, self.port))
            sock.listen(self.backlog)
        except OSError as e:
            logger.error(f"Failed to bind to {self.host}:{self.port}: {e}")
            sock.close()
            return False

        self._socket = sock
        self._address = sock.getsockname()[:2]
        logger.info(f"Open TCP Port {self._address[1]} for incoming connections")
        return True

    def serve(self, on_connection: ConnectionCallback) -> bool:
        """
        Bind and run the accept loop until shutdown().

        Args:
            on_connection: Called with (client_socket, address) for every
                           accepted connection. It takes ownership of the
                           socket.

        Returns:
            False if the bind failed, True after a clean shutdown.
        """
        if self._socket is None and not self.bind():
            return False

        self._running = True
        self._listening.set()

        try:
            self._accept_loop(on_connection)
        finally:
            self._cleanup()
        return True

    def _accept_loop(self, on_connection: ConnectionCallback):
        while not self._shutdown_event.is_set():
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._shutdown_event.is_set():
                    break
                # An isolated accept failure (e.g. EMFILE) must not stop
                # the service.
                logger.warning(f"Accept error: {e}")
                continue

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            # accept() on a socket with a timeout may hand out a
            # non-blocking socket on some platforms.
            client_socket.setblocking(True)
            on_connection(client_socket, client_address)

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the listener is bound.

        Returns:
            True if listening, False on timeout.
        """
        return self._listening.wait(timeout)

    def shutdown(self):
        """
        Stop the accept loop.

        Takes effect within accept_timeout seconds. Safe to call more than
        once and from any thread.
        """
        if not self._shutdown_event.is_set():
            logger.info("Shutting down acceptor...")
        self._shutdown_event.set()

    def _cleanup(self):
        self._running = False
        self._listening.clear()
        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass  # Already closed
            self._socket = None
        logger.info("Acceptor stopped")
