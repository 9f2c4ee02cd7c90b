"""
=============================================================================
SERVER
=============================================================================

The configuration surface of the engine and the code that wires the parts
together.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                            Server                                    │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   configuration time                                                 │
    │     set_document_root()  use_index_of()  set_logger()                │
    │     get(path, handler)   post(path, handler)                         │
    │                                                                      │
    │   start_server(port)                                                 │
    │     │                                                                │
    │     ├──► Acceptor.bind()          fails → return False               │
    │     ├──► ThreadPool(workers)                                         │
    │     └──► Acceptor.serve()         blocks                             │
    │             │                                                        │
    │             └──► per connection:                                     │
    │                    pool.execute(ConnectionHandler(sock, addr))       │
    │                                                                      │
    │   shutdown()                                                         │
    │     └──► stop accepting, finish queued jobs, join workers            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
USAGE
=============================================================================

    from tinyhttpd import Server

    server = Server()
    server.set_document_root("./www/")
    server.use_index_of(True)
    server.set_logger("server.log")

    @server.get("/hello/")
    def hello(request, response):
        response.set_status(200)
        response.write(f"Hello {request.get_query('name', 'world')}")

    server.start_server(7878)   # blocks

=============================================================================
"""

import functools
import logging
import socket
import threading
from pathlib import Path
from typing import Optional, Tuple

from .config import ServerConfig
from .core import Acceptor, ConnectionHandler, ThreadPool
from .handlers import StaticFileResolver
from .http import Handler, RouteTable
from .logger import attach_file_log, detach_file_log


logger = logging.getLogger(__name__)


class Server:
    """
    Concurrent HTTP server with exact-match routes and static fallback.
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Initialize the server.

        Args:
            config: Server configuration. Uses defaults if not provided.
                    log_path and document_root, when set, are applied as
                    if set_logger() / set_document_root() were called.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._routes = RouteTable()
        self._document_root: Optional[str] = None
        self._log_handler: Optional[logging.FileHandler] = None

        self._acceptor: Optional[Acceptor] = None
        self._thread_pool: Optional[ThreadPool] = None
        self._running = False
        self._listening = threading.Event()
        self._stop_requested = False  # shutdown() seen before the acceptor existed

        if self.config.log_path:
            self.set_logger(self.config.log_path)

        if self.config.document_root:
            self.set_document_root(self.config.document_root)

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def set_logger(self, log_path: str) -> None:
        """
        Append the server's log lines to log_path.

        Replaces a file log installed by an earlier call.
        """
        if self._log_handler is not None:
            detach_file_log(self._log_handler)
        self._log_handler = attach_file_log(log_path)
        self.config.log_path = log_path

    def set_document_root(self, document_root: str) -> bool:
        """
        Set the directory static files are served from.

        Args:
            document_root: Absolute or relative directory path.

        Returns:
            True if the directory exists and was set. False otherwise; the
            previous document root, if any, stays in effect.
        """
        if not Path(document_root).is_dir():
            logger.warning(f"document_root {document_root} is not valid")
            return False

        logger.info(f"New document_root was set to {document_root}")
        self._document_root = document_root
        self.config.document_root = document_root
        return True

    @property
    def document_root(self) -> Optional[str]:
        """The current document root, or None if none is set."""
        return self._document_root

    def use_index_of(self, index_of: bool) -> None:
        """Set whether to list a directory's files when it is requested."""
        self.config.index_of = index_of

    # =========================================================================
    # ROUTES
    # =========================================================================

    @property
    def routes(self) -> RouteTable:
        return self._routes

    def route(self, path: str, method: str, handler: Optional[Handler] = None):
        """
        Register handler for (path, method).

        Works both as a call and as a decorator:

            server.route("/", "GET", index)

            @server.route("/", "GET")
            def index(request, response): ...
        """
        if handler is None:
            return self._routes.route(path, method)
        self._routes.register(path, method, handler)
        return handler

    def get(self, path: str, handler: Optional[Handler] = None):
        """Register a GET route."""
        return self.route(path, "GET", handler)

    def post(self, path: str, handler: Optional[Handler] = None):
        """Register a POST route."""
        return self.route(path, "POST", handler)

    # =========================================================================
    # SERVING
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Optional[Tuple[str, int]]:
        """The bound (host, port) while serving, else None."""
        return self._acceptor.address if self._acceptor else None

    @property
    def stats(self) -> Optional[dict]:
        """Thread pool statistics while serving, else None."""
        return self._thread_pool.stats if self._thread_pool else None

    def _make_connection_handler(self) -> ConnectionHandler:
        static = None
        if self._document_root is not None:
            static = StaticFileResolver(
                self._document_root,
                index_of=self.config.index_of,
                confine_to_root=self.config.confine_to_root,
            )
        return ConnectionHandler(
            self._routes,
            static,
            buffer_size=self.config.buffer_size,
            timeout=self.config.connection_timeout,
        )

    def start_server(self, port: Optional[int] = None) -> bool:
        """
        Listen on port and serve until shutdown() is called.

        This method BLOCKS.

        Args:
            port: Port to listen on; config.port when omitted.

        Returns:
            False if the port could not be bound (logged; nothing started),
            True after a shutdown.
        """
        if port is not None:
            self.config.port = port

        acceptor = Acceptor(
            host=self.config.host,
            port=self.config.port,
            backlog=self.config.backlog,
            accept_timeout=self.config.accept_timeout,
        )
        if not acceptor.bind():
            return False
        self._acceptor = acceptor
        if self._stop_requested:
            acceptor.shutdown()

        connection_handler = self._make_connection_handler()
        pool = ThreadPool(self.config.workers, queue_size=self.config.queue_size)
        self._thread_pool = pool

        def on_connection(client_socket: socket.socket, address: Tuple[str, int]):
            pool.execute(functools.partial(connection_handler, client_socket, address))

        self._running = True
        self._listening.set()
        try:
            return acceptor.serve(on_connection)
        finally:
            self._running = False
            self._listening.clear()
            self._stop_requested = False
            pool.shutdown()
            logger.info("Server stopped")

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for start_server() (running in another thread) to bind.

        Returns:
            True once listening, False on timeout.
        """
        return self._listening.wait(timeout)

    def shutdown(self) -> None:
        """
        Stop serving.

        The accept loop ends, then every queued connection job finishes
        before start_server() returns. Called before start_server() has
        bound, it makes that start_server() return right after binding.
        """
        self._stop_requested = True
        if self._acceptor is not None:
            self._acceptor.shutdown()
