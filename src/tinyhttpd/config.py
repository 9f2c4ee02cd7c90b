"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every knob of the server in one dataclass.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    1. Code            ServerConfig(port=3000, workers=4)
    2. Environment     ServerConfig.from_env()  (TINYHTTPD_PORT=3000 ...)
    3. Command line    python -m tinyhttpd --port 3000

=============================================================================
OPTIONS
=============================================================================

    ┌──────────────────┬──────────────┬──────────────────────────────────┐
    │ Option           │ Default      │ Meaning                          │
    ├──────────────────┼──────────────┼──────────────────────────────────┤
    │ host             │ 127.0.0.1    │ Interface to bind                │
    │ port             │ 7878         │ TCP port (0 = any free port)     │
    │ backlog          │ 128          │ listen() queue length            │
    │ workers          │ 8            │ Fixed worker thread count        │
    │ queue_size       │ 0            │ Job queue bound (0 = unbounded)  │
    │ buffer_size      │ 1024         │ Bytes read per request (once!)   │
    │ connection_timeout│ None        │ Socket timeout per connection    │
    │ document_root    │ None         │ Static file directory            │
    │ index_of         │ False        │ Directory listings               │
    │ confine_to_root  │ True         │ Reject paths escaping the root   │
    │ log_path         │ None         │ Append-only log file             │
    │ log_level        │ INFO         │ Console log level (CLI)          │
    │ accept_timeout   │ 1.0          │ Shutdown polling interval        │
    └──────────────────┴──────────────┴──────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value else None


@dataclass
class ServerConfig:
    """
    Server configuration.

    Example:
        config = ServerConfig(port=8080, document_root="./www/", index_of=True)
        config.validate()
    """

    # Network
    host: str = "127.0.0.1"
    port: int = 7878
    backlog: int = 128

    # Concurrency
    workers: int = 8
    queue_size: int = 0

    # Connections
    buffer_size: int = 1024
    connection_timeout: Optional[float] = None

    # Static files
    document_root: Optional[str] = None
    index_of: bool = False
    confine_to_root: bool = True

    # Logging
    log_path: Optional[str] = None
    log_level: str = "INFO"

    # Accept loop
    accept_timeout: float = 1.0

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create config from TINYHTTPD_* environment variables.

        Variables:
            TINYHTTPD_HOST, TINYHTTPD_PORT, TINYHTTPD_WORKERS,
            TINYHTTPD_QUEUE_SIZE, TINYHTTPD_BUFFER_SIZE,
            TINYHTTPD_CONNECTION_TIMEOUT, TINYHTTPD_DOCUMENT_ROOT,
            TINYHTTPD_INDEX_OF, TINYHTTPD_CONFINE_TO_ROOT,
            TINYHTTPD_LOG_PATH, TINYHTTPD_LOG_LEVEL
        """
        return cls(
            host=os.getenv("TINYHTTPD_HOST", "127.0.0.1"),
            port=int(os.getenv("TINYHTTPD_PORT", "7878")),
            workers=int(os.getenv("TINYHTTPD_WORKERS", "8")),
            queue_size=int(os.getenv("TINYHTTPD_QUEUE_SIZE", "0")),
            buffer_size=int(os.getenv("TINYHTTPD_BUFFER_SIZE", "1024")),
            connection_timeout=_env_float("TINYHTTPD_CONNECTION_TIMEOUT"),
            document_root=os.getenv("TINYHTTPD_DOCUMENT_ROOT"),
            index_of=_env_bool("TINYHTTPD_INDEX_OF", False),
            confine_to_root=_env_bool("TINYHTTPD_CONFINE_TO_ROOT", True),
            log_path=os.getenv("TINYHTTPD_LOG_PATH"),
            log_level=os.getenv("TINYHTTPD_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Check the configuration.

        The document root is not checked here; Server.set_document_root()
        reports a bad root by returning False.

        Raises:
            ValueError: If any option is out of range.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")
        if self.workers < 1:
            raise ValueError("workers must be >= 1")
        if self.queue_size < 0:
            raise ValueError("queue_size must be >= 0 (0 means unbounded)")
        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")
        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")
        if self.connection_timeout is not None and self.connection_timeout <= 0:
            raise ValueError("connection_timeout must be > 0")
        if self.accept_timeout <= 0:
            raise ValueError("accept_timeout must be > 0")
