"""
pytest configuration and fixtures.
"""

import logging
import socket
import threading
from pathlib import Path
from typing import Callable, Generator, List, Optional

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tinyhttpd import Server, ServerConfig


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request with a query string."""
    return (
        b"GET /api/users?page=1&limit=10 HTTP/1.1\r\n"
        b"Host: localhost:7878\r\n"
        b"User-Agent: pytest\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample form POST; the parameters are on the last line."""
    body = b"fname=Ada&lname=Lovelace"
    return (
        b"POST /parameter_demo/?source=form HTTP/1.1\r\n"
        b"Host: localhost:7878\r\n"
        b"Content-Type: application/x-www-form-urlencoded\r\n"
        b"Content-Length: " + str(len(body)).encode() + b"\r\n"
        b"\r\n"
    ) + body


@pytest.fixture
def www(tmp_path: Path) -> Path:
    """
    A document root:

        www/
        ├── index.html
        ├── data.bin
        └── sub/
            ├── a.txt
            └── b.txt
    """
    root = tmp_path / "www"
    root.mkdir()
    (root / "index.html").write_text("<h1>home</h1>")
    (root / "data.bin").write_bytes(bytes(range(256)) * 4)
    sub = root / "sub"
    sub.mkdir()
    (sub / "a.txt").write_text("alpha")
    (sub / "b.txt").write_text("beta")
    return root


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Remove file handlers tests attach to the tinyhttpd logger."""
    logger = logging.getLogger("tinyhttpd")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def send_request(port: int, data: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes and read the reply until the server closes."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as sock:
        sock.sendall(data)
        chunks = []
        while True:
            chunk = sock.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def split_response(raw: bytes) -> tuple:
    """Split a reply into (status line, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    return head.decode("ascii"), body


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # Not a test class

    def __init__(self, server: Server):
        self.server = server
        self.result: Optional[bool] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def _run(self):
        self.result = self.server.start_server()

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_listening(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server and wait for its thread."""
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)

    def get(self, target: str) -> bytes:
        return send_request(self.port, f"GET {target} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode())


@pytest.fixture
def make_server() -> Generator[Callable[..., TestServer], None, None]:
    """
    Factory for running servers on a free port.

        srv = make_server(workers=2)
        srv.server.get("/x/", handler)
        srv.start()
    """
    servers: List[TestServer] = []

    def factory(**options) -> TestServer:
        options.setdefault("port", 0)
        options.setdefault("workers", 2)
        options.setdefault("accept_timeout", 0.1)
        test_srv = TestServer(Server(ServerConfig(**options)))
        servers.append(test_srv)
        return test_srv

    yield factory

    for test_srv in servers:
        test_srv.stop()
