"""
Unit tests for the command line entry point and the demo routes.
"""

import io
import logging
import socket
from pathlib import Path

from tinyhttpd import Server
from tinyhttpd.__main__ import build_parser, console_handler, main, register_demo_routes
from tinyhttpd.http import Request, ResponseSink
from tinyhttpd.logger import attach_file_log, detach_file_log


def call_route(server: Server, path: str, method: str = "GET", request=None) -> bytes:
    handler = server.routes.dispatch(path, method)
    stream = io.BytesIO()
    with ResponseSink(stream) as response:
        handler(request or Request(method=method, path=path), response)
    return stream.getvalue()


class TestArgumentParser:
    """Tests for build_parser()."""

    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.port == 7878
        assert args.workers == 8
        assert args.queue_size == 0
        assert args.root is None
        assert args.index_of is False
        assert args.unconfined is False

    def test_options(self):
        args = build_parser().parse_args([
            "--port", "9000", "-w", "2", "--root", "./www/", "--index-of",
            "--log-file", "server.log",
        ])

        assert args.port == 9000
        assert args.workers == 2
        assert args.root == "./www/"
        assert args.index_of is True
        assert args.log_file == "server.log"


class TestMain:
    """Tests for main() exit codes."""

    def test_invalid_config_exits_2(self, capsys):
        assert main(["--workers", "0"]) == 2
        assert "workers" in capsys.readouterr().err

    def test_occupied_port_exits_1(self, capsys):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as holder:
            holder.bind(("127.0.0.1", 0))
            holder.listen(1)
            port = holder.getsockname()[1]

            assert main(["--port", str(port)]) == 1

        assert "could not listen" in capsys.readouterr().err


class TestConsoleLogging:
    """--log-level applies to the console even when a file log is attached."""

    def test_file_log_does_not_leak_debug_to_console(self, tmp_path: Path):
        stream = io.StringIO()
        console = console_handler("INFO", stream)
        root = logging.getLogger()
        root.addHandler(console)
        file_handler = attach_file_log(str(tmp_path / "server.log"))
        try:
            pool_logger = logging.getLogger("tinyhttpd.core.thread_pool")
            pool_logger.debug("Worker 0 started")
            pool_logger.info("Starting thread pool with 1 workers")
        finally:
            detach_file_log(file_handler)
            root.removeHandler(console)

        assert "Worker 0 started" not in stream.getvalue()
        assert "Starting thread pool with 1 workers" in stream.getvalue()
        file_text = (tmp_path / "server.log").read_text(encoding="utf-8")
        assert "Worker 0 started" in file_text

    def test_handler_level_follows_option(self):
        assert console_handler("WARNING").level == logging.WARNING
        assert console_handler("DEBUG").level == logging.DEBUG


class TestDemoRoutes:
    """Tests for the routes the CLI registers."""

    def test_registered_routes(self):
        server = Server()
        register_demo_routes(server)

        assert sorted(server.routes.routes()) == [
            ("/counter/", "GET"),
            ("/dead/", "GET"),
            ("/idk/", "GET"),
            ("/parameter_demo/", "GET"),
            ("/parameter_demo/", "POST"),
        ]

    def test_counter_counts_from_zero(self):
        server = Server()
        register_demo_routes(server)

        bodies = [call_route(server, "/counter/") for _ in range(3)]

        assert bodies == [
            b"HTTP/1.1 200 OK\r\n\r\n<h1>0</h1>",
            b"HTTP/1.1 200 OK\r\n\r\n<h1>1</h1>",
            b"HTTP/1.1 200 OK\r\n\r\n<h1>2</h1>",
        ]

    def test_dead_sends_status_only(self):
        server = Server()
        register_demo_routes(server)

        assert call_route(server, "/dead/") == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_idk_sends_nothing(self):
        server = Server()
        register_demo_routes(server)

        assert call_route(server, "/idk/") == b""

    def test_parameter_demo_lists_parameters(self):
        server = Server()
        register_demo_routes(server)
        request = Request(
            query_parameters={"source": "form"},
            post_parameters={"fname": "Ada"},
            method="POST",
            path="/parameter_demo/",
        )

        body = call_route(server, "/parameter_demo/", "POST", request).decode()

        assert "<li><b>fname</b> Ada</li>" in body
        assert "<li><b>source</b> form</li>" in body
