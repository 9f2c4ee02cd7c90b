"""
=============================================================================
COMMAND LINE ENTRY POINT
=============================================================================

    python -m tinyhttpd [options]

Starts a server with a handful of demo routes, serving static files from
--root when given.

=============================================================================
DEMO ROUTES
=============================================================================

    GET  /parameter_demo/     Lists query parameters, shows a POST form
    POST /parameter_demo/     Lists post and query parameters
    GET  /counter/            Shared visit counter
    GET  /dead/               Status line only, no body
    GET  /idk/                Writes nothing at all

=============================================================================
EXAMPLES
=============================================================================

    python -m tinyhttpd --root ./www/ --index-of --log-file server.log
    python -m tinyhttpd --port 3000 --workers 16 --queue-size 256

=============================================================================
"""

import argparse
import logging
import sys
import threading

from .server import Server
from .config import ServerConfig
from .http import Request, ResponseSink


logger = logging.getLogger(__name__)


class Counter:
    """
    Thread-safe counter owned by the application, not by the server.

    Route handlers close over it; the server never synchronizes it.
    """

    def __init__(self):
        self._value = 0
        self._lock = threading.Lock()

    def next(self) -> int:
        """Return the current value and advance by one."""
        with self._lock:
            value = self._value
            self._value += 1
            return value


def _list_items(params) -> str:
    return "".join(f"<li><b>{k}</b> {v}</li>" for k, v in params.items())


def register_demo_routes(server: Server) -> Counter:
    """
    Register the demo routes on server.

    Returns:
        The counter behind /counter/.
    """

    @server.get("/parameter_demo/")
    def parameter_demo(request: Request, response: ResponseSink):
        response.set_status(200)
        response.write("<html>Servus<br><br>QUERY Parameters<ul>")
        response.write(_list_items(request.query_parameters))
        response.write(
            "</ul><br>"
            "<form action='' method='POST'>"
            "First name: <input type='text' name='fname'><br><br>"
            "Last name: <input type='text' name='lname'><br><br>"
            "<input type='submit' value='Submit'></form>"
            "</html>"
        )

    @server.post("/parameter_demo/")
    def parameter_demo_post(request: Request, response: ResponseSink):
        response.set_status(200)
        response.write("<html>Hey why you POST me <br><br>POST Parameters<ul>")
        response.write(_list_items(request.post_parameters))
        response.write("</ul><br>QUERY Parameters<ul>")
        response.write(_list_items(request.query_parameters))
        response.write("</ul></html>")

    counter = Counter()

    @server.get("/counter/")
    def show_counter(request: Request, response: ResponseSink):
        response.set_status(200)
        response.write(f"<h1>{counter.next()}</h1>")

    @server.get("/dead/")
    def dead(request: Request, response: ResponseSink):
        response.set_status(200)

    @server.get("/idk/")
    def idk(request: Request, response: ResponseSink):
        # The client gets an empty reply.
        logger.info("Hello")

    return counter


def console_handler(log_level: str, stream=None) -> logging.Handler:
    """
    Build the console handler for --log-level.

    The level sits on the handler itself: --log-file lowers the tinyhttpd
    logger to DEBUG, and those records must still stop at the console's
    level.
    """
    handler = logging.StreamHandler(stream)
    handler.setLevel(getattr(logging, log_level))
    handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    return handler


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tinyhttpd",
        description="Minimal concurrent HTTP server with routes and static files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--host", "-H",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=7878,
        help="Port to listen on (default: 7878)"
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=8,
        help="Number of worker threads (default: 8)"
    )
    parser.add_argument(
        "--queue-size", "-q",
        type=int,
        default=0,
        help="Job queue capacity; 0 is unbounded (default: 0)"
    )
    parser.add_argument(
        "--root", "-r",
        default=None,
        help="Document root for static files (e.g., ./www/)"
    )
    parser.add_argument(
        "--index-of",
        action="store_true",
        help="List directory contents when a directory is requested"
    )
    parser.add_argument(
        "--unconfined",
        action="store_true",
        help="Follow '..' outside the document root (unsafe)"
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Append log lines to this file"
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Console logging level (default: INFO)"
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version="tinyhttpd 1.0.0"
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        handlers=[console_handler(args.log_level)],
    )

    config = ServerConfig(
        host=args.host,
        port=args.port,
        workers=args.workers,
        queue_size=args.queue_size,
        index_of=args.index_of,
        confine_to_root=not args.unconfined,
        log_path=args.log_file,
        log_level=args.log_level,
    )

    try:
        server = Server(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.root and not server.set_document_root(args.root):
        print(f"Warning: document root {args.root} is not a directory", file=sys.stderr)

    register_demo_routes(server)

    try:
        started = server.start_server()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
        return 0

    if not started:
        print(f"Error: could not listen on {config.host}:{config.port}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
