"""
=============================================================================
TINYHTTPD
=============================================================================

A minimal concurrent HTTP server engine:

    • Fixed pool of worker threads, one connection per job
    • One fixed-size read per connection, request line only
    • Exact (path, method) routes for GET and POST
    • Static file fallback with optional directory listings
    • Append-only file log

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    tinyhttpd/
    ├── __init__.py          # This file - public exports
    ├── __main__.py          # CLI + demo routes: python -m tinyhttpd
    ├── server.py            # Server: configuration surface and wiring
    ├── config.py            # ServerConfig dataclass
    ├── logger.py            # "LEVEL (timestamp): message" file log
    │
    ├── core/
    │   ├── acceptor.py      # TCP listener, accept loop
    │   ├── thread_pool.py   # Fixed worker pool, shared job queue
    │   └── connection.py    # One connection: read, dispatch, respond
    │
    ├── http/
    │   ├── request.py       # Request line and parameter parsing
    │   ├── response.py      # ResponseSink (status line, body, flush)
    │   └── router.py        # RouteTable: (path, method) → handler
    │
    └── handlers/
        └── static.py        # StaticFileResolver

=============================================================================
QUICK START
=============================================================================

    from tinyhttpd import Server

    server = Server()
    server.set_document_root("./www/")

    def hello(request, response):
        response.set_status(200)
        response.write("<h1>Hello</h1>")

    server.get("/hello/", hello)
    server.start_server(7878)

=============================================================================
"""

__version__ = "1.0.0"

from .server import Server
from .config import ServerConfig
from .http import Request, ResponseSink

__all__ = ["Server", "ServerConfig", "Request", "ResponseSink", "__version__"]
