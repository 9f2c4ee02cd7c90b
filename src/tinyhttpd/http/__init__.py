"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything between raw bytes and route handlers:

    ┌──────────────┐     ┌──────────────┐     ┌──────────────┐
    │ RequestParser│ ──► │  RouteTable  │ ──► │ ResponseSink │
    │  (request.py)│     │  (router.py) │     │(response.py) │
    └──────────────┘     └──────────────┘     └──────────────┘
     bytes → maps         (path, method)       status + body
                          → handler            → transport

=============================================================================
"""

from .request import (
    Request,
    ParsedRequest,
    RequestParser,
    RequestParseError,
    parse_parameters,
    parse_request,
)
from .response import ResponseSink, status_line
from .router import Handler, RouteTable

__all__ = [
    # Request
    "Request",
    "ParsedRequest",
    "RequestParser",
    "RequestParseError",
    "parse_parameters",
    "parse_request",
    # Response
    "ResponseSink",
    "status_line",
    # Routing
    "Handler",
    "RouteTable",
]
