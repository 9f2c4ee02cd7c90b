"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the bytes of ONE fixed-size read into a method, a path, a query map
and a post-parameter map. Only the request line is interpreted; no header is
ever looked at.

=============================================================================
WHAT GETS PARSED
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │    POST /login?next=home HTTP/1.1\r\n     ◄── request line          │
    │    ─┬── ────────┬───────                                             │
    │     │           │                                                    │
    │   method     target ──► path "/login", query "next=home"             │
    │                                                                      │
    │    Host: localhost:7878\r\n               ◄── ignored               │
    │    Content-Type: ...\r\n                  ◄── ignored               │
    │    \r\n                                                              │
    │    user=bob&pw=hunter2                    ◄── LAST line = post body │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
KNOWN LIMITATIONS (kept on purpose)
=============================================================================

1. SINGLE READ
   The connection is read exactly once, up to buffer_size bytes (1024 by
   default). Anything past that is never seen.

2. LAST LINE AS BODY
   Post parameters come from the last CRLF-separated line of the buffer.
   There is no Content-Length handling, so a multi-line body only yields
   its final line, and a GET whose buffer ends in "\r\n\r\n" yields an
   empty post map.

3. NO PERCENT-DECODING
   Keys and values are taken verbatim: "a%20b" stays "a%20b".

4. VALUES KEEP LATER "=" SIGNS
   A pair is split at its first "=" and the value keeps everything after
   it, so "k=v=w" gives "v=w". Earlier releases of this server split on
   every "=" and kept only the second piece ("v").

=============================================================================
PARAMETER STRING GRAMMAR
=============================================================================

    ""              → {}
    "a=1&b=2"       → {"a": "1", "b": "2"}
    "x"             → {"x": ""}
    "a=1&a=2"       → {"a": "2"}          last one wins
    "k=v=w"         → {"k": "v=w"}        split on the FIRST "=" only

=============================================================================
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional


class RequestParseError(Exception):
    """
    Raised when the buffer does not contain a usable request line.

    The connection handler drops such connections without a response.
    """


def parse_parameters(parameter_string: Optional[str]) -> Dict[str, str]:
    """
    Parse an "a=1&b=2" string into a dict.

    The same algorithm serves query strings and post bodies.

    Args:
        parameter_string: Raw parameter string, or None.

    Returns:
        Mapping of key to value. Missing values become "", duplicate
        keys keep the last value.
    """
    params: Dict[str, str] = {}
    if not parameter_string:
        return params

    for pair in parameter_string.split("&"):
        key, _, value = pair.partition("=")
        params[key] = value

    return params


def _readonly(mapping: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class Request:
    """
    The data a route handler receives about the caller.

    Attributes:
        query_parameters: From the target's "?..." part.
        post_parameters: From the last line of the read buffer.
        method: "GET" or "POST" (whatever the request line said).
        path: Request path without the query string.

    Both mappings are read-only views; the request is immutable once built.

    Example:
        http://localhost:7878/?test=123&hallo=3 gives
        request.query_parameters == {"test": "123", "hallo": "3"}
    """

    query_parameters: Mapping[str, str] = field(default_factory=dict)
    post_parameters: Mapping[str, str] = field(default_factory=dict)
    method: str = "GET"
    path: str = "/"

    def __post_init__(self):
        object.__setattr__(self, "query_parameters", _readonly(self.query_parameters))
        object.__setattr__(self, "post_parameters", _readonly(self.post_parameters))

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get one query parameter, or default if absent."""
        return self.query_parameters.get(name, default)

    def get_post(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get one post parameter, or default if absent."""
        return self.post_parameters.get(name, default)


@dataclass(frozen=True)
class ParsedRequest:
    """
    Everything the connection handler needs from one read.

    Attributes:
        method: Token 0 of the request line.
        target: Token 1 of the request line (path plus query).
        path: Target up to the first "?".
        query_string: Target after the first "?", or "".
        body_line: The last line of the decoded buffer.
    """

    method: str
    target: str
    path: str
    query_string: str
    body_line: str

    def to_request(self) -> Request:
        """Build the handler-facing Request."""
        return Request(
            query_parameters=parse_parameters(self.query_string),
            post_parameters=parse_parameters(self.body_line),
            method=self.method,
            path=self.path,
        )


class RequestParser:
    """
    Parser for the raw bytes of a single read.

    Usage:
        parser = RequestParser()
        parsed = parser.parse(b"GET /?a=1 HTTP/1.1\\r\\n\\r\\n")
        parsed.path        # "/"
        parsed.to_request().query_parameters  # {"a": "1"}
    """

    def parse(self, data: bytes) -> ParsedRequest:
        """
        Parse one read buffer.

        Args:
            data: Bytes returned by a single recv().

        Returns:
            ParsedRequest for the request line and last line.

        Raises:
            RequestParseError: If the buffer is not UTF-8 or the request
                line has fewer than two space-separated tokens.
        """
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise RequestParseError(f"Request is not valid UTF-8: {e}") from e

        # ─────────────────────────────────────────────────────────────────
        # STRIP PADDING, SPLIT INTO LINES
        # ─────────────────────────────────────────────────────────────────
        # A fixed buffer may carry NUL padding after the real bytes.
        text = text.replace("\x00", "")
        lines = text.split("\r\n")

        tokens = lines[0].split(" ")
        if len(tokens) < 2:
            raise RequestParseError(f"Invalid request line: {lines[0]!r}")

        method, target = tokens[0], tokens[1]
        path, _, query_string = target.partition("?")

        return ParsedRequest(
            method=method,
            target=target,
            path=path,
            query_string=query_string,
            body_line=lines[-1],
        )


def parse_request(data: bytes) -> ParsedRequest:
    """
    Parse raw request bytes.

    Convenience function for RequestParser().parse(data).
    """
    return RequestParser().parse(data)
