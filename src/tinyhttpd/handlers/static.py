"""
=============================================================================
STATIC FILE RESOLVER
=============================================================================

Fallback for requests no route claimed: map the request path onto the
document root and answer with the file, a directory listing, or a 404.

=============================================================================
RESOLUTION
=============================================================================

    document_root = "./www/"       request path = "/docs/a.txt"
                                           │
                              strip leading "/" → "docs/a.txt"
                                           │
                      concatenate → "./www/docs/a.txt"

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     Outcomes                                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   regular file                 → 200 + raw bytes                     │
    │   directory, index_of on       → 200 + HTML listing                  │
    │   directory, index_of off      → nothing written at all              │
    │   does not exist               → 404 + fixed HTML body               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

No Content-Type, no Content-Length, no index.html lookup, no caching
headers. The bytes on disk are the body.

=============================================================================
PATH TRAVERSAL
=============================================================================

Plain concatenation follows ".." segments:

    GET /../secret.txt  →  "./www/../secret.txt"  →  outside the root!

With confine_to_root=True (the default) the concatenated path is resolved
(".." collapsed, symlinks followed) and must stay inside the resolved
document root; anything else is answered exactly like a missing file (404).
confine_to_root=False keeps the raw concatenation behavior and serves
whatever the path reaches.

=============================================================================
"""

import os
import html
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from ..http.response import ResponseSink


logger = logging.getLogger(__name__)


NOT_FOUND_BODY = b"<html><h1>404 not found</h1><hr> powered by tinyhttpd</html>"


class Outcome(Enum):
    FILE = "file"
    LISTING = "listing"
    DIRECTORY = "directory"  # listing disabled, nothing is written
    NOT_FOUND = "not_found"


@dataclass
class Resolution:
    """
    Result of resolving one virtual path.

    Attributes:
        outcome: Which of the four cases applied.
        path: The concatenated filesystem path that was examined.
        status: Status code to send, or None when nothing is sent.
        body: Response body bytes.
    """

    outcome: Outcome
    path: str
    status: Optional[int] = None
    body: bytes = b""


def generate_index_of(directory: str, virtual_path: str) -> str:
    """
    Build the HTML listing for a directory.

    Entries appear in the order the operating system enumerates them,
    after a parent link.

    Args:
        directory: Filesystem path of the directory.
        virtual_path: Request path without leading slashes, used for the
                      title and the entry links.
    """
    base = virtual_path.strip("/")
    parts = [
        f"<html>Index of <b>/{html.escape(virtual_path)}</b><br><br><ul>",
        "<li><a href='..'>..</a></li>",
    ]
    with os.scandir(directory) as entries:
        for entry in entries:
            href = "/" + "/".join(p for p in (base, entry.name) if p)
            parts.append(
                f"<li><a href='{html.escape(href)}'>{html.escape(entry.name)}</a></li>"
            )
    parts.append("</ul></html>")
    return "".join(parts)


class StaticFileResolver:
    """
    Serves files below a document root.

    Usage:
        static = StaticFileResolver("./www/", index_of=True)

        # Inspect without writing
        static.resolve("/index.html").outcome   # Outcome.FILE

        # Answer a request
        with ResponseSink(stream) as response:
            static.serve("/index.html", response)
    """

    def __init__(
        self,
        document_root: str,
        index_of: bool = False,
        confine_to_root: bool = True,
    ):
        """
        Args:
            document_root: Base directory. A trailing separator is added
                           when missing so concatenation yields a path
                           inside it.
            index_of: Generate listings for directory requests.
            confine_to_root: Answer 404 for paths resolving outside the root.
        """
        root = str(document_root)
        if not root.endswith(os.sep):
            root += os.sep
        self.document_root = root
        self.index_of = index_of
        self.confine_to_root = confine_to_root
        self._resolved_root = Path(root).resolve()

    def _escapes_root(self, requested: str) -> bool:
        try:
            Path(requested).resolve().relative_to(self._resolved_root)
        except ValueError:
            return True
        return False

    def resolve(self, virtual_path: str) -> Resolution:
        """
        Decide what a request for virtual_path gets.

        Args:
            virtual_path: The request path, e.g. "/docs/a.txt".

        Returns:
            A Resolution with the status and body to send.
        """
        v_path = virtual_path.lstrip("/")
        requested = self.document_root + v_path

        # ─────────────────────────────────────────────────────────────────
        # SECURITY: PATH TRAVERSAL CHECK
        # ─────────────────────────────────────────────────────────────────
        if self.confine_to_root and self._escapes_root(requested):
            logger.warning(f"Path traversal attempt: {virtual_path}")
            return Resolution(Outcome.NOT_FOUND, requested, 404, NOT_FOUND_BODY)

        if not os.path.exists(requested):
            logger.info("Status 404: Not found")
            return Resolution(Outcome.NOT_FOUND, requested, 404, NOT_FOUND_BODY)

        if os.path.isfile(requested):
            logger.info(f"Requested file {requested} exists")
            return Resolution(Outcome.FILE, requested, 200, self._read_file(requested))

        if os.path.isdir(requested) and self.index_of:
            logger.info(f"Requested path {requested} is directory")
            listing = generate_index_of(requested, v_path)
            return Resolution(Outcome.LISTING, requested, 200, listing.encode("utf-8"))

        return Resolution(Outcome.DIRECTORY, requested)

    def _read_file(self, path: str) -> bytes:
        """
        Read a whole file into memory.

        A read error is logged and leaves the body empty; the file is still
        answered with 200.
        """
        try:
            with open(path, "rb") as f:
                content = f.read()
        except OSError as e:
            logger.warning(f"Error: {e}")
            return b""
        logger.info(f"\t{len(content)} bytes were read")
        return content

    def serve(self, virtual_path: str, response: ResponseSink) -> Resolution:
        """
        Resolve virtual_path and write the result to response.

        Returns:
            The Resolution that was written.
        """
        resolution = self.resolve(virtual_path)
        if resolution.status is not None:
            response.set_status(resolution.status)
            response.write(resolution.body)
        return resolution
