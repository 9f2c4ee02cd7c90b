"""
=============================================================================
BUILT-IN HANDLERS
=============================================================================

StaticFileResolver
    Fallback used when no route matches: serves files from the document
    root, optionally lists directories, answers 404 otherwise.

    from tinyhttpd.handlers import StaticFileResolver

    static = StaticFileResolver("./www/", index_of=True)

=============================================================================
"""

from .static import (
    NOT_FOUND_BODY,
    Outcome,
    Resolution,
    StaticFileResolver,
    generate_index_of,
)

__all__ = [
    "NOT_FOUND_BODY",
    "Outcome",
    "Resolution",
    "StaticFileResolver",
    "generate_index_of",
]
