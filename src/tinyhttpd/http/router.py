"""
=============================================================================
ROUTE TABLE
=============================================================================

Maps an exact (path, method) pair to a handler.

=============================================================================
HOW ROUTING WORKS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     Route Dispatch                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Registered:                                                        │
    │     ("/",                "GET")  ──► index                           │
    │     ("/parameter_demo/", "GET")  ──► show_form                       │
    │     ("/parameter_demo/", "POST") ──► show_post                       │
    │                                                                      │
    │   dispatch("/parameter_demo/", "POST")  ──► show_post                │
    │   dispatch("/parameter_demo",  "POST")  ──► None  (no trailing "/")  │
    │   dispatch("/",                "PUT")   ──► None                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    • Exact string comparison: no ":params", no wildcards, no prefixes,
      no trailing-slash normalization
    • Registering the same key twice replaces the first handler
    • None means "fall back to static files"

=============================================================================
THREAD SAFETY
=============================================================================

Workers dispatch while the application may still be registering routes.
One threading.Lock guards every read and every write; there is no separate
reader lock.

Handlers may close over state of their own (counters, caches). The table
never touches that state; the handler is responsible for guarding it.

=============================================================================
"""

import threading
import logging
from typing import Callable, Dict, List, Optional, Tuple

from .request import Request
from .response import ResponseSink


logger = logging.getLogger(__name__)


# A route handler writes its response through the sink; it returns nothing.
Handler = Callable[[Request, ResponseSink], None]

RouteKey = Tuple[str, str]


class RouteTable:
    """
    Lock-guarded mapping of (path, method) to handler.

    Usage:
        routes = RouteTable()

        # Direct registration
        routes.register("/counter/", "GET", show_counter)

        # Decorator style
        @routes.get("/hello/")
        def hello(request, response):
            response.set_status(200)
            response.write("Hello!")

        handler = routes.dispatch("/hello/", "GET")
    """

    def __init__(self):
        self._routes: Dict[RouteKey, Handler] = {}
        self._lock = threading.Lock()

    def register(self, path: str, method: str, handler: Handler) -> None:
        """
        Register handler for (path, method), replacing any previous one.

        Args:
            path: Exact request path, e.g. "/parameter_demo/".
            method: HTTP method; upper-cased before storing.
            handler: Callable taking (Request, ResponseSink).
        """
        method = method.upper()
        with self._lock:
            self._routes[(path, method)] = handler
        logger.info(f"Registered route: {path}, method: {method}")

    def dispatch(self, path: str, method: str) -> Optional[Handler]:
        """
        Find the handler for exactly this path and method.

        Returns:
            The registered handler, or None when nothing matches.
        """
        with self._lock:
            return self._routes.get((path, method))

    def route(self, path: str, method: str) -> Callable[[Handler], Handler]:
        """
        Decorator form of register().

        The decorated function is returned unchanged.
        """
        def decorator(handler: Handler) -> Handler:
            self.register(path, method, handler)
            return handler
        return decorator

    def get(self, path: str) -> Callable[[Handler], Handler]:
        """Register a GET route."""
        return self.route(path, "GET")

    def post(self, path: str) -> Callable[[Handler], Handler]:
        """Register a POST route."""
        return self.route(path, "POST")

    def routes(self) -> List[RouteKey]:
        """Snapshot of the registered (path, method) keys."""
        with self._lock:
            return list(self._routes)

    def __contains__(self, key: RouteKey) -> bool:
        with self._lock:
            return key in self._routes

    def __len__(self) -> int:
        with self._lock:
            return len(self._routes)
