"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) pairs to handler functions using regular expressions.

=============================================================================
ROUTING FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Incoming Request: GET /echo/hello                                 │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌─────────────────────────────────────────────────────────────┐   │
    │   │  Registered Routes (in registration order):                  │   │
    │   │    get   ^/echo/(.+)$      → echo          ← MATCH!          │   │
    │   │    get   ^/$               → index                           │   │
    │   │    get   ^/user-agent$     → user_agent                      │   │
    │   │    get   ^/files/(.+)$     → files.read                      │   │
    │   │    post  ^/files/(.+)$     → files.write                     │   │
    │   │                                                              │   │
    │   │  Captured: groups = ("hello",)                               │   │
    │   └─────────────────────────────────────────────────────────────┘   │
    │        │                                                             │
    │        ▼                                                             │
    │   echo(request, RouteMatch(route, groups=("hello",)))                │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
MATCHING RULES
=============================================================================

1. Routes are tried in the order they were registered.
2. The method must match exactly (methods are lower-case tokens).
3. The pattern is searched in the request path (query string excluded).
   Anchor patterns with ^ and $ for whole-path matches.
4. The FIRST route that matches wins. There is no "best match": if two
   patterns overlap, the earlier one shadows the later one.
5. Nothing matched → 404 Not Found with no body.

The table is frozen once the server starts, so every connection thread
can read it without locking.

=============================================================================
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

from .request import HTTPRequest
from .response import HTTPResponse, not_found


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Route:
    """
    A registered (method, pattern) rule bound to a handler.

    Attributes:
        method: Lower-case method token the request must carry.
        pattern: Compiled regular expression searched in the request path.
        handler: Called as handler(request, match) → HTTPResponse.
    """

    method: str
    pattern: "re.Pattern[str]"
    handler: "Handler"


@dataclass(frozen=True)
class RouteMatch:
    """
    Result of a successful route lookup.

    Attributes:
        route: The Route that matched.
        groups: Captured path segments, in pattern order. A group that did
                not take part in the match is "".

    Example:
        Pattern: ^/files/(.+)$
        Path:    /files/notes.txt
        Result:  RouteMatch(route=<Route>, groups=("notes.txt",))
    """

    route: Route
    groups: Tuple[str, ...] = ()

    def __getitem__(self, index: int) -> str:
        return self.groups[index]


Handler = Callable[[HTTPRequest, RouteMatch], HTTPResponse]


class Router:
    """
    Ordered, first-match-wins request router.

    Usage:
        router = Router()

        @router.get(r"^/echo/(.+)$")
        def echo(request, match):
            return ok(match[0])

        router.add_route("post", r"^/files/(.+)$", files.write)

        router.freeze()                   # done at server start
        response = router.dispatch(request)
    """

    def __init__(self):
        self._routes: List[Route] = []
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(
        self,
        method: str,
        pattern: Union[str, "re.Pattern[str]"],
        handler: Handler,
    ) -> Route:
        """
        Append a rule to the table.

        Args:
            method: HTTP method, any case ("GET" and "get" are the same).
            pattern: Regular expression (string or compiled) over the path.
            handler: Function taking (request, match), returning a response.

        Returns:
            The registered Route.

        Raises:
            RuntimeError: If the router has been frozen.
            re.error: If the pattern does not compile.
        """
        if self._frozen:
            raise RuntimeError("Cannot add routes after the router is frozen")

        if isinstance(pattern, str):
            pattern = re.compile(pattern)

        route = Route(method=method.lower(), pattern=pattern, handler=handler)
        self._routes.append(route)
        return route

    def route(self, pattern: str, method: str) -> Callable[[Handler], Handler]:
        """
        Decorator form of add_route().

        The handler is returned unchanged so decorators can be stacked.
        """
        def decorator(handler: Handler) -> Handler:
            self.add_route(method, pattern, handler)
            return handler
        return decorator

    def get(self, pattern: str) -> Callable[[Handler], Handler]:
        """Register a GET route."""
        return self.route(pattern, "get")

    def post(self, pattern: str) -> Callable[[Handler], Handler]:
        """Register a POST route."""
        return self.route(pattern, "post")

    def freeze(self) -> "Router":
        """
        Make the route table read-only.

        Called by HTTPServer before the first connection is accepted.
        Freezing twice is harmless.
        """
        if not self._frozen:
            self._routes = list(self._routes)
            self._frozen = True
        return self

    # =========================================================================
    # MATCHING AND DISPATCH
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """
        Find the first route matching method and path.

        Args:
            method: Request method, any case.
            path: Request path (no query string).

        Returns:
            RouteMatch for the first matching rule, or None.
        """
        method = method.lower()
        for route in self._routes:
            if route.method != method:
                continue

            found = route.pattern.search(path)
            if found:
                groups = tuple(g if g is not None else "" for g in found.groups())
                return RouteMatch(route=route, groups=groups)

        return None

    def dispatch(self, request: HTTPRequest) -> HTTPResponse:
        """
        Route a request to its handler.

        Patterns are matched against the path with any query string removed,
        so /echo/abc?x=1 echoes "abc".

        Args:
            request: The parsed request.

        Returns:
            The handler's response, or 404 Not Found (no body) on a miss.
        """
        found = self.match(request.method, request.path)
        if found is None:
            logger.debug("No route for %s %s", request.method, request.path)
            return not_found()

        return found.route.handler(request, found)

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================

    def routes(self) -> List[Route]:
        """All registered routes, in matching order."""
        return list(self._routes)

    def print_routes(self) -> None:
        """
        Log the route table.

        Example output:
            Registered routes:
              GET      ^/echo/(.+)$
              POST     ^/files/(.+)$
        """
        logger.info("Registered routes:")
        for route in self._routes:
            logger.info("  %-8s %s", route.method.upper(), route.pattern.pattern)

    def __len__(self) -> int:
        return len(self._routes)
