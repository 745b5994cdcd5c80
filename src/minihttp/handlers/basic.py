"""
Small stateless handlers: the root page, echo, and the user-agent echo.

Every handler takes (request, match) and returns an HTTPResponse.
"""

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok
from ..http.router import RouteMatch


def index(request: HTTPRequest, match: RouteMatch) -> HTTPResponse:
    """GET / → 200 with no body."""
    return ok()


def echo(request: HTTPRequest, match: RouteMatch) -> HTTPResponse:
    """
    GET /echo/<text> → 200 text/plain with <text> as the body.

    The captured segment is returned exactly as it appeared in the path,
    without percent-decoding. Request text is decoded as latin-1, so
    encoding it back yields the original bytes.
    """
    return ok(match[0].encode("latin-1"))


def user_agent(request: HTTPRequest, match: RouteMatch) -> HTTPResponse:
    """GET /user-agent → 200 text/plain with the User-Agent header value."""
    return ok(request.user_agent.encode("latin-1"))
