"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything that understands HTTP bytes, independent of sockets:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  request.py      FrameScanner: bytes → HTTPRequest                  │
    │  router.py       Router: HTTPRequest → handler → HTTPResponse       │
    │  compression.py  negotiate_encoding: gzip per Accept-Encoding       │
    │  response.py     HTTPResponse: → wire bytes (streamed body)         │
    │  status_codes.py HTTPStatus enum and reason phrases                 │
    └─────────────────────────────────────────────────────────────────────┘

Key points of the wire format:
- Lines end with CRLF (\\r\\n)
- Headers and body are separated by an empty line
- Header names are case-insensitive
- Body length is given by Content-Length
"""

from .request import (
    HTTPRequest,
    FrameScanner,
    ScanState,
    HTTPParseError,
    IncompleteRequestError,
    parse_request,
)
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,
    created,
    forbidden,
    not_found,
    internal_error,
    error_response,
)
from .compression import CompressionError, negotiate_encoding, parse_accept_encoding
from .router import Router, Route, RouteMatch
from .status_codes import HTTPStatus, reason_phrase

__all__ = [
    # Request parsing
    "HTTPRequest",
    "FrameScanner",
    "ScanState",
    "HTTPParseError",
    "IncompleteRequestError",
    "parse_request",

    # Responses
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "created",
    "forbidden",
    "not_found",
    "internal_error",
    "error_response",

    # Content negotiation
    "CompressionError",
    "negotiate_encoding",
    "parse_accept_encoding",

    # Routing
    "Router",
    "Route",
    "RouteMatch",

    # Status codes
    "HTTPStatus",
    "reason_phrase",
]
