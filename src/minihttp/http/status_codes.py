"""
=============================================================================
HTTP STATUS CODES
=============================================================================

Status codes used by the server, as an IntEnum so they compare equal to
plain integers and can be written straight into a status line.

=============================================================================
STATUS CODE CATEGORIES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  Range │ Category       │ Used here for                             │
    ├────────┼────────────────┼───────────────────────────────────────────┤
    │  2xx   │ Success        │ 200 reads, 201 file uploads               │
    │  4xx   │ Client error   │ 404 misses, 400/413/431 framing errors    │
    │  5xx   │ Server error   │ 500 handler and I/O failures              │
    └─────────────────────────────────────────────────────────────────────┘

Handlers may still return any integer status; reason_phrase() falls back
to "Unknown" for codes not listed here.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes known to the server.

    Example:
        HTTPStatus.NOT_FOUND == 404        # True
        HTTPStatus.NOT_FOUND.phrase        # "Not Found"
    """

    # 2xx SUCCESS
    OK = 200
    CREATED = 201

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    PAYLOAD_TOO_LARGE = 413
    REQUEST_HEADER_FIELDS_TOO_LARGE = 431

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500

    @property
    def phrase(self) -> str:
        """
        Reason phrase for this status code.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      │
                      │      └── phrase
                      └───────── status code
        """
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE: "Request Header Fields Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}


def reason_phrase(status: int) -> str:
    """
    Reason phrase for any integer status code.

    Args:
        status: Status code (HTTPStatus member or plain int).

    Returns:
        The standard phrase, or "Unknown" for unlisted codes.
    """
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Unknown"
