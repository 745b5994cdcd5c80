"""
=============================================================================
CONTENT-ENCODING NEGOTIATION (GZIP)
=============================================================================

Compresses a response body with gzip when the client says it can decode
it.

=============================================================================
HOW NEGOTIATION WORKS
=============================================================================

    Client                                  Server
      │                                       │
      │  GET /echo/abc HTTP/1.1               │
      │  Accept-Encoding: br, gzip            │
      │ ─────────────────────────────────────►│
      │                                       │  tokens: ["br", "gzip"]
      │                                       │  "gzip" present → compress
      │  HTTP/1.1 200 OK                      │
      │  Content-Encoding: gzip               │
      │  Content-Length: 23   (compressed)    │
      │ ◄─────────────────────────────────────│

Rules:
- No Accept-Encoding header → the response is left alone.
- The header is split on commas and each token trimmed; ";q=" parameters
  are ignored.
- Only "gzip" is recognized. "identity", "br", "deflate" and anything
  else leave the body unchanged.
- Responses without a body are never touched.

=============================================================================
WHY BUFFER THE WHOLE BODY?
=============================================================================

Content-Length must hold the COMPRESSED size, which is only known after
compression finishes. Without chunked transfer-encoding the compressed
body has to be produced in full before the head can be written.

=============================================================================
"""

import gzip
import io
import logging
import zlib
from typing import List, Optional

from .response import HTTPResponse


logger = logging.getLogger(__name__)

GZIP = "gzip"


class CompressionError(Exception):
    """Reading or compressing a response body failed."""


def parse_accept_encoding(value: str) -> List[str]:
    """
    Split an Accept-Encoding value into lower-case codings, client order.

    Example:
        parse_accept_encoding("br , GZIP;q=0.8, ")  # ["br", "gzip"]
    """
    codings = []
    for token in value.split(","):
        coding = token.split(";", 1)[0].strip().lower()
        if coding:
            codings.append(coding)
    return codings


def negotiate_encoding(
    response: HTTPResponse,
    accept_encoding: Optional[str],
    level: int = 6,
) -> HTTPResponse:
    """
    Gzip the response body in place if the client accepts gzip.

    Args:
        response: Response produced by a handler.
        accept_encoding: Raw Accept-Encoding header value, or None.
        level: gzip compression level (1 fastest, 9 smallest).

    Returns:
        The same response object, possibly with a compressed body.

    Raises:
        CompressionError: If the body could not be read or compressed.
    """
    if accept_encoding is None or response.body is None:
        return response

    if GZIP not in parse_accept_encoding(accept_encoding):
        return response

    try:
        original = response.body.read()
        compressed = gzip.compress(original, compresslevel=level)
    except (OSError, zlib.error, ValueError) as e:
        raise CompressionError("gzip encoding failed: {}".format(e)) from e
    finally:
        response.close()

    response.body = io.BytesIO(compressed)
    response.set_header("Content-Encoding", GZIP)
    response.set_header("Content-Length", str(len(compressed)))

    vary = response.get_header("Vary", "")
    if "accept-encoding" not in vary.lower():
        response.set_header("Vary", "{}, Accept-Encoding".format(vary).lstrip(", "))

    logger.debug("gzip: %d → %d bytes", len(original), len(compressed))
    return response


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Parse Accept-Encoding into codings
# 2. "gzip" present and a body exists → compress the full body
# 3. Set Content-Encoding, recompute Content-Length, add Vary
# 4. Failures surface as CompressionError for that response only
# =============================================================================
