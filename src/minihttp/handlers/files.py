"""
=============================================================================
FILE HANDLER
=============================================================================

Reads and writes files under one root directory.

    GET  /files/<name>   200 + file bytes (application/octet-stream)
                         404 if there is no such file
    POST /files/<name>   201 after writing the request body to <name>

=============================================================================
PATH TRAVERSAL PROTECTION
=============================================================================

The name comes straight from the URL, so it can try to leave the root:

    GET /files/../../etc/passwd

Every name is resolved (following ".." and symlinks) and the result must
still be inside the root directory. If it is not, the answer is 403
Forbidden and the filesystem is not touched.

    root:      /srv/files
    name:      ../../etc/passwd
    resolved:  /etc/passwd          ✗ not under /srv/files → 403

=============================================================================
STREAMING
=============================================================================

GET hands the open file to the response; the session copies it to the
socket chunk by chunk and closes it afterwards. Large files are never
loaded into memory (unless the client asked for gzip).

=============================================================================
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from ..http.request import HTTPRequest
from ..http.response import (
    HTTPResponse,
    ResponseBuilder,
    created,
    forbidden,
    internal_error,
    not_found,
)
from ..http.router import RouteMatch


logger = logging.getLogger(__name__)

OCTET_STREAM = "application/octet-stream"


class FileHandler:
    """
    Serves /files/<name> from a root directory.

    Usage:
        files = FileHandler("/srv/files")
        router.get(r"^/files/(.+)$")(files.read)
        router.post(r"^/files/(.+)$")(files.write)
    """

    def __init__(self, root_dir: Union[str, Path]):
        """
        Args:
            root_dir: Directory holding the files. It does not have to
                      exist yet; reads answer 404 and writes answer 500
                      until it does.
        """
        self.root_dir = Path(root_dir).resolve()

    def resolve(self, name: str) -> Optional[Path]:
        """
        Map a name from the URL to a path under the root.

        The name holds the raw URL bytes as latin-1 text; they are turned
        back into bytes and decoded the way the OS decodes file names.

        Returns:
            The resolved path, or None if it would escape the root.
        """
        name = os.fsdecode(name.encode("latin-1"))
        candidate = (self.root_dir / name.lstrip("/")).resolve()
        try:
            candidate.relative_to(self.root_dir)
        except ValueError:
            return None
        if candidate == self.root_dir:
            return None
        return candidate

    def read(self, request: HTTPRequest, match: RouteMatch) -> HTTPResponse:
        """GET handler: stream the named file."""
        name = match[0]
        path = self.resolve(name)
        if path is None:
            logger.warning("Path traversal attempt: %r", name)
            return forbidden()

        if not path.is_file():
            return not_found()

        try:
            source = path.open("rb")
        except FileNotFoundError:
            return not_found()
        except PermissionError:
            return forbidden()
        except OSError as e:
            logger.error("Error opening %s: %s", path, e)
            return internal_error()

        return ResponseBuilder().stream(source, content_type=OCTET_STREAM).build()

    def write(self, request: HTTPRequest, match: RouteMatch) -> HTTPResponse:
        """POST handler: create or overwrite the named file with the body."""
        name = match[0]
        path = self.resolve(name)
        if path is None:
            logger.warning("Path traversal attempt: %r", name)
            return forbidden()

        try:
            path.write_bytes(request.body)
        except OSError as e:
            logger.error("Error writing %s: %s", path, e)
            return internal_error()

        logger.debug("Wrote %d bytes to %s", len(request.body), path)
        return created()
