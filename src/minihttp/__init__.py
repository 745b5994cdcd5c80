"""
=============================================================================
minihttp: A SMALL HTTP/1.1 SERVER ON RAW TCP SOCKETS
=============================================================================

No http.server, no frameworks: the request parser, router, response
encoder and connection lifecycle are all implemented here on top of the
socket module.

=============================================================================
PACKAGE LAYOUT
=============================================================================

    minihttp/
    ├── config.py            ServerConfig (defaults, env, validation)
    ├── server.py            HTTPServer (listener + sessions + router)
    ├── app.py               create_app(): the standard route table
    ├── __main__.py          python -m minihttp --directory ...
    ├── core/
    │   ├── socket_server.py bind / listen / accept
    │   ├── connection.py    one client socket
    │   └── session.py       reader thread + coordinator per connection
    ├── http/
    │   ├── request.py       FrameScanner: bytes → HTTPRequest
    │   ├── router.py        first-match-wins regex routing
    │   ├── response.py      HTTPResponse with a streamed body
    │   ├── compression.py   gzip negotiation
    │   └── status_codes.py  HTTPStatus
    └── handlers/            /, /echo, /user-agent, /files

=============================================================================
QUICK START
=============================================================================

    from minihttp import ServerConfig, create_app

    app = create_app(ServerConfig(port=4221, directory="/tmp/files"))
    app.run()

    $ curl -v http://localhost:4221/echo/hello
    $ curl -H "Accept-Encoding: gzip" http://localhost:4221/echo/hello | gunzip

=============================================================================
"""

__version__ = "1.0.0"

from .app import build_router, create_app
from .config import ServerConfig
from .server import HTTPServer

__all__ = ["HTTPServer", "ServerConfig", "build_router", "create_app", "__version__"]
