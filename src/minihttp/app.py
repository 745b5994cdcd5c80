"""
Application factory: the standard route table on top of HTTPServer.
"""

from typing import Optional

from .config import ServerConfig
from .handlers import FileHandler, echo, index, user_agent
from .http import Router
from .server import HTTPServer


def build_router(directory: str = ".") -> Router:
    """
    Create the route table of the assembled server.

    Order matters: the first matching rule wins.

    Args:
        directory: Root directory for the /files/ routes.
    """
    files = FileHandler(directory)

    router = Router()
    router.add_route("get", r"^/echo/(.+)$", echo)
    router.add_route("get", r"^/$", index)
    router.add_route("get", r"^/user-agent$", user_agent)
    router.add_route("get", r"^/files/(.+)$", files.read)
    router.add_route("post", r"^/files/(.+)$", files.write)
    return router


def create_app(config: Optional[ServerConfig] = None) -> HTTPServer:
    """
    Create a ready-to-run server with the standard routes.

    Example:
        app = create_app(ServerConfig(directory="/tmp/files"))
        app.run()
    """
    config = config or ServerConfig()
    return HTTPServer(config, build_router(config.directory))
