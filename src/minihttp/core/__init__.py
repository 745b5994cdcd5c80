"""
Core networking: the TCP listener, per-connection wrapper, and the
session that runs the keep-alive loop on each connection.
"""

from .connection import Connection, ConnectionState
from .session import EndOfStream, ParseFailure, Session
from .socket_server import SocketServer

__all__ = [
    "Connection",
    "ConnectionState",
    "EndOfStream",
    "ParseFailure",
    "Session",
    "SocketServer",
]
