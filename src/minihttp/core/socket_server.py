"""
=============================================================================
TCP LISTENER
=============================================================================

Owns the listening socket: bind, listen, accept, and hand every accepted
connection to a callback. Knows nothing about HTTP.

=============================================================================
THE SERVER SOCKET LIFECYCLE
=============================================================================

    socket() ──► setsockopt() ──► bind() ──► listen() ──► accept() loop
                                    │                        │
                          OSError: fatal,             one Connection per
                          logged and re-raised        client, passed to
                                                      the callback

The listening socket has a 1 second timeout so the accept loop wakes up
regularly and notices shutdown() even when no client connects.

=============================================================================
SOCKET OPTIONS
=============================================================================

SO_REUSEADDR: restart on the same port right away instead of waiting for
              old connections in TIME_WAIT to expire.

TCP_NODELAY:  disable Nagle's algorithm so small responses (a status line
              and two headers) go out immediately.

=============================================================================
SIGNALS
=============================================================================

SIGINT (Ctrl+C) and SIGTERM trigger shutdown(). Python only allows signal
handlers to be installed from the main thread, so when the listener runs
in a background thread (as in the tests) signals are left alone.

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Dict, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

ACCEPT_POLL_INTERVAL = 1.0


class SocketServer:
    """
    Low-level TCP listener.

    Usage:
        def on_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(on_connection)    # blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready = threading.Event()
        self._shutdown_event = threading.Event()
        self._original_handlers: Dict[int, object] = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """Configured (host, port)."""
        return (self.config.host, self.config.port)

    @property
    def bound_address(self) -> Optional[Tuple[str, int]]:
        """
        Actual (host, port) of the listening socket, None before start().

        Differs from address when port 0 was configured.
        """
        if self._socket is None:
            return None
        host, port = self._socket.getsockname()[:2]
        return (host, port)

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. False on timeout."""
        return self._ready.wait(timeout)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(ACCEPT_POLL_INTERVAL)
        return sock

    # =========================================================================
    # SIGNALS
    # =========================================================================

    def _setup_signals(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            logger.info("Received %s, shutting down", signal.Signals(signum).name)
            self.shutdown()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signals(self) -> None:
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    # =========================================================================
    # MAIN LOOP
    # =========================================================================

    def start(self, connection_handler: Callable[[Connection], None]) -> None:
        """
        Bind, listen and accept until shutdown() is called.

        Args:
            connection_handler: Called with each new Connection. It must
                                return quickly (HTTPServer starts a thread).

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(
                "Failed to bind to %s:%s: %s", self.config.host, self.config.port, e
            )
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)

        self._running = True
        self._shutdown_event.clear()
        self._setup_signals()

        host, port = self.bound_address
        logger.info("Listening on %s:%d", host, port)
        self._ready.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]) -> None:
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running:
                    break
                logger.error("Accept error: %s", e)
                continue

            logger.debug("Accepted connection from %s:%s", *client_address[:2])

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
            )
            connection_handler(conn)

    def shutdown(self) -> None:
        """Stop accepting. Idempotent and callable from any thread."""
        if self._running:
            logger.info("Stopping listener")
        self._running = False
        self._shutdown_event.set()

    def _cleanup(self) -> None:
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._ready.clear()
        logger.info("Listener stopped")

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """Block until shutdown() has been called. False on timeout."""
        return self._shutdown_event.wait(timeout)
