"""
=============================================================================
MAIN HTTP SERVER
=============================================================================

Ties the pieces together: a listener that accepts connections, one
session thread per connection, and a shared, frozen router.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    HTTP SERVER ARCHITECTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   HTTPServer    │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │ SocketServer │    │   Sessions   │    │    Router    │        │
    │    │  (accept)    │───►│ (1 thread per│───►│  (frozen,    │        │
    │    │              │    │  connection) │    │   shared)    │        │
    │    └──────────────┘    └──────────────┘    └──────────────┘        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. SocketServer accepts a TCP connection
    2. HTTPServer starts a thread running a new Session
    3. The session's reader frames bytes into HTTPRequests
    4. Router picks the first matching handler
    5. Handler returns an HTTPResponse
    6. Body is gzipped if the client accepts it
    7. Response is streamed to the socket
    8. Keep-alive: back to 3. "Connection: close" or error: close.

=============================================================================
INTERVIEW QUESTIONS ABOUT THIS SERVER
=============================================================================

Q: "Why one thread per connection instead of a pool?"
A: "Keep-alive connections spend most of their life idle in recv(). A
   fixed pool would let a handful of idle clients starve everyone else.
   A thread per connection costs memory but never queues a ready client
   behind an idle one."

Q: "What happens on shutdown?"
A: "The listener stops accepting, then every live session is closed.
   Closing shuts the socket down, which wakes the blocked reader, so
   every thread exits promptly."

=============================================================================
"""

import logging
import threading
from typing import Optional, Set

from .config import ServerConfig
from .core import Connection, Session, SocketServer
from .http import Router


logger = logging.getLogger(__name__)

MONITOR_INTERVAL = 1.0


class HTTPServer:
    """
    HTTP/1.1 server: listener, per-connection sessions and a router.

    Usage:
        router = Router()
        router.get(r"^/$")(index)

        server = HTTPServer(ServerConfig(port=4221), router)
        server.run()               # blocks until Ctrl+C or shutdown()

    Most callers build the server through minihttp.app.create_app(), which
    registers the standard routes.
    """

    def __init__(self, config: Optional[ServerConfig] = None, router: Optional[Router] = None):
        """
        Args:
            config: Server configuration. Validated immediately.
            router: Route table. Frozen when the server starts.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._router = router or Router()
        self._socket_server = SocketServer(self.config)

        self._sessions: Set[Session] = set()
        self._sessions_lock = threading.Lock()
        self._monitor: Optional[threading.Thread] = None
        self._running = False

    @property
    def router(self) -> Router:
        return self._router

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self):
        """Bound (host, port) once listening, else the configured one."""
        return self._socket_server.bound_address or self._socket_server.address

    @property
    def session_count(self) -> int:
        with self._sessions_lock:
            return len(self._sessions)

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listener accepts connections."""
        return self._socket_server.wait_until_ready(timeout)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, setup_logging: bool = True) -> None:
        """
        Start the server and block until it is stopped.

        Args:
            setup_logging: Configure the root logger from config.log_level.

        Raises:
            OSError: If the listening address cannot be bound.
        """
        if setup_logging:
            self._setup_logging()

        self._router.freeze()
        self._router.print_routes()
        logger.info("Serving files from %s", self.config.directory)

        self._running = True
        if self.config.debug:
            self._start_monitor()

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._running = False
            self._close_sessions()
            logger.info("Server stopped")

    def shutdown(self) -> None:
        """
        Stop accepting and close every live connection.

        Safe to call from any thread; run() returns shortly after.
        """
        logger.info("Shutting down server...")
        self._running = False
        self._socket_server.shutdown()
        self._close_sessions()

    def _setup_logging(self) -> None:
        level = self.config.log_level_number

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("minihttp").setLevel(level)

    # =========================================================================
    # CONNECTIONS
    # =========================================================================

    def _handle_connection(self, conn: Connection) -> None:
        """Start a session thread for a freshly accepted connection."""
        session = Session(conn, self._router, self.config)
        with self._sessions_lock:
            self._sessions.add(session)

        thread = threading.Thread(
            target=self._run_session,
            args=(session,),
            name="minihttp-session-{}".format(conn.id),
            daemon=True,
        )
        thread.start()

    def _run_session(self, session: Session) -> None:
        try:
            error = session.run()
            if error is not None:
                logger.debug("[%s] Session ended: %r", session.id, error)
        finally:
            with self._sessions_lock:
                self._sessions.discard(session)

    def _close_sessions(self) -> None:
        with self._sessions_lock:
            sessions = list(self._sessions)
        for session in sessions:
            session.close()

    # =========================================================================
    # DEBUG MONITOR
    # =========================================================================

    def _start_monitor(self) -> None:
        self._monitor = threading.Thread(
            target=self._monitor_loop,
            name="minihttp-monitor",
            daemon=True,
        )
        self._monitor.start()

    def _monitor_loop(self) -> None:
        """Log live sessions and threads every second while running."""
        while not self._socket_server.wait_for_shutdown(MONITOR_INTERVAL):
            logger.info(
                "Live sessions: %d, threads: %d",
                self.session_count,
                threading.active_count(),
            )


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Validate config, freeze the router, configure logging
# 2. SocketServer accepts; each connection gets a Session thread
# 3. Live sessions are tracked so shutdown() can close them
# 4. DEBUG mode logs session and thread counts once a second
# =============================================================================
