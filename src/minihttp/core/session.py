"""
=============================================================================
SESSION: ONE CONNECTION FROM ACCEPT TO CLOSE
=============================================================================

A Session owns one accepted connection and runs the keep-alive loop on it.
It uses two threads that talk over a one-slot queue:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        SESSION THREADS                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   READER THREAD                       COORDINATOR (run())           │
    │   ─────────────                       ───────────────────           │
    │   recv() ──► FrameScanner.feed()                                    │
    │                 │                                                    │
    │                 ▼                                                    │
    │           HTTPRequest ─────┐                                        │
    │           EndOfStream ─────┼──► Queue(maxsize=1) ──► get()          │
    │           ParseFailure ────┘                          │              │
    │                                                       ▼              │
    │                                          route → gzip → write        │
    │                                                       │              │
    │                                        keep-alive? ───┴─► loop       │
    │                                        close? ──────────► CLOSED     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The one-slot queue is back-pressure: while a response is being produced
the reader can parse at most one more request ahead, then blocks. Requests
on one connection are therefore handled strictly one at a time, in the
order they arrived.

=============================================================================
HOW A SESSION ENDS
=============================================================================

    Event                      Response written            Session.error
    ─────────────────────────  ──────────────────────────  ──────────────
    EndOfStream (clean EOF)    none                        None
    "Connection: close"        the normal response         None
    ParseFailure(400/413/431)  bare error + Connection:    the HTTPParseError
                               close
    ParseFailure(incomplete)   none (peer is gone)         IncompleteRequestError
    ParseFailure(OSError)      none                        the OSError
    write fails (OSError)      partial                     the OSError

In every case the coordinator marks the channel closed, shuts the socket
down (which unblocks a reader stuck in recv()) and joins the reader.

=============================================================================
INTERVIEW QUESTIONS ABOUT CONNECTION HANDLING
=============================================================================

Q: "Why a separate reader thread instead of recv() in the same loop?"
A: "Reading and answering are decoupled: the reader keeps framing bytes
   while a handler runs, and the coordinator only ever sees complete
   requests or a single terminal event. Shutdown is one place: close
   the socket and the reader falls out of recv()."

Q: "Why can't the reader block forever on a full queue?"
A: "It never calls a bare put(). It posts with a short timeout and
   re-checks the closed flag in between, so once the coordinator is gone
   the reader gives up."

=============================================================================
"""

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Optional, Union

from ..config import ServerConfig
from ..http import (
    CompressionError,
    FrameScanner,
    HTTPParseError,
    HTTPRequest,
    HTTPResponse,
    IncompleteRequestError,
    Router,
    error_response,
    internal_error,
    negotiate_encoding,
)
from .connection import Connection, ConnectionState


logger = logging.getLogger(__name__)
access_logger = logging.getLogger("minihttp.access")

# How often blocked queue operations re-check the closed flag (seconds).
POLL_INTERVAL = 0.1

# How long close() waits for the reader thread to exit (seconds).
READER_JOIN_TIMEOUT = 2.0


# =============================================================================
# EVENTS
# =============================================================================

@dataclass(frozen=True)
class EndOfStream:
    """The peer closed the connection between requests."""


@dataclass(frozen=True)
class ParseFailure:
    """The reader stopped on a protocol or transport error."""
    error: Exception


Event = Union[HTTPRequest, EndOfStream, ParseFailure]


class Session:
    """
    Serves every request of one connection.

    Usage:
        session = Session(connection, router, config)
        error = session.run()     # blocks until the connection is done

    Attributes:
        connection: The accepted connection.
        router: Frozen route table shared with other sessions.
        config: Limits, compression level and read size.
        error: Why the session ended abnormally, or None.
    """

    def __init__(
        self,
        connection: Connection,
        router: Router,
        config: Optional[ServerConfig] = None,
    ):
        self.connection = connection
        self.router = router
        self.config = config or ServerConfig()
        self.error: Optional[Exception] = None

        self._events: "queue.Queue[Event]" = queue.Queue(maxsize=1)
        self._closed = threading.Event()
        self._reader: Optional[threading.Thread] = None

    @property
    def id(self) -> str:
        return self.connection.id

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    # =========================================================================
    # COORDINATOR
    # =========================================================================

    def run(self) -> Optional[Exception]:
        """
        Serve the connection until it ends.

        Returns:
            The error that ended the session, or None for a clean end.
        """
        conn = self.connection
        logger.debug("[%s] Session started for %s", conn.id, conn.peer)

        self._reader = threading.Thread(
            target=self._read_loop,
            name="minihttp-reader-{}".format(conn.id),
            daemon=True,
        )
        self._reader.start()

        drain = False
        try:
            while True:
                conn.state = ConnectionState.PARSING
                event = self._next_event()

                if isinstance(event, EndOfStream):
                    break

                if isinstance(event, ParseFailure):
                    drain = self._fail(event.error)
                    break

                if not self._exchange(event):
                    drain = True
                    break

        except OSError as e:
            if not self.closed:
                logger.warning("[%s] Transport error: %s", conn.id, e)
                self.error = e
        finally:
            self.close(drain=drain)

        return self.error

    def _next_event(self) -> Event:
        while not self._closed.is_set():
            try:
                return self._events.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                continue
        return EndOfStream()

    def _exchange(self, request: HTTPRequest) -> bool:
        """
        Answer one request.

        Returns:
            True to keep the connection open for the next request.

        Raises:
            OSError: If writing the response failed.
        """
        conn = self.connection

        conn.state = ConnectionState.DISPATCHING
        response = self._respond(request)

        keep_alive = not request.wants_close
        if not keep_alive:
            response.set_header("Connection", "close")
        elif (response.get_header("Connection") or "").lower() == "close":
            keep_alive = False

        conn.state = ConnectionState.WRITING
        try:
            self._write(response)
        finally:
            response.close()

        conn.requests_handled += 1
        access_logger.info(
            '[%s] %s "%s %s %s" %d %s',
            conn.id,
            conn.client_ip,
            request.method.upper(),
            request.url,
            request.version,
            response.status,
            response.get_header("Content-Length") or "-",
        )
        return keep_alive

    def _respond(self, request: HTTPRequest) -> HTTPResponse:
        """Route the request and encode the result; never raises for handler bugs."""
        try:
            response = self.router.dispatch(request)
        except Exception:
            logger.exception(
                "[%s] Handler failed for %s %s",
                self.id, request.method.upper(), request.path,
            )
            return internal_error()

        try:
            return negotiate_encoding(
                response,
                request.accept_encoding,
                level=self.config.compression_level,
            )
        except CompressionError as e:
            logger.error("[%s] %s", self.id, e)
            return internal_error()

    def _write(self, response: HTTPResponse) -> None:
        for chunk in response.iter_chunks():
            self.connection.send_all(chunk)

    def _fail(self, error: Exception) -> bool:
        """
        Record a reader failure and answer it if the peer can still listen.

        Returns:
            True if an error response was written.
        """
        self.error = error
        conn = self.connection

        if isinstance(error, IncompleteRequestError):
            logger.warning("[%s] Peer closed mid-request: %s", conn.id, error)
            return False

        if not isinstance(error, HTTPParseError):
            logger.warning("[%s] Read failed: %s", conn.id, error)
            return False

        logger.warning("[%s] Bad request (%d): %s", conn.id, error.status_code, error)
        response = error_response(error.status_code)
        conn.state = ConnectionState.WRITING
        try:
            self._write(response)
        except OSError as e:
            logger.debug("[%s] Could not send error response: %s", conn.id, e)
            return False

        access_logger.info(
            '[%s] %s "-" %d -', conn.id, conn.client_ip, response.status,
        )
        return True

    # =========================================================================
    # READER
    # =========================================================================

    def _read_loop(self) -> None:
        """Reader thread: frame bytes into requests and post them in order."""
        conn = self.connection
        scanner = FrameScanner(
            max_body_size=self.config.max_body_size,
            max_header_size=self.config.max_header_size,
        )

        try:
            while not self._closed.is_set():
                data = conn.recv()
                if not data:
                    if scanner.has_partial_frame:
                        self._post(ParseFailure(
                            IncompleteRequestError("Connection closed mid-request")
                        ))
                    else:
                        self._post(EndOfStream())
                    return

                for request in scanner.feed(data):
                    if not self._post(request):
                        return
                if scanner.pending_error is not None:
                    self._post(ParseFailure(scanner.pending_error))
                    return

        except HTTPParseError as e:
            self._post(ParseFailure(e))
        except OSError as e:
            if not self._closed.is_set():
                self._post(ParseFailure(e))
        except Exception as e:
            logger.exception("[%s] Reader crashed", conn.id)
            self._post(ParseFailure(e))

    def _post(self, event: Event) -> bool:
        """
        Hand an event to the coordinator.

        Returns:
            False if the session closed before the event was accepted.
        """
        while not self._closed.is_set():
            try:
                self._events.put(event, timeout=POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    # =========================================================================
    # SHUTDOWN
    # =========================================================================

    def close(self, drain: bool = False) -> None:
        """
        End the session: stop the reader and release the socket.

        Idempotent. Called by run() on exit and by HTTPServer.shutdown()
        from another thread.
        """
        if self._closed.is_set():
            return
        self._closed.set()

        self.connection.close(drain=drain)

        reader = self._reader
        if reader is not None and reader is not threading.current_thread():
            reader.join(timeout=READER_JOIN_TIMEOUT)
            if reader.is_alive():
                logger.warning("[%s] Reader thread did not exit", self.id)


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Reader thread: recv → FrameScanner → Queue(maxsize=1)
# 2. Coordinator: one event at a time, route → gzip → write
# 3. "Connection: close" and every failure end the session
# 4. Protocol errors get a bare error response before the close
# 5. close() is idempotent and safe from other threads
# =============================================================================
