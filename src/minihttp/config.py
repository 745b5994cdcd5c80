"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables of the server in one dataclass.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    WHERE VALUES COME FROM                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   dataclass defaults  ◄── lowest priority                           │
    │         │                                                            │
    │         ▼                                                            │
    │   environment (ServerConfig.from_env())                              │
    │         │                                                            │
    │         ▼                                                            │
    │   command-line flags (python -m minihttp --port ...)                 │
    │         │                                                            │
    │         ▼                                                            │
    │   validate()  ◄── fail fast before the socket is opened              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK
    - host, port, backlog, buffer_size, timeout

    PROTOCOL LIMITS
    - max_body_size, max_header_size

    APPLICATION
    - directory, compression_level

    DIAGNOSTICS
    - log_level, debug

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """Address to bind. "0.0.0.0" listens on every interface."""

    port: int = 4221
    """Port to listen on. 0 lets the OS pick a free one (used by tests)."""

    backlog: int = 128
    """Connections the kernel queues before accept() picks them up."""

    buffer_size: int = 4096
    """Bytes requested per recv() call."""

    timeout: Optional[float] = None
    """
    Per-connection socket timeout in seconds.
    None blocks forever: a silent peer holds its session open until it
    closes the connection.
    """

    # ─────────────────────────────────────────────────────────────────────
    # PROTOCOL LIMITS
    # ─────────────────────────────────────────────────────────────────────

    max_body_size: int = 10 * 1024 * 1024  # 10 MB
    """Largest Content-Length accepted; larger requests get 413."""

    max_header_size: int = 64 * 1024  # 64 KB
    """Largest request line plus headers; larger requests get 431."""

    # ─────────────────────────────────────────────────────────────────────
    # APPLICATION
    # ─────────────────────────────────────────────────────────────────────

    directory: str = "."
    """Root directory read and written by the /files/ routes."""

    compression_level: int = 6
    """gzip level, 1 (fastest) to 9 (smallest)."""

    # ─────────────────────────────────────────────────────────────────────
    # DIAGNOSTICS
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """DEBUG, INFO, WARNING, ERROR or CRITICAL."""

    debug: bool = False
    """Log live session and thread counts once a second."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Build a configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST       Bind address (default: 0.0.0.0)
        HTTP_PORT       Port (default: 4221)
        HTTP_DIRECTORY  Root of the /files/ routes (default: .)
        HTTP_TIMEOUT    Socket timeout in seconds (default: none)
        HTTP_LOG_LEVEL  Logging level (default: INFO)
        DEBUG           "1" turns on the session monitor

        =====================================================================
        USAGE
        =====================================================================

        HTTP_PORT=8080 DEBUG=1 python -m minihttp --directory /tmp/files

        =====================================================================
        """
        timeout = os.getenv("HTTP_TIMEOUT")
        return cls(
            host=os.getenv("HTTP_HOST", "0.0.0.0"),
            port=int(os.getenv("HTTP_PORT", "4221")),
            directory=os.getenv("HTTP_DIRECTORY", "."),
            timeout=float(timeout) if timeout else None,
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO").upper(),
            debug=os.getenv("DEBUG") == "1",
        )

    @property
    def log_level_number(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)

    def validate(self) -> None:
        """
        Check every value, raising ValueError on the first bad one.

        Called by HTTPServer before anything is bound, so a typo in a flag
        fails at startup rather than on the first request.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_body_size < 0:
            raise ValueError("max_body_size must be >= 0")

        if self.max_header_size < 1:
            raise ValueError("max_header_size must be >= 1")

        if not 1 <= self.compression_level <= 9:
            raise ValueError(
                f"compression_level must be 1-9, got {self.compression_level}"
            )

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")
