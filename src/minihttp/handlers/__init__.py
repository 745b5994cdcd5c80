"""
=============================================================================
HANDLERS
=============================================================================

The request handlers of the assembled server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ Route                  │ Handler            │ Response              │
    ├─────────────────────────────────────────────────────────────────────┤
    │ GET  ^/echo/(.+)$      │ echo               │ 200 text/plain        │
    │ GET  ^/$               │ index              │ 200, no body          │
    │ GET  ^/user-agent$     │ user_agent         │ 200 text/plain        │
    │ GET  ^/files/(.+)$     │ FileHandler.read   │ 200 / 403 / 404 / 500 │
    │ POST ^/files/(.+)$     │ FileHandler.write  │ 201 / 403 / 500       │
    └─────────────────────────────────────────────────────────────────────┘

A handler is any callable (request, match) → HTTPResponse. Stateless
handlers are plain functions; handlers with configuration (the root
directory) are methods of a class.

=============================================================================
"""

from .basic import echo, index, user_agent
from .files import FileHandler

__all__ = [
    "echo",
    "index",
    "user_agent",
    "FileHandler",
]
