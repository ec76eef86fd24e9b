"""
=============================================================================
CORE NETWORKING
=============================================================================

Transport-level building blocks:

    SocketServer   listening socket + accept loop (socket_server.py)
    Connection     one client socket, buffered reads (connection.py)
    ThreadPool     optional worker threads (thread_pool.py)

=============================================================================
"""

from .connection import Connection, ConnectionState
from .socket_server import SocketServer
from .thread_pool import ThreadPool

__all__ = [
    "Connection",
    "ConnectionState",
    "SocketServer",
    "ThreadPool",
]
