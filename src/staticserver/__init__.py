"""
=============================================================================
STATICSERVER - A MINIMAL HTTP/1.1 FILE SERVER FROM RAW SOCKETS
=============================================================================

Accepts TCP connections, reads one request per connection, and answers
with the requested file or a 404 fallback page.

    $ python -m staticserver --root ./public
    $ curl -i http://localhost:7878/index.html
    HTTP/1.1 200 OK
    Content-Length: 512

    <!DOCTYPE html>...

=============================================================================
PACKAGE LAYOUT
=============================================================================

    staticserver/
    ├── __main__.py          CLI entry point (argparse)
    ├── config.py            ServerConfig dataclass
    ├── server.py            StaticServer: the connection driver
    ├── accesslog.py         One access log record per response
    ├── core/
    │   ├── socket_server.py Listening socket + accept loop
    │   ├── connection.py    Buffered client socket
    │   └── thread_pool.py   Optional worker threads
    ├── http/
    │   ├── framer.py        Bytes → CRLF lines
    │   ├── request.py       Lines → HTTPRequest
    │   ├── response.py      Status + body → bytes
    │   └── status_codes.py  200 OK / 404 NOT FOUND
    └── handlers/
        └── static.py        HTTPRequest → ResponsePlan

=============================================================================
"""

__version__ = "1.0.0"

from .server import StaticServer
from .config import ServerConfig

__all__ = ["StaticServer", "ServerConfig", "__version__"]
