"""One-shot local HTTP server that catches the Spotify authorization redirect.

Spotify redirects the browser to http://localhost:12345/callback?code=...
after the user approves the app. The server answers that single request with
a short plain text page and stops; anything else (favicon requests, stray
connections) gets a 404 and the server keeps waiting until the deadline.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Optional
from urllib.parse import urlparse

from .auth import CALLBACK_HOST, CALLBACK_PATH, CALLBACK_PORT, extract_code_from_redirect_url
from .errors import CallbackError, CallbackTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_CALLBACK_TIMEOUT = 300
# longest a single accepted connection may sit without sending its request
CONNECTION_READ_TIMEOUT = 10.0
PARSE_FAILURE_MESSAGE = "failed to parse code, authentication failure or authorization denied?"


@dataclass(frozen=True)
class CallbackResult:
    path: str
    code: Optional[str] = None
    state: Optional[str] = None
    error: Optional[str] = None

    def require_code(self) -> str:
        if not self.code:
            message = PARSE_FAILURE_MESSAGE
            if self.error:
                message = f"{message} (Spotify returned error: {self.error})"
            raise CallbackError(message)
        return self.code


def accepted_message(now: Optional[datetime] = None) -> str:
    timestamp = (now or datetime.now()).strftime("%Y-%m-%d %H")
    return f"{timestamp}  Spotify token accepted, now return to command line to use Spotify API tools\n"


class CallbackHandler(BaseHTTPRequestHandler):
    """Handle the OAuth redirect from the browser."""

    def setup(self):
        # an idle connection (browser preconnect, port scan) times out instead of
        # blocking the wait; handle_one_request treats that as no request at all
        self.timeout = self.server.request_read_timeout()
        super().setup()

    def log_message(self, format, *args):
        logger.debug("callback server: " + format, *args)

    def do_GET(self):
        parsed = urlparse(self.path)
        if parsed.path != self.server.callback_path:
            self.send_error(404)
            return

        params = extract_code_from_redirect_url(self.path)
        self.server.result = CallbackResult(
            path=self.path,
            code=params.get("code"),
            state=params.get("state"),
            error=params.get("error"),
        )

        body = accepted_message().encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Connection", "close")
        self.end_headers()
        self.wfile.write(body)


class CallbackServer(HTTPServer):
    """HTTPServer that stops after the first request to callback_path."""

    def __init__(
        self,
        host: str = CALLBACK_HOST,
        port: int = CALLBACK_PORT,
        *,
        callback_path: str = CALLBACK_PATH,
        poll_interval: float = 1.0,
        read_timeout: float = CONNECTION_READ_TIMEOUT,
    ):
        super().__init__((host, port), CallbackHandler)
        self.callback_path = callback_path
        self.result: Optional[CallbackResult] = None
        self.read_timeout = read_timeout
        self._deadline: Optional[float] = None
        # handle_request() returns after this many seconds without a connection
        self.timeout = poll_interval

    def request_read_timeout(self) -> float:
        """Read timeout for the next connection, never past the callback deadline."""
        if self._deadline is None:
            return self.read_timeout
        return max(0.01, min(self.read_timeout, self._deadline - time.monotonic()))

    @property
    def port(self) -> int:
        return self.server_address[1]

    def wait_for_callback(self, timeout: float = DEFAULT_CALLBACK_TIMEOUT) -> CallbackResult:
        deadline = self._deadline = time.monotonic() + float(timeout)
        logger.debug("waiting to catch callback on %s:%s%s", self.server_address[0], self.port, self.callback_path)

        while self.result is None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise CallbackTimeoutError(f"no callback received within {timeout:g} seconds")
            self.timeout = min(self.timeout, remaining)
            self.handle_request()

        logger.debug("callback caught")
        return self.result


def wait_for_callback(
    *,
    host: str = CALLBACK_HOST,
    port: int = CALLBACK_PORT,
    callback_path: str = CALLBACK_PATH,
    timeout: float = DEFAULT_CALLBACK_TIMEOUT,
) -> CallbackResult:
    """Serve until one callback arrives or timeout seconds pass, then close the socket."""

    with CallbackServer(host, port, callback_path=callback_path) as server:
        return server.wait_for_callback(timeout)
