"""HTTP server adapter for the REST API.

Provides a simple HTTP server using Python's built-in http.server module,
with request handling scheduled onto the application's asyncio event loop.
The blocking server loop runs in a worker thread; each request is handed
to RequestHandlers.dispatch as a coroutine on the main loop.
"""

import asyncio
import json
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from skillverify.adapters.api.handlers import ApiResponse, RequestHandlers

logger = logging.getLogger(__name__)

DEFAULT_MAX_BODY_BYTES = 1024 * 1024
MAX_DISCARD_BYTES = 16 * 1024 * 1024


def make_api_handler(
    handlers: RequestHandlers,
    event_loop: asyncio.AbstractEventLoop,
    max_body_bytes: int,
    request_timeout: float,
) -> type[BaseHTTPRequestHandler]:
    """Factory to create an ApiHTTPHandler class with instance-specific state.

    Dependencies are captured in the closure instead of class-level
    mutable state, so several servers can run side by side.

    Args:
        handlers: RequestHandlers that route and execute requests.
        event_loop: Event loop the service coroutines run on.
        max_body_bytes: Largest accepted request body.
        request_timeout: Seconds to wait for a handler before giving up.

    Returns:
        An ApiHTTPHandler class configured with the provided dependencies.
    """

    class ApiHTTPHandler(BaseHTTPRequestHandler):
        """HTTP request handler for the SkillVerify REST API."""

        protocol_version = "HTTP/1.1"

        def do_GET(self) -> None:
            self._handle("GET", with_body=False)

        def do_DELETE(self) -> None:
            self._handle("DELETE", with_body=False)

        def do_POST(self) -> None:
            self._handle("POST", with_body=True)

        def do_PUT(self) -> None:
            self._handle("PUT", with_body=True)

        def _handle(self, method: str, with_body: bool) -> None:
            body: Any = None
            if with_body:
                try:
                    content_length = int(self.headers.get("Content-Length", 0))
                    if content_length < 0:
                        raise ValueError(content_length)
                except ValueError:
                    self.close_connection = True
                    self._send_error(400, "validation_error", "Invalid Content-Length")
                    return

                if content_length > max_body_bytes:
                    self._discard_body(content_length)
                    self.close_connection = True
                    self._send_error(413, "payload_too_large", "Request body too large")
                    return

                raw = self.rfile.read(content_length) if content_length > 0 else b""
                try:
                    body = json.loads(raw) if raw else None
                except (json.JSONDecodeError, UnicodeDecodeError):
                    self._send_error(400, "validation_error", "Invalid JSON body")
                    return

            future = asyncio.run_coroutine_threadsafe(
                handlers.dispatch(method, self.path, body), event_loop
            )
            try:
                response = future.result(timeout=request_timeout)
            except Exception as e:
                future.cancel()
                # Log full exception server-side for debugging
                logger.error(f"Error handling {method} {self.path}: {e}", exc_info=True)
                response = ApiResponse(
                    500, {"error": "internal_error", "message": "Internal server error"}
                )

            self._send_json(response)

        def _discard_body(self, content_length: int) -> None:
            """Drain a rejected body so closing the socket does not reset it.

            Bodies beyond MAX_DISCARD_BYTES are left unread.
            """
            if content_length > MAX_DISCARD_BYTES:
                return
            remaining = content_length
            while remaining > 0:
                chunk = self.rfile.read(min(remaining, 65536))
                if not chunk:
                    break
                remaining -= len(chunk)

        def _send_error(self, status: int, code: str, message: str) -> None:
            self._send_json(ApiResponse(status, {"error": code, "message": message}))

        def _send_json(self, response: ApiResponse) -> None:
            """Send a JSON response (or an empty one for 204)."""
            payload = b"" if response.body is None else json.dumps(response.body).encode()
            self.send_response(response.status)
            if payload:
                self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            if payload:
                self.wfile.write(payload)

        def log_message(self, format: str, *args: Any) -> None:
            """Log HTTP request."""
            logger.debug(f"HTTP {self.client_address[0]}: {format % args}")

    return ApiHTTPHandler


class ApiHTTPServer:
    """REST API HTTP server adapter.

    Serves the SkillVerify endpoints until stopped.
    """

    def __init__(
        self,
        handlers: RequestHandlers,
        host: str = "0.0.0.0",
        port: int = 3000,
        max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
        request_timeout: float = 30.0,
    ):
        """Initialize the HTTP server.

        Args:
            handlers: RequestHandlers instance to route requests to.
            host: Host to listen on (default 0.0.0.0).
            port: Port to listen on (default 3000). Port 0 picks a free port.
            max_body_bytes: Largest accepted request body in bytes.
            request_timeout: Seconds to wait for each request's handler.
        """
        if max_body_bytes <= 0:
            raise ValueError("max_body_bytes must be positive")
        if request_timeout <= 0:
            raise ValueError("request_timeout must be positive")

        self.handlers = handlers
        self.host = host
        self.port = port
        self.max_body_bytes = max_body_bytes
        self.request_timeout = request_timeout
        self.server: ThreadingHTTPServer | None = None
        self._server_task: asyncio.Task[None] | None = None

    @property
    def bound_port(self) -> int | None:
        """Port the server is actually listening on, once started."""
        if self.server is None:
            return None
        return self.server.server_address[1]

    async def start(self) -> None:
        """Start the HTTP server."""
        logger.info(f"Starting API HTTP server on {self.host}:{self.port}")

        handler_class = make_api_handler(
            handlers=self.handlers,
            event_loop=asyncio.get_running_loop(),
            max_body_bytes=self.max_body_bytes,
            request_timeout=self.request_timeout,
        )

        self.server = ThreadingHTTPServer((self.host, self.port), handler_class)
        self.server.daemon_threads = True

        # Run server in a separate thread to avoid blocking
        self._server_task = asyncio.create_task(self._run_server())
        logger.info(f"SkillVerify server started on port {self.bound_port}")

    async def _run_server(self) -> None:
        """Run the HTTP server loop in a thread pool."""
        if not self.server:
            return

        try:
            await asyncio.to_thread(self.server.serve_forever)
        except asyncio.CancelledError:
            # Normal shutdown
            pass
        except Exception as e:
            logger.error(f"API HTTP server error: {e}", exc_info=True)

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self.server:
            # shutdown() blocks until serve_forever returns
            await asyncio.to_thread(self.server.shutdown)
            self.server.server_close()
        if self._server_task:
            self._server_task.cancel()
            try:
                await self._server_task
            except asyncio.CancelledError:
                pass
        logger.info("API HTTP server stopped")
