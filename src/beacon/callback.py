"""Callback listener the registry uses to check that this process is alive."""

import json
import threading
import urllib.parse
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable


def _make_handler(path: str, is_registered: Callable[[], bool]):
    """Create a handler class answering on *path* only."""
    callback_path = path.rstrip("/") or "/"

    class CallbackHTTPHandler(BaseHTTPRequestHandler):

        def log_message(self, format, *args):
            # Silence default stderr logging
            pass

        def _json_response(self, data: Any, status: int = 200):
            body = json.dumps(data).encode()
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def _answer(self):
            request_path = urllib.parse.urlparse(self.path).path.rstrip("/") or "/"
            if request_path == callback_path:
                self._json_response({"registered": bool(is_registered())})
            else:
                self._json_response({"error": "not found"}, status=404)

        def do_GET(self):
            self._answer()

        def do_POST(self):
            length = int(self.headers.get("Content-Length") or 0)
            if length:
                self.rfile.read(length)
            self._answer()

    return CallbackHTTPHandler


def start_callback_server(
    path: str,
    is_registered: Callable[[], bool],
    host: str = "0.0.0.0",
    port: int = 8080,
) -> ThreadingHTTPServer:
    """Start a ThreadingHTTPServer in a daemon thread and return the server."""
    handler = _make_handler(path, is_registered)
    server = ThreadingHTTPServer((host, port), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server
