from __future__ import annotations

import json
from http.server import BaseHTTPRequestHandler, HTTPServer
from threading import Thread
from typing import Tuple

from .metrics import snapshot
from .prometheus import export_text


class _MetricsHandler(BaseHTTPRequestHandler):
    def _reply(self, body: bytes, content_type: str) -> None:
        self.send_response(200)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self):  # noqa: N802
        if self.path == "/metrics":
            self._reply(export_text().encode("utf-8"), "text/plain; version=0.0.4")
            return
        if self.path == "/health":
            self._reply(b"ok", "text/plain")
            return
        if self.path == "/status":
            self._reply(json.dumps(snapshot()).encode("utf-8"), "application/json")
            return
        self.send_response(404)
        self.end_headers()

    def log_message(self, format, *args):  # noqa: A003
        return


def start_metrics_server(host: str = "127.0.0.1", port: int = 0) -> Tuple[HTTPServer, Thread]:
    """Serve /metrics, /health and /status from a daemon thread next to the bot loop."""
    server = HTTPServer((host, port), _MetricsHandler)
    th = Thread(target=server.serve_forever, name="todobot-metrics", daemon=True)
    th.start()
    return server, th


def stop_metrics_server(server: HTTPServer) -> None:
    server.shutdown()
    server.server_close()
