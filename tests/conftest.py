import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qsl, unquote, urlparse

import pytest


class FakeNagios:
    """In-process stand-in for the Nagios XI API.

    Routes are keyed by (METHOD, path below /nagiosxi/api/v1/) and answer with
    (status, body). Every request is recorded for assertions.
    """

    prefix = "/nagiosxi/api/v1/"

    def __init__(self) -> None:
        self.routes = {}
        self.requests = []
        self.delay = 0.0
        # seconds between 4-byte pieces of the response body
        self.drip = 0.0
        self.base_url = ""

    def route(self, method, path, body, status=200):
        if not isinstance(body, (bytes, str)):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.routes[(method, path)] = (status, body)

    def calls(self, method=None, path=None):
        return [
            r for r in self.requests
            if (method is None or r["method"] == method) and (path is None or r["path"] == path)
        ]


def _make_handler(fake: FakeNagios):
    class _Handler(BaseHTTPRequestHandler):
        protocol_version = "HTTP/1.1"

        def _handle(self):
            parsed = urlparse(self.path)
            length = int(self.headers.get("Content-Length", "0") or 0)
            body = self.rfile.read(length).decode("utf-8") if length else ""
            raw_path = parsed.path
            path = unquote(raw_path)
            if path.startswith(fake.prefix):
                path = path[len(fake.prefix):]
            fake.requests.append({
                "method": self.command,
                "path": path,
                "raw_path": raw_path,
                "raw_query": parsed.query,
                "query": parse_qsl(parsed.query, keep_blank_values=True),
                "body": body,
                "form": parse_qsl(body, keep_blank_values=True),
                "headers": dict(self.headers),
            })
            if fake.delay:
                time.sleep(fake.delay)

            status, raw = fake.routes.get(
                (self.command, path), (404, b'{"error": "No matching route"}')
            )
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(raw)))
            self.end_headers()
            if not fake.drip:
                self.wfile.write(raw)
                return
            try:
                for i in range(0, len(raw), 4):
                    self.wfile.write(raw[i:i + 4])
                    self.wfile.flush()
                    time.sleep(fake.drip)
            except (BrokenPipeError, ConnectionResetError):
                pass

        do_GET = _handle
        do_POST = _handle
        do_PUT = _handle
        do_DELETE = _handle

        def log_message(self, fmt, *args):  # silence test server logs
            return

    return _Handler


@pytest.fixture()
def nagios():
    fake = FakeNagios()
    server = ThreadingHTTPServer(("127.0.0.1", 0), _make_handler(fake))
    host, port = server.server_address
    fake.base_url = f"http://{host}:{port}/nagiosxi"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield fake
    server.shutdown()
    server.server_close()
    thread.join(timeout=1.0)
