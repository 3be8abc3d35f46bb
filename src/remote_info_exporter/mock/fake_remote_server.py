"""
Fake Elasticsearch /_remote/info server for testing without a cluster.

    python -m remote_info_exporter.mock.fake_remote_server
    remote-info-exporter --url http://localhost:9201 show
"""

from __future__ import annotations

import json
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Optional

# Roughly what a 7.x/8.x node with two remotes answers with
SAMPLE_REMOTE_INFO = {
    "cluster-a": {
        "connected": True,
        "mode": "sniff",
        "seeds": ["10.0.0.11:9300"],
        "num_nodes_connected": 3,
        "max_connections_per_cluster": 3,
        "initial_connect_timeout": "30s",
        "skip_unavailable": False,
    },
    "cluster-b": {
        "connected": True,
        "mode": "proxy",
        "proxy_address": "remote-b.example.com:9300",
        "server_name": "remote-b.example.com",
        "num_proxy_sockets_connected": 18,
        "max_proxy_socket_connections": 18,
        "initial_connect_timeout": "30s",
        "skip_unavailable": True,
    },
}


def make_handler(
    payload: Optional[object] = None,
    status: int = 200,
    raw_body: Optional[bytes] = None,
):
    """Build a handler class serving a fixed answer on /_remote/info.

    `raw_body` wins over `payload`, so tests can serve broken JSON.
    """
    if raw_body is None:
        raw_body = json.dumps(SAMPLE_REMOTE_INFO if payload is None else payload).encode()

    class _RemoteInfoHandler(BaseHTTPRequestHandler):
        def do_GET(self):
            path = self.path.split("?", 1)[0]
            if path.endswith("/_remote/info"):
                self.send_response(status)
                self.send_header("Content-Type", "application/json; charset=UTF-8")
                self.send_header("Content-Length", str(len(raw_body)))
                self.end_headers()
                self.wfile.write(raw_body)
            else:
                self.send_response(404)
                self.end_headers()

        def log_message(self, format, *args):
            pass  # Suppress request logging noise

    return _RemoteInfoHandler


def run_fake_server(host: str = "127.0.0.1", port: int = 9201):
    server = HTTPServer((host, port), make_handler())
    print(f"Fake remote info server running at http://{host}:{port}/_remote/info")
    print("Press Ctrl+C to stop.\n")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    server.server_close()
    print("\nServer stopped.")


if __name__ == "__main__":
    run_fake_server()
