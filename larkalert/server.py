"""HTTP server receiving Alertmanager webhooks and forwarding them to Lark."""

from __future__ import annotations

import argparse
import json
import logging
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import parse_qs, urlsplit

from larkalert.controller import Notifier, handle_prometheus_fs
from larkalert.feishu import FeishuNotifier, NotifyError
from larkalert.models import PrometheusFSRequest

logger = logging.getLogger(__name__)

ROUTE = "/api/prometheus/fs"
DEFAULT_PORT = 8000

CODE_OK = 0
CODE_INTERNAL_ERROR = 50
CODE_VALIDATION_FAILED = 51
CODE_NOT_FOUND = 65


def _first(query: dict[str, list[str]], *names: str) -> str:
    for name in names:
        values = query.get(name)
        if values:
            return values[0]
    return ""


class AlertRequestHandler(BaseHTTPRequestHandler):
    """Serves the Prometheus-to-Lark webhook route."""

    server_version = "larkalert"

    def do_POST(self) -> None:
        parts = urlsplit(self.path)
        body = self._read_body()
        if parts.path.rstrip("/") != ROUTE:
            self._not_found()
            return
        query = parse_qs(parts.query)
        chat_id = _first(query, "chat_id", "chatId", "ChatId")

        try:
            document = json.loads(body)
        except ValueError as exc:
            self._reply(HTTPStatus.INTERNAL_SERVER_ERROR, CODE_INTERNAL_ERROR, str(exc))
            return
        try:
            request = PrometheusFSRequest.from_dict(document, chat_id)
        except ValueError as exc:
            self._reply(HTTPStatus.BAD_REQUEST, CODE_VALIDATION_FAILED, str(exc))
            return

        hook = request.hook or _first(query, "hook")
        try:
            handle_prometheus_fs(body, request.chat_id, hook, self.server.notifier)
        except (NotifyError, ValueError) as exc:
            self._reply(HTTPStatus.INTERNAL_SERVER_ERROR, CODE_INTERNAL_ERROR, str(exc))
            return
        self._reply(HTTPStatus.OK, CODE_OK, "")

    def do_GET(self) -> None:
        self._not_found()

    do_PUT = do_GET
    do_DELETE = do_GET
    do_PATCH = do_GET

    def _read_body(self) -> bytes:
        length = int(self.headers.get("Content-Length") or 0)
        return self.rfile.read(length) if length > 0 else b""

    def _not_found(self) -> None:
        self._reply(HTTPStatus.NOT_FOUND, CODE_NOT_FOUND, HTTPStatus.NOT_FOUND.phrase)

    def _reply(self, status: HTTPStatus, code: int, message: str, data: Any = None) -> None:
        payload = json.dumps(
            {"code": code, "message": message, "data": data}, ensure_ascii=False
        ).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format: str, *args: Any) -> None:
        logger.info("%s - %s", self.address_string(), format % args)


def create_server(
    host: str = "0.0.0.0",
    port: int = DEFAULT_PORT,
    notifier: Notifier | None = None,
) -> ThreadingHTTPServer:
    """Create (but do not start) the webhook server."""
    server = ThreadingHTTPServer((host, port), AlertRequestHandler)
    server.notifier = notifier if notifier is not None else FeishuNotifier()
    return server


def main(argv: list[str] | None = None) -> int:
    """Start the HTTP server."""
    parser = argparse.ArgumentParser(prog="larkalert", description="start http server")
    parser.add_argument("--host", default="0.0.0.0", help="address to listen on")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(filename)s:%(lineno)d %(levelname)s %(message)s",
    )
    server = create_server(args.host, args.port)
    logger.info("listening on %s:%d", args.host, args.port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
    return 0