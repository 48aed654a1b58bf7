"""
api.py — HTTP API for the series catalog.

Routes:
  GET  /health            liveness probe
  GET  /series            cached (or refreshed when expired) catalog
  GET  /series/refresh    forced refresh
  GET  /series/convert    conversion candidates
  POST /series/convert    body {"filePaths": [...]} (optional) — convert files
  GET  /series/<id>       one series plus its conversion candidates

Every failure is answered with the same envelope:
  {"success": false, "error": {"code": ..., "message": ...}}
"""

import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable
from urllib.parse import unquote, urlsplit

from catalog_service import CatalogService

log = logging.getLogger("catalog")


class ApiError(Exception):
    """An error that maps directly onto an HTTP error response."""

    def __init__(self, code: str | int, message: str, status: int = 500):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status

    def to_response(self) -> dict:
        return {
            "success": False,
            "error": {"code": self.code, "message": self.message},
        }


def create_api_error_response(code: str | int, message: str) -> dict:
    return ApiError(code, message).to_response()


class _CatalogHandler(BaseHTTPRequestHandler):
    """Routes requests to the CatalogService."""

    # The service is injected via the class attribute by make_server()
    service: CatalogService

    def do_GET(self):
        path = self._route_path()

        if path == "/health":
            self._send_json(200, {"status": "ok"})
        elif path == "/series":
            self._respond("Failed to load series", lambda: [
                s.to_dict() for s in self.service.get_series(False)
            ])
        elif path == "/series/refresh":
            self._respond("Failed to refresh series folders", lambda: [
                s.to_dict() for s in self.service.get_series(True)
            ])
        elif path == "/series/convert":
            self._respond("Failed to check for conversion candidates", lambda: [
                c.to_dict() for c in self.service.get_conversion_candidates()
            ])
        elif path.startswith("/series/") and "/" not in path[len("/series/"):]:
            series_id = unquote(path[len("/series/"):])
            self._respond("Failed to load series", lambda: self._series_detail(series_id))
        else:
            self._send_not_found()

    def do_POST(self):
        if self._route_path() == "/series/convert":
            self._respond("Failed to convert files", lambda: self.service.convert_episode(
                self._read_file_paths()
            ).to_dict())
        else:
            self._send_not_found()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _series_detail(self, series_id: str) -> dict:
        series = self.service.get_series_by_id(series_id, False)
        if series is None:
            raise ApiError(404, f"Series {series_id} not found", status=404)
        candidates = self.service.get_conversion_candidates()
        return {
            "series": series.to_dict(),
            "seriesId": series_id,
            "episodesToConvert": [
                c.to_dict() for c in candidates if c.series_name == series.name
            ],
        }

    def _read_file_paths(self) -> list[str] | None:
        length = int(self.headers.get("Content-Length") or 0)
        raw = self.rfile.read(length) if length else b""
        if not raw.strip():
            return None
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise ApiError(400, f"Request body is not valid JSON: {e}", status=400) from e
        if not isinstance(data, dict):
            raise ApiError(400, "Request body must be a JSON object", status=400)

        file_paths = data.get("filePaths")
        if file_paths is None:
            return None
        if not isinstance(file_paths, list) or not all(isinstance(p, str) for p in file_paths):
            raise ApiError(400, "filePaths must be a list of strings", status=400)
        return file_paths

    # ------------------------------------------------------------------
    # Response helpers
    # ------------------------------------------------------------------

    def _route_path(self) -> str:
        return urlsplit(self.path).path.rstrip("/") or "/"

    def _respond(self, failure: str, produce: Callable[[], Any]) -> None:
        try:
            payload = produce()
        except ApiError as e:
            self._send_json(e.status, e.to_response())
            return
        except Exception as e:
            log.error(f"{failure}: {e}", exc_info=True)
            self._send_json(500, create_api_error_response(500, f"{failure}: {e}"))
            return
        self._send_json(200, payload)

    def _send_not_found(self) -> None:
        self._send_json(404, create_api_error_response(404, f"No route for {self.command} {self.path}"))

    def _send_json(self, status: int, payload: Any) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):  # noqa: A002
        """Send request lines to our own logger instead of stderr."""
        log.debug(f"API: {format % args}")


def make_server(service: CatalogService, port: int, host: str = "") -> ThreadingHTTPServer:
    """Bind the API server without starting it (port 0 picks a free port)."""
    handler = type("CatalogHandler", (_CatalogHandler,), {"service": service})
    return ThreadingHTTPServer((host, port), handler)


def start_server(service: CatalogService, port: int) -> ThreadingHTTPServer:
    """Start the API server in a daemon thread.

    Args:
        service: The CatalogService answering requests.
        port:    The port to listen on.
    """
    server = make_server(service, port)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    log.info(f"API server listening on port {server.server_address[1]}")
    return server
