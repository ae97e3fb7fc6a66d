from __future__ import annotations

import argparse
import json
import math
import traceback
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, unquote, urlparse

from loguru import logger

from column_toolbox.core.logging import configure_logging
from column_toolbox.core.schema_utils import validate_inputs

from ..models import MODULE_TITLES, SaveProjectRequest
from ..projects import JsonProjectRepository, ProjectRepository
from ..tool import TOOL


def _json_safe(obj: Any) -> Any:
    """Replace nan/inf with None so browsers can parse the body."""
    if isinstance(obj, float) and not math.isfinite(obj):
        return None
    if isinstance(obj, dict):
        return {k: _json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_json_safe(v) for v in obj]
    return obj


def _json_response(handler: BaseHTTPRequestHandler, status: int, payload: Dict[str, Any]) -> None:
    raw = json.dumps(_json_safe(payload)).encode("utf-8")
    handler.send_response(status)
    handler.send_header("Content-Type", "application/json; charset=utf-8")
    handler.send_header("Content-Length", str(len(raw)))
    handler.end_headers()
    handler.wfile.write(raw)


def _serve_file(handler: BaseHTTPRequestHandler, path: Path, content_type: str) -> None:
    if not path.exists() or not path.is_file():
        _json_response(handler, 404, {"ok": False, "error": "File not found"})
        return
    data = path.read_bytes()
    handler.send_response(HTTPStatus.OK)
    handler.send_header("Content-Type", content_type)
    handler.send_header("Content-Length", str(len(data)))
    handler.end_headers()
    handler.wfile.write(data)


class ToolServer(ThreadingHTTPServer):
    """HTTP server carrying the project repository and the latest run directory."""

    daemon_threads = True

    def __init__(self, address, repository: ProjectRepository):
        super().__init__(address, ToolHandler)
        self.repository = repository
        self.latest_run_dir: Optional[str] = None


class ToolHandler(BaseHTTPRequestHandler):
    server_version = "RCColumnToolbox/1.0"
    server: ToolServer

    def log_message(self, format: str, *args) -> None:
        logger.debug(f"{self.address_string()} {format % args}")

    def _read_json(self) -> Any:
        length = int(self.headers.get("Content-Length", "0") or "0")
        raw = self.rfile.read(length)
        return json.loads(raw.decode("utf-8") if raw else "{}")

    def do_GET(self) -> None:
        try:
            parsed = urlparse(self.path)
            path = parsed.path

            if path == "/api/health":
                _json_response(self, 200, {"ok": True, "tool_version": TOOL.meta.version})
                return

            if path == "/api/modules":
                defaults = TOOL.module_defaults()
                modules = [{"id": m, "title": MODULE_TITLES[m], "defaults": defaults[m]} for m in defaults]
                _json_response(self, 200, {"ok": True, "modules": modules})
                return

            if path == "/api/projects":
                query = parse_qs(parsed.query, keep_blank_values=True)
                if "recent" in query:
                    try:
                        limit = int(query["recent"][0])
                    except ValueError:
                        limit = -1
                    if limit < 0:
                        _json_response(self, 400, {"ok": False, "error": "recent must be a non-negative integer"})
                        return
                    projects = self.server.repository.recent(limit)
                elif "q" in query:
                    projects = self.server.repository.search(query["q"][0])
                else:
                    projects = self.server.repository.list()
                _json_response(self, 200, {"ok": True, "projects": [p.model_dump(mode="json") for p in projects]})
                return

            if path.startswith("/api/projects/"):
                project_id = unquote(path.split("/api/projects/", 1)[1])
                try:
                    project = self.server.repository.get(project_id)
                except KeyError:
                    _json_response(self, 404, {"ok": False, "error": f"Unknown project id: {project_id}"})
                    return
                _json_response(self, 200, {"ok": True, "project": project.model_dump(mode="json")})
                return

            if path == "/api/report.html":
                if not self.server.latest_run_dir:
                    _json_response(self, 404, {"ok": False, "error": "No report available yet. Run a solve first."})
                    return
                _serve_file(self, Path(self.server.latest_run_dir) / "report.html", "text/html; charset=utf-8")
                return

            _json_response(self, 404, {"ok": False, "error": "Unknown endpoint"})
        except Exception as e:
            logger.exception("GET failed")
            _json_response(self, 500, {"ok": False, "error": str(e), "traceback": traceback.format_exc()})

    def do_POST(self) -> None:
        try:
            path = urlparse(self.path).path
            if path not in ("/api/solve", "/api/projects"):
                _json_response(self, 404, {"ok": False, "error": "Unknown endpoint"})
                return

            try:
                data = self._read_json()
            except (UnicodeDecodeError, json.JSONDecodeError):
                _json_response(self, 400, {"ok": False, "error": "Invalid JSON body"})
                return
            if not isinstance(data, dict):
                _json_response(self, 400, {"ok": False, "error": "JSON body must be an object"})
                return

            if path == "/api/solve":
                results = TOOL.run_batch(data)
                if results.get("ok"):
                    self.server.latest_run_dir = results.get("run_dir")
                    results["download"] = {"report_html": "/api/report.html"}
                    _json_response(self, 200, results)
                elif "traceback" in results:
                    _json_response(self, 500, results)
                else:
                    _json_response(self, 422, results)
                return

            record, err = validate_inputs(SaveProjectRequest, data)
            if err:
                _json_response(self, 422, {"ok": False, "error": "Validation error", "details": err})
                return
            project_id = self.server.repository.save(SaveProjectRequest(**record))
            _json_response(self, 201, {"ok": True, "id": project_id})
        except Exception as e:
            logger.exception("POST failed")
            _json_response(self, 500, {"ok": False, "error": str(e), "traceback": traceback.format_exc()})

    def do_DELETE(self) -> None:
        try:
            path = urlparse(self.path).path
            if path == "/api/projects":
                self.server.repository.clear()
                _json_response(self, 200, {"ok": True})
                return
            if not path.startswith("/api/projects/"):
                _json_response(self, 404, {"ok": False, "error": "Unknown endpoint"})
                return
            project_id = unquote(path.split("/api/projects/", 1)[1])
            try:
                self.server.repository.delete(project_id)
            except KeyError:
                _json_response(self, 404, {"ok": False, "error": f"Unknown project id: {project_id}"})
                return
            _json_response(self, 200, {"ok": True})
        except Exception as e:
            logger.exception("DELETE failed")
            _json_response(self, 500, {"ok": False, "error": str(e), "traceback": traceback.format_exc()})


def run_server(host: str = "127.0.0.1", port: int = 0, repository: Optional[ProjectRepository] = None) -> ToolServer:
    return ToolServer((host, port), repository if repository is not None else JsonProjectRepository())


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="RC Column Design backend server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=0)
    args = parser.parse_args(argv)

    configure_logging()
    server = run_server(args.host, args.port)
    actual_port = server.server_address[1]
    logger.info(f"RC Column Design backend listening on http://{args.host}:{actual_port}/")
    # Print port for wrapper discovery (stdout)
    print(actual_port, flush=True)

    try:
        server.serve_forever(poll_interval=0.25)
        return 0
    except KeyboardInterrupt:
        return 0
    finally:
        server.server_close()


if __name__ == "__main__":
    raise SystemExit(main())
