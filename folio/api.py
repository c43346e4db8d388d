"""JSON HTTP API for Folio.

Exposes the Engine operations to an editor front end:

- GET  /api/projects
- GET  /api/projects/<name>
- GET  /api/projects/<name>/files
- GET  /api/projects/<name>/files/<path>
- PUT  /api/projects/<name>/files/<path>      body: {"content": "..."}
- GET  /api/projects/<name>/articles/<path>
- POST /api/projects/<name>/articles          body: article fields
- POST /api/projects/<name>/build

Errors are returned as ``{"error": "..."}`` with a status derived from the
exception type.
"""

from __future__ import annotations

import functools
import json
import logging
import re
from datetime import date, datetime
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import unquote, urlsplit

from .articles import Article, coerce_datetime
from .engine import Engine
from .errors import (
    BuildError,
    FolioError,
    FrontMatterError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_ROUTE_RE = re.compile(
    r"^/api/projects(?:/(?P<name>[^/]+)(?:/(?P<kind>files|articles|build)(?:/(?P<path>.+))?)?)?/?$"
)


def error_status(exc: Exception) -> HTTPStatus:
    """HTTP status for an exception raised by the Engine."""
    if isinstance(exc, NotFoundError):
        return HTTPStatus.NOT_FOUND
    if isinstance(exc, (ValidationError, FrontMatterError)):
        return HTTPStatus.BAD_REQUEST
    if isinstance(exc, BuildError):
        return HTTPStatus.UNPROCESSABLE_ENTITY
    return HTTPStatus.INTERNAL_SERVER_ERROR


def article_to_dict(article: Article) -> dict[str, Any]:
    return {
        "path": article.relative_path,
        "title": article.title,
        "date": article.date.isoformat(),
        "body": article.body,
        "extra": article.extra,
    }


def article_from_dict(payload: dict[str, Any]) -> Article:
    """Build an Article from a request body.

    Raises:
        ValidationError: If ``title`` is missing or ``date`` is invalid.
    """
    title = payload.get("title")
    if not isinstance(title, str):
        raise ValidationError("'title' is required")
    raw_date = payload.get("date")
    published = coerce_datetime(raw_date, "request") if raw_date else datetime.now()
    extra = payload.get("extra") or {}
    if not isinstance(extra, dict):
        raise ValidationError("'extra' must be an object")
    return Article(
        title=title,
        date=published,
        body=str(payload.get("body") or ""),
        extra=extra,
    )


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class ApiHandler(BaseHTTPRequestHandler):
    """Request handler dispatching API routes to an Engine."""

    server_version = "FolioAPI"

    def __init__(self, *args, engine: Engine, **kwargs):
        self.engine = engine
        super().__init__(*args, **kwargs)

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)

    def do_GET(self):
        self._dispatch("GET")

    def do_PUT(self):
        self._dispatch("PUT")

    def do_POST(self):
        self._dispatch("POST")

    def _dispatch(self, method: str) -> None:
        match = _ROUTE_RE.match(urlsplit(self.path).path)
        if not match:
            self._send_json(HTTPStatus.NOT_FOUND, {"error": "Unknown endpoint"})
            return
        name = unquote(match["name"]) if match["name"] else None
        kind = match["kind"]
        path = unquote(match["path"]) if match["path"] else None

        handler = self._route(method, name, kind, path)
        if handler is None:
            self._send_json(HTTPStatus.METHOD_NOT_ALLOWED, {"error": "Method not allowed"})
            return
        try:
            status, payload = handler()
        except FolioError as exc:
            logger.error("%s %s failed: %s", method, self.path, exc)
            self._send_json(error_status(exc), {"error": str(exc)})
            return
        self._send_json(status, payload)

    def _route(self, method, name, kind, path):
        engine = self.engine
        if name is None:
            if method == "GET":
                return lambda: (
                    HTTPStatus.OK,
                    {"projects": [p.to_dict() for p in engine.registry.projects()]},
                )
            return None
        if kind is None and method == "GET":
            return lambda: (HTTPStatus.OK, engine.project(name).to_dict())
        if kind == "files" and path is None and method == "GET":
            return lambda: (HTTPStatus.OK, {"files": engine.list_content_files(name)})
        if kind == "files" and path is not None:
            if method == "GET":
                return lambda: (
                    HTTPStatus.OK,
                    {"path": path, "content": engine.read_file_content(name, path)},
                )
            if method == "PUT":
                return lambda: self._write_file(name, path)
        if kind == "articles":
            if path is not None and method == "GET":
                return lambda: (
                    HTTPStatus.OK,
                    article_to_dict(engine.parse_article(name, path)),
                )
            if path is None and method == "POST":
                return lambda: self._save_article(name)
        if kind == "build" and path is None and method == "POST":
            return lambda: self._build(name)
        return None

    def _write_file(self, name: str, path: str):
        body = self._read_json()
        content = body.get("content")
        if not isinstance(content, str):
            raise ValidationError("'content' must be a string")
        self.engine.write_file_content(name, path, content)
        return HTTPStatus.OK, {"path": path, "saved": True}

    def _save_article(self, name: str):
        body = self._read_json()
        article = article_from_dict(body)
        result = self.engine.save_article(name, article, str(body.get("original_path") or ""))
        return HTTPStatus.OK, {
            "path": result.path,
            "renamed": result.renamed,
            "stale_path": result.stale_path,
        }

    def _build(self, name: str):
        result = self.engine.build_project(name)
        logger.info("Project '%s' built successfully.", name)
        return HTTPStatus.OK, {"ok": True, "pages": len(result.pages)}

    def _read_json(self) -> dict[str, Any]:
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError as exc:
            raise ValidationError("Invalid Content-Length header") from exc
        if length < 0:
            raise ValidationError("Invalid Content-Length header")
        raw = self.rfile.read(length) if length else b""
        if not raw:
            return {}
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise ValidationError(f"Invalid JSON body: {exc}") from exc
        if not isinstance(payload, dict):
            raise ValidationError("JSON body must be an object")
        return payload

    def _send_json(self, status: HTTPStatus, payload: dict[str, Any]) -> None:
        encoded = json.dumps(payload, default=_json_default).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        self.wfile.write(encoded)


def make_server(engine: Engine, host: str, port: int) -> ThreadingHTTPServer:
    """Create (but do not start) an API server bound to host and port."""
    handler = functools.partial(ApiHandler, engine=engine)
    return ThreadingHTTPServer((host, port), handler)


def serve_api(engine: Engine, host: str, port: int) -> None:  # pragma: no cover - integration path
    httpd = make_server(engine, host, port)
    logger.info("Folio API listening on http://%s:%s", host, port)
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        httpd.server_close()
