"""Preview server for Folio projects.

Serves a project's ``public/`` directory with live reload:
- Injects a reload script into HTML responses.
- Rejects directory listings and missing paths with a 404 (serving 404.html when present).
- Watches ``content/`` and ``themes/`` and triggers full rebuilds plus client reloads.

Key classes:
- DevServer: Main class for running the preview server.
- _ReloadHandler: HTTP request handler that injects reload script and enforces 404s.
- _ChangeHandler: File system event handler for triggering rebuilds.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import websockets
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .engine import Engine
from .errors import FolioError
from .html_utils import inject_before_body_end
from .layout import ProjectLayout

logger = logging.getLogger(__name__)


class _ReloadHandler(SimpleHTTPRequestHandler):
    """HTTP request handler that injects live reload script into HTML pages.

    Attributes:
        reload_script: JavaScript code for WebSocket connection to trigger reloads.
    """

    reload_script_template = """
    <script>
    (() => {{
      const ws = new WebSocket('ws://' + location.hostname + ':{ws_port}');
      ws.onmessage = (event) => {{
        const data = JSON.parse(event.data || '{{}}');
        if (data.type === 'reload') location.reload();
      }};
    }})();
    </script>
    """
    reload_script = reload_script_template.format(ws_port=4001)

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        # Never expose directory listings; treat as missing content.
        return self._serve_404()

    def _serve_html(self, path: Path, status: int = 200):
        content = inject_before_body_end(path.read_text(encoding="utf-8"), self.reload_script)
        encoded = content.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        self.wfile.write(encoded)

    def _serve_404(self):
        """Serve 404.html (when present) with injected reload script and a 404 status."""
        error_page = Path(self.directory) / "404.html"
        if error_page.exists():
            self._serve_html(error_page, status=404)
            return None
        self.send_error(404, "File not found")
        return None

    def send_head(self):
        path_obj = Path(self.translate_path(self.path))
        if path_obj.is_dir():
            index_path = path_obj / "index.html"
            if not index_path.exists():
                return self._serve_404()
            path_obj = index_path
        elif not path_obj.exists():
            # Pages are written as name.html; allow extensionless links.
            candidate = path_obj.with_name(path_obj.name + ".html")
            if not candidate.exists():
                return self._serve_404()
            path_obj = candidate

        if path_obj.suffix == ".html":
            self._serve_html(path_obj)
            return None
        return super().send_head()


class DevServer:
    """Preview server with live reload functionality.

    Attributes:
        engine: Engine used to run builds under the project lock.
        layout: Path conventions of the served project.
        output_dir: Directory being served.
        http_port: Port for HTTP server.
        ws_port: Port for WebSocket connections.
        _observer: File system observer for changes.
        _ws_clients: Set of connected WebSocket clients.
        _loop: Event loop for WebSocket handling.
    """

    def __init__(
        self,
        engine: Engine,
        project_root: Path,
        http_port: int = 4000,
        ws_port: int | None = None,
        host: str = "127.0.0.1",
    ):
        """Initialize the preview server.

        Args:
            engine: Engine used for builds.
            project_root: Root directory of the project.
            http_port: Port for the HTTP server.
            ws_port: Port for the reload websocket; defaults to http_port + 1.
            host: Interface to bind.
        """
        self.engine = engine
        self.layout = ProjectLayout(Path(project_root))
        self.output_dir = self.layout.public_dir
        self.host = host
        self.http_port = int(http_port)
        self.ws_port = int(ws_port) if ws_port is not None else self.http_port + 1
        self._reload_script = _ReloadHandler.reload_script_template.format(ws_port=self.ws_port)
        self._observer: Observer | None = None
        self._ws_clients: set = set()
        self._loop = asyncio.new_event_loop()
        self._rebuilding = False
        self._last_rebuild_at = 0.0
        self._last_signature: tuple | None = None
        self._debounce_seconds = 0.05

    def start(self) -> None:  # pragma: no cover - integration path
        self.engine.build_path(self.layout.root)
        self._last_signature = self._compute_signature()
        threading.Thread(target=self._start_http, daemon=True).start()
        threading.Thread(target=self._start_ws, daemon=True).start()
        self._start_watcher()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer:
            self._observer.stop()
            self._observer.join()
        self._loop.call_soon_threadsafe(self._loop.stop)

    def _start_http(self) -> None:  # pragma: no cover - integration path
        handler_cls = type(
            "_ReloadHandlerWithPort",
            (_ReloadHandler,),
            {"reload_script": self._reload_script},
        )
        handler = functools.partial(handler_cls, directory=str(self.output_dir))
        httpd = ThreadingHTTPServer((self.host, self.http_port), handler)
        logger.info("Serving %s at http://%s:%s", self.output_dir, self.host, self.http_port)
        httpd.serve_forever()

    def _start_ws(self) -> None:  # pragma: no cover - integration path
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._run_ws_server())
        except OSError as exc:
            logger.error("WebSocket server failed to start (port %s): %s", self.ws_port, exc)

    async def _run_ws_server(self) -> None:  # pragma: no cover - integration path
        async with websockets.serve(self._ws_handler, self.host, self.ws_port):
            await asyncio.Future()  # Run forever

    async def _ws_handler(self, websocket):
        self._ws_clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self._ws_clients.discard(websocket)

    def _broadcast_reload(self):
        message = json.dumps({"type": "reload"})
        asyncio.run_coroutine_threadsafe(self._async_broadcast(message), self._loop)

    async def _async_broadcast(self, message: str):
        stale = set()
        for ws in self._ws_clients:
            try:
                await ws.send(message)
            except Exception:
                stale.add(ws)
        for ws in stale:
            self._ws_clients.discard(ws)

    def _start_watcher(self) -> None:
        handler = _ChangeHandler(self)
        observer = Observer()
        for watch_path in self.layout.watch_dirs():
            observer.schedule(handler, str(watch_path), recursive=True)
        observer.start()
        self._observer = observer

    def rebuild(self) -> bool:
        """Rebuild after a change; returns True if a build ran and succeeded."""
        now = time.time()
        if self._rebuilding or (now - self._last_rebuild_at) < self._debounce_seconds:
            return False
        signature = self._compute_signature()
        if signature is not None and signature == self._last_signature:
            return False
        self._rebuilding = True
        try:
            logger.info("Change detected; rebuilding...")
            try:
                self.engine.build_path(self.layout.root)
            except FolioError as exc:
                logger.error("Rebuild failed: %s", exc)
                return False
            self._last_signature = signature
            self._broadcast_reload()
            return True
        finally:
            self._rebuilding = False
            self._last_rebuild_at = time.time()

    def _compute_signature(self) -> tuple | None:
        entries: list[tuple] = []
        for root in self.layout.watch_dirs():
            for path in sorted(root.rglob("*")):
                if path.is_dir():
                    continue
                try:
                    stat = path.stat()
                except OSError:
                    continue
                rel = path.relative_to(self.layout.root)
                entries.append((str(rel), stat.st_mtime_ns, stat.st_size))
        return tuple(entries) if entries else None


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: DevServer):
        super().__init__()
        self.server = server

    def on_any_event(self, event):
        if event.is_directory:
            return
        path = Path(event.src_path)
        # Skip changes in the output directory
        try:
            path.relative_to(self.server.output_dir)
            return
        except ValueError:
            pass
        self.server.rebuild()
