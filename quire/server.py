"""Development server for Quire.

Serves the output directory over HTTP while ``quire watch`` runs, and acts as
the watch loop's reload notifier:
- Injects a reload script into HTML responses.
- Rejects directory listings and missing paths with a 404 (serving 404.html
  when present).
- Broadcasts a reload message over a websocket after every rebuild.

Key classes:
- DevServer: HTTP and websocket servers, implements ReloadNotifier.
- _ReloadHandler: HTTP request handler that injects the reload script.
"""

from __future__ import annotations

import asyncio
import functools
import json
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import websockets

RELOAD_SCRIPT_TEMPLATE = """
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


def inject_reload_script(content: str, script: str) -> str:
    """Insert the reload script before ``</body>``, or append it."""
    if "</body>" in content:
        return content.replace("</body>", f"{script}</body>", 1)
    return content + script


class _ReloadHandler(SimpleHTTPRequestHandler):
    """HTTP request handler that injects the live reload script into HTML pages."""

    reload_script = RELOAD_SCRIPT_TEMPLATE.format(ws_port=3031)

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def log_message(self, format, *args):  # noqa: A002 - signature from base class
        pass

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        return self._serve_404()

    def _send_html(self, status: int, content: str) -> None:
        encoded = inject_reload_script(content, self.reload_script).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        self.wfile.write(encoded)

    def _serve_404(self):
        error_page = Path(self.directory) / "404.html"
        if error_page.exists():
            self._send_html(404, error_page.read_text(encoding="utf-8"))
            return None
        self.send_error(404, "File not found")
        return None

    def send_head(self):
        path = Path(self.translate_path(self.path))
        if path.is_dir():
            path = path / "index.html"
        if not path.is_file():
            return self._serve_404()
        if path.suffix == ".html":
            self._send_html(200, path.read_text(encoding="utf-8"))
            return None
        return super().send_head()


class DevServer:
    """Serves built output and pushes reload messages to browsers.

    Attributes:
        output_dir: Directory served over HTTP.
        host: Interface to bind.
        http_port: Port for HTTP.
        ws_port: Port for websocket connections.
    """

    def __init__(
        self,
        output_dir: Path,
        host: str = "0.0.0.0",
        http_port: int = 3030,
        ws_port: int | None = None,
    ):
        """Initialize the development server.

        Args:
            output_dir: Directory to serve.
            host: Interface to bind.
            http_port: HTTP port.
            ws_port: Websocket port; defaults to ``http_port + 1``.
        """
        self.output_dir = Path(output_dir)
        self.host = host
        self.http_port = http_port
        self.ws_port = ws_port if ws_port is not None else http_port + 1
        self._reload_script = RELOAD_SCRIPT_TEMPLATE.format(ws_port=self.ws_port)
        self._ws_clients: set = set()
        self._loop = asyncio.new_event_loop()
        self._ws_done: asyncio.Future | None = None
        self._httpd: ThreadingHTTPServer | None = None

    @property
    def address(self) -> str:
        return f"{self.host}:{self.http_port}"

    def start(self) -> None:  # pragma: no cover - integration path
        """Start the HTTP and websocket servers on daemon threads."""
        handler_cls = type(
            "_ReloadHandlerWithPort",
            (_ReloadHandler,),
            {"reload_script": self._reload_script},
        )
        handler = functools.partial(handler_cls, directory=str(self.output_dir))
        self._httpd = ThreadingHTTPServer((self.host, self.http_port), handler)
        threading.Thread(target=self._httpd.serve_forever, daemon=True).start()
        threading.Thread(target=self._start_ws, daemon=True).start()

    def stop(self) -> None:
        if self._httpd is not None:
            self._httpd.shutdown()
        if self._loop.is_running():
            self._loop.call_soon_threadsafe(self._finish_ws)

    def reload(self) -> None:
        """Tell every connected browser to reload."""
        message = json.dumps({"type": "reload"})
        if self._loop.is_running():
            asyncio.run_coroutine_threadsafe(self._async_broadcast(message), self._loop)

    def _start_ws(self) -> None:
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._run_ws_server())
        except OSError as exc:
            print(f"WebSocket server failed to start (port {self.ws_port}): {exc}")

    def _finish_ws(self) -> None:
        if self._ws_done is not None and not self._ws_done.done():
            self._ws_done.set_result(None)

    async def _run_ws_server(self) -> None:
        self._ws_done = self._loop.create_future()
        async with websockets.serve(self._ws_handler, self.host, self.ws_port):
            await self._ws_done

    async def _ws_handler(self, websocket):
        self._ws_clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self._ws_clients.discard(websocket)

    async def _async_broadcast(self, message: str):
        stale = set()
        for ws in list(self._ws_clients):
            try:
                await ws.send(message)
            except Exception:
                stale.add(ws)
        for ws in stale:
            self._ws_clients.discard(ws)
