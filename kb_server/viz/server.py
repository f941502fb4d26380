"""Background HTTP server for the live viewer."""

import errno
import logging
import socket
import threading
import time
import webbrowser

import uvicorn

from ..core.constants import DEFAULT_VIZ_HOST, DEFAULT_VIZ_PORT, MAX_PORT_ATTEMPTS, POLL_INTERVAL_MS
from ..core.manager import KnowledgeGraphManager
from .app import create_app

logger = logging.getLogger(__name__)


def _bind(host: str, start_port: int, attempts: int = MAX_PORT_ATTEMPTS) -> socket.socket:
    """Bind to the first free port from start_port upwards."""
    for port in range(start_port, start_port + attempts):
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
        except OSError as e:
            sock.close()
            if e.errno == errno.EADDRINUSE:
                logger.debug(f"Port {port} in use, trying {port + 1}")
                continue
            raise
        return sock

    raise OSError(errno.EADDRINUSE, f"No free port in {start_port}-{start_port + attempts - 1}")


class VisualizationServer:
    """Serves the viewer for one store from a daemon thread."""

    def __init__(
        self,
        manager: KnowledgeGraphManager,
        host: str = DEFAULT_VIZ_HOST,
        default_port: int = DEFAULT_VIZ_PORT,
        poll_interval_ms: int = POLL_INTERVAL_MS,
    ):
        self.manager = manager
        self.host = host
        self.default_port = default_port
        self.app = create_app(manager.read_graph, poll_interval_ms)
        self.port: int | None = None

        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None

    @property
    def url(self) -> str | None:
        return f"http://{self.host}:{self.port}" if self.port else None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, port: int | None = None, timeout: float = 5.0) -> str:
        """
        Start serving (replacing any previous run) and return the URL.
        If the port is taken the next free one is used.
        """
        if self.running:
            self.close()

        sock = _bind(self.host, self.default_port if port is None else port)
        self.port = sock.getsockname()[1]

        config = uvicorn.Config(self.app, log_level="warning")
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=self._server.run,
            kwargs={"sockets": [sock]},
            name="kb-visualizer",
            daemon=True,
        )
        self._thread.start()

        deadline = time.monotonic() + timeout
        while not self._server.started and self._thread.is_alive():
            if time.monotonic() > deadline:
                break
            time.sleep(0.05)

        if not self._server.started:
            self.close()
            raise RuntimeError(f"Visualization server failed to start on port {self.port}")

        logger.info(f"Visualization server listening on {self.url}")
        return self.url

    def close(self):
        """Stop the server thread."""
        if self._server:
            self._server.should_exit = True
        if self._thread:
            self._thread.join(timeout=5)
        self._server = None
        self._thread = None
        logger.info("Visualization server stopped")


def open_in_browser(url: str) -> bool:
    """Open url in the default browser. Returns False if no browser was found."""
    opened = webbrowser.open(url)
    if not opened:
        logger.warning(f"Could not open a browser, visit {url} manually")
    return opened


def visualize_graph(
    server: VisualizationServer,
    open_browser: bool = True,
) -> str:
    """Make sure the viewer is running and (optionally) open it. Returns the URL."""
    url = server.url if server.running else server.start()
    if open_browser:
        open_in_browser(url)
    return url
