"""FastAPI app serving the live viewer and its sync endpoint."""

import logging
from collections.abc import Callable
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse

from ..core.constants import POLL_INTERVAL_MS
from ..core.types import KnowledgeGraph
from ..live.snapshot import Snapshot, to_snapshot
from ..version import __version__

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"
NO_CACHE = {"Cache-Control": "no-cache"}


def create_app(
    load_graph: Callable[[], KnowledgeGraph],
    poll_interval_ms: int = POLL_INTERVAL_MS,
) -> FastAPI:
    """
    Build the viewer app.

    load_graph is called on every sync request so the viewer always sees the
    store's current state (typically KnowledgeGraphManager.read_graph).
    """
    app = FastAPI(
        title="Knowledge Base Visualization",
        description="Live view of the knowledge graph",
        version=__version__,
    )
    app.state.load_graph = load_graph
    app.state.poll_interval_ms = poll_interval_ms

    # ========================================================================
    # API Endpoints
    # ========================================================================

    @app.get("/", response_class=HTMLResponse)
    async def serve_index(request: Request):
        """Serve the viewer page."""
        index_path = STATIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Viewer page not found")

        html = index_path.read_text(encoding="utf-8").replace(
            "__POLL_INTERVAL_MS__", str(request.app.state.poll_interval_ms)
        )
        return HTMLResponse(html, headers=NO_CACHE)

    @app.get("/api/graph")
    def get_graph(request: Request) -> Snapshot:
        """
        Reload the store and return the node/link projection.
        A failed reload is an error response, never stale data.
        """
        try:
            graph = request.app.state.load_graph()
        except Exception as e:
            logger.error(f"Error reloading graph for sync: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Failed to load graph: {e}")

        return to_snapshot(graph)

    @app.get("/api/health")
    def health_check(request: Request):
        """Health check endpoint."""
        try:
            graph = request.app.state.load_graph()
        except Exception as e:
            logger.warning(f"Health check could not load graph: {e}")
            return {"status": "error", "version": __version__, "error": str(e)}

        return {
            "status": "ok",
            "version": __version__,
            "entities": len(graph.entities),
            "relations": len(graph.relations),
        }

    return app
