"""Live visualization: sync endpoint app and its background server."""

from .app import create_app
from .server import VisualizationServer, open_in_browser, visualize_graph

__all__ = [
    "create_app",
    "VisualizationServer",
    "open_in_browser",
    "visualize_graph",
]
