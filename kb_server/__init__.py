"""
Knowledge Base Server - file-persisted knowledge graph with live visualization.

Importable as a library: the store, its types and errors, the live sync
helpers and the visualization server are re-exported here.
"""

from .version import __version__
from .config import KBConfig, configure_logging, resolve_memory_file_path
from .core import (
    Entity,
    Relation,
    KnowledgeGraph,
    ObservationInput,
    ObservationResult,
    ObservationDeletion,
    KGError,
    EntityNotFoundError,
    MalformedRecordError,
    KnowledgeGraphManager,
)
from .live import LiveGraphClient, NodeLayout, ReconcileResult, reconcile, to_snapshot
from .viz import VisualizationServer, create_app, visualize_graph

__all__ = [
    "__version__",
    "KBConfig",
    "configure_logging",
    "resolve_memory_file_path",
    "Entity",
    "Relation",
    "KnowledgeGraph",
    "ObservationInput",
    "ObservationResult",
    "ObservationDeletion",
    "KGError",
    "EntityNotFoundError",
    "MalformedRecordError",
    "KnowledgeGraphManager",
    "LiveGraphClient",
    "NodeLayout",
    "ReconcileResult",
    "reconcile",
    "to_snapshot",
    "VisualizationServer",
    "create_app",
    "visualize_graph",
]
