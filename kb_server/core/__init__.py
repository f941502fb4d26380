"""Core knowledge graph components."""

from .types import (
    Entity,
    Relation,
    KnowledgeGraph,
    ObservationInput,
    ObservationResult,
    ObservationDeletion,
)
from .constants import *
from .exceptions import *
from .codec import Record, encode_record, decode_record
from .persistence import GraphPersistence
from .manager import KnowledgeGraphManager

__all__ = [
    # Types
    "Entity",
    "Relation",
    "KnowledgeGraph",
    "ObservationInput",
    "ObservationResult",
    "ObservationDeletion",
    "Record",
    # Constants
    "DEFAULT_MEMORY_FILENAME",
    "MEMORY_PATH_ENV",
    "RECORD_ENTITY",
    "RECORD_RELATION",
    "RECORD_TYPES",
    "POLL_INTERVAL_MS",
    "NEW_NODE_SPREAD",
    "DEFAULT_VIZ_HOST",
    "DEFAULT_VIZ_PORT",
    "MAX_PORT_ATTEMPTS",
    # Exceptions
    "KGError",
    "EntityNotFoundError",
    "MalformedRecordError",
    # Codec
    "encode_record",
    "decode_record",
    # Classes
    "GraphPersistence",
    "KnowledgeGraphManager",
]
