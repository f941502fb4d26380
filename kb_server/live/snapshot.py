"""Wire projection of a graph for the live viewer."""

from typing_extensions import TypedDict

from ..core.types import KnowledgeGraph


class SnapshotNode(TypedDict):
    """Node as the viewer sees it (id is the entity name)."""
    id: str
    type: str
    observations: list[str]


class SnapshotLink(TypedDict):
    """Link as the viewer sees it (endpoints are entity names)."""
    source: str
    target: str
    type: str


class Snapshot(TypedDict):
    """Complete projection returned by the sync endpoint."""
    nodes: list[SnapshotNode]
    links: list[SnapshotLink]


def empty_snapshot() -> Snapshot:
    return {"nodes": [], "links": []}


def to_snapshot(graph: KnowledgeGraph) -> Snapshot:
    """Project entities to nodes and relations to links."""
    return {
        "nodes": [
            {"id": e.name, "type": e.entity_type, "observations": list(e.observations)}
            for e in graph.entities
        ],
        "links": [
            {"source": r.from_, "target": r.to, "type": r.relation_type}
            for r in graph.relations
        ],
    }


def link_key(link: SnapshotLink) -> tuple[str, str, str]:
    """Stable identity of a link: (source, type, target)."""
    return (link["source"], link["type"], link["target"])


def validate_snapshot(data) -> Snapshot:
    """Check a decoded response has the snapshot shape. Raises ValueError otherwise."""
    if not isinstance(data, dict):
        raise ValueError("snapshot is not an object")

    nodes, links = data.get("nodes"), data.get("links")
    if not isinstance(nodes, list) or not isinstance(links, list):
        raise ValueError("snapshot needs 'nodes' and 'links' lists")

    for node in nodes:
        if not isinstance(node, dict) or not {"id", "type", "observations"} <= node.keys():
            raise ValueError(f"bad node entry: {node!r}")
    for link in links:
        if not isinstance(link, dict) or not {"source", "target", "type"} <= link.keys():
            raise ValueError(f"bad link entry: {link!r}")

    return data
