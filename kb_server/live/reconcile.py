"""
Merge a freshly polled snapshot into a live rendering.

Pure functions: nothing here touches the network or a rendering library, and
inputs are never mutated. Layout state (position and velocity) is keyed by node
id so it survives every refresh in which the node survives.
"""

import random
from dataclasses import dataclass, field

from ..core.constants import NEW_NODE_SPREAD
from .snapshot import Snapshot, SnapshotLink, link_key


@dataclass
class NodeLayout:
    """Viewer-owned layout state of one node."""
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation."""
    snapshot: Snapshot
    layout: dict[str, NodeLayout]
    changed: bool
    selected: str | None = None
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


def _resolved_links(snapshot: Snapshot) -> list[SnapshotLink]:
    """Links whose endpoints are both nodes of the snapshot."""
    ids = {node["id"] for node in snapshot["nodes"]}
    return [link for link in snapshot["links"] if link["source"] in ids and link["target"] in ids]


def has_changed(previous: Snapshot, incoming: Snapshot) -> bool:
    """
    Change signal: sizes differ, a node is new or differs in type/observations,
    or an incoming link key is absent from the previous links.

    Only resolvable incoming links count, since dangling ones never make it
    into a reconciled snapshot.
    """
    incoming_links = _resolved_links(incoming)
    if len(previous["nodes"]) != len(incoming["nodes"]):
        return True
    if len(previous["links"]) != len(incoming_links):
        return True

    old_nodes = {n["id"]: n for n in previous["nodes"]}
    for node in incoming["nodes"]:
        old = old_nodes.get(node["id"])
        if old is None:
            return True
        if old["type"] != node["type"] or list(old["observations"]) != list(node["observations"]):
            return True

    old_links = {link_key(link) for link in previous["links"]}
    return any(link_key(link) not in old_links for link in incoming_links)


def reconcile(
    previous: Snapshot,
    incoming: Snapshot,
    layout: dict[str, NodeLayout],
    *,
    center: tuple[float, float] = (0.0, 0.0),
    selected: str | None = None,
    spread: float = NEW_NODE_SPREAD,
    rng: random.Random | None = None,
) -> ReconcileResult:
    """
    Merge incoming into previous.

    Unchanged responses are discarded (previous snapshot and layout returned
    as-is). Otherwise surviving nodes keep their layout state, new nodes are
    dropped at a random spot near center, removed nodes lose theirs, links
    whose endpoints no longer resolve are dropped, and the selection is kept
    only if its node survived.
    """
    if not has_changed(previous, incoming):
        return ReconcileResult(snapshot=previous, layout=layout, changed=False, selected=selected)

    rng = rng or random.Random()
    cx, cy = center

    nodes = [dict(node) for node in incoming["nodes"]]
    ids = {node["id"] for node in nodes}
    previous_ids = {node["id"] for node in previous["nodes"]}

    merged_layout = {}
    for node in nodes:
        state = layout.get(node["id"])
        if state is None:
            state = NodeLayout(
                x=cx + (rng.random() - 0.5) * spread,
                y=cy + (rng.random() - 0.5) * spread,
            )
        merged_layout[node["id"]] = state

    # Endpoints can dangle (relations may name missing entities)
    links = [dict(link) for link in _resolved_links(incoming)]

    return ReconcileResult(
        snapshot={"nodes": nodes, "links": links},
        layout=merged_layout,
        changed=True,
        selected=selected if selected in ids else None,
        added=[node["id"] for node in nodes if node["id"] not in previous_ids],
        removed=[node["id"] for node in previous["nodes"] if node["id"] not in ids],
    )
