"""Live sync: snapshot projection, reconciliation and the polling client."""

from .snapshot import Snapshot, SnapshotLink, SnapshotNode, empty_snapshot, link_key, to_snapshot, validate_snapshot
from .reconcile import NodeLayout, ReconcileResult, has_changed, reconcile
from .client import LiveGraphClient

__all__ = [
    "Snapshot",
    "SnapshotNode",
    "SnapshotLink",
    "empty_snapshot",
    "to_snapshot",
    "link_key",
    "validate_snapshot",
    "NodeLayout",
    "ReconcileResult",
    "has_changed",
    "reconcile",
    "LiveGraphClient",
]
