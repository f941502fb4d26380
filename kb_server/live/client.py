"""Polling client that keeps a live rendering in sync with the sync endpoint."""

import asyncio
import logging
from collections.abc import Callable

import httpx

from ..core.constants import POLL_INTERVAL_MS
from .reconcile import NodeLayout, ReconcileResult, reconcile
from .snapshot import Snapshot, empty_snapshot, validate_snapshot

logger = logging.getLogger(__name__)


class LiveGraphClient:
    """
    Polls a sync endpoint on a fixed interval and reconciles each response into
    the current snapshot, keeping node layout state across refreshes.

    Only one request is in flight at a time. A failed poll is logged and
    skipped; the current rendering is left alone and the next tick retries.
    """

    def __init__(
        self,
        url: str,
        interval: float = POLL_INTERVAL_MS / 1000,
        on_update: Callable[[ReconcileResult], None] | None = None,
        center: tuple[float, float] = (0.0, 0.0),
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.url = url
        self.interval = interval
        self.on_update = on_update
        self.center = center

        # Rendering state
        self.snapshot: Snapshot = empty_snapshot()
        self.layout: dict[str, NodeLayout] = {}
        self.selected: str | None = None

        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None
        self._poll_lock = asyncio.Lock()

        # Scheduling: each resume() starts a loop tagged with a new generation;
        # a loop stops as soon as its generation is stale.
        self._task: asyncio.Task | None = None
        self._wakeup = asyncio.Event()
        self._generation = 0
        self.paused = True

    # ========================================================================
    # Polling
    # ========================================================================

    async def fetch(self) -> Snapshot:
        """Fetch one snapshot. Raises httpx.HTTPError or ValueError on failure."""
        response = await self._client.get(self.url)
        response.raise_for_status()
        return validate_snapshot(response.json())

    def apply(self, incoming: Snapshot) -> ReconcileResult:
        """Reconcile a snapshot into the current state; notify on change."""
        result = reconcile(
            self.snapshot,
            incoming,
            self.layout,
            center=self.center,
            selected=self.selected,
        )
        if result.changed:
            self.snapshot = result.snapshot
            self.layout = result.layout
            self.selected = result.selected
            logger.debug(f"Snapshot changed: +{len(result.added)} -{len(result.removed)} nodes")
            if self.on_update:
                self.on_update(result)
        return result

    async def poll_once(self) -> bool:
        """Poll and apply once. Returns True if the rendering changed."""
        async with self._poll_lock:
            try:
                incoming = await self.fetch()
            except (httpx.HTTPError, ValueError) as e:
                logger.debug(f"Poll of {self.url} failed, retrying next tick: {e}")
                return False
            return self.apply(incoming).changed

    def select(self, node_id: str | None) -> str | None:
        """Select a node for inspection; unknown ids clear the selection."""
        ids = {node["id"] for node in self.snapshot["nodes"]}
        self.selected = node_id if node_id in ids else None
        return self.selected

    # ========================================================================
    # Scheduling
    # ========================================================================

    def resume(self):
        """Poll immediately, then keep polling every interval. Needs a running loop."""
        if not self.paused:
            return
        self.paused = False
        self._generation += 1
        self._wakeup = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._generation, self._wakeup))
        logger.debug(f"Live updates resumed for {self.url}")

    start = resume

    def pause(self):
        """Stop scheduling polls. A poll already in flight still applies."""
        if self.paused:
            return
        self.paused = True
        self._generation += 1
        self._wakeup.set()
        logger.debug(f"Live updates paused for {self.url}")

    async def _run(self, generation: int, wakeup: asyncio.Event):
        while generation == self._generation:
            await self.poll_once()
            if generation != self._generation:
                break
            try:
                await asyncio.wait_for(wakeup.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

    async def close(self):
        """Stop polling, wait for the loop to finish and release the HTTP client."""
        self.pause()
        if self._task:
            await self._task
            self._task = None
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "LiveGraphClient":
        self.start()
        return self

    async def __aexit__(self, *exc_info):
        await self.close()
