"""Knowledge graph store: CRUD and search over a JSONL file."""

import logging
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from .exceptions import EntityNotFoundError
from .persistence import GraphPersistence
from .types import (
    Entity,
    KnowledgeGraph,
    ObservationDeletion,
    ObservationInput,
    ObservationResult,
    Relation,
)

logger = logging.getLogger(__name__)


def _coerce(model, items: Iterable[Any]) -> list:
    """Accept model instances or wire-form dicts; validate the latter."""
    return [item if isinstance(item, model) else model.model_validate(item) for item in items]


def _closure(graph: KnowledgeGraph, entities: list[Entity]) -> KnowledgeGraph:
    """Subgraph of entities plus the relations whose both endpoints are among them."""
    names = {e.name for e in entities}
    relations = [r for r in graph.relations if r.from_ in names and r.to in names]
    return KnowledgeGraph(entities=entities, relations=relations)


class KnowledgeGraphManager:
    """
    Knowledge graph persisted as one JSONL file.

    Every public call is a single transaction: load the whole graph from disk,
    apply the operation in memory, rewrite the file. Nothing is cached between
    calls. The lock serializes the load-mutate-save span so callers sharing this
    instance never lose each other's updates. Processes writing the same file
    through different instances are not coordinated.
    """

    def __init__(self, memory_file_path: Path | str):
        self.memory_file_path = Path(memory_file_path)
        self.persistence = GraphPersistence(self.memory_file_path)
        self.lock = threading.RLock()

    def load(self) -> KnowledgeGraph:
        return self.persistence.load()

    def save(self, graph: KnowledgeGraph) -> None:
        self.persistence.save(graph)

    # ========================================================================
    # Write Operations
    # ========================================================================

    def create_entities(self, entities: Iterable[Entity | dict]) -> list[Entity]:
        """
        Create entities whose names are not taken yet.
        Returns exactly the entities that were created; inputs missing from the
        result were duplicates.
        """
        entities = _coerce(Entity, entities)
        with self.lock:
            graph = self.load()
            names = graph.entity_names()

            created = []
            for entity in entities:
                if entity.name in names:
                    continue
                names.add(entity.name)
                created.append(entity)

            if created:
                graph.entities.extend(created)
                self.save(graph)

        logger.info(f"Created {len(created)} of {len(entities)} entities")
        return created

    def create_relations(self, relations: Iterable[Relation | dict]) -> list[Relation]:
        """Create relations whose (from, to, relationType) triple is new."""
        relations = _coerce(Relation, relations)
        with self.lock:
            graph = self.load()
            keys = {r.key for r in graph.relations}

            created = []
            for relation in relations:
                if relation.key in keys:
                    continue
                keys.add(relation.key)
                created.append(relation)

            if created:
                graph.relations.extend(created)
                self.save(graph)

        logger.info(f"Created {len(created)} of {len(relations)} relations")
        return created

    def add_observations(self, observations: Iterable[ObservationInput | dict]) -> list[ObservationResult]:
        """
        Append observations to existing entities, skipping ones already present.
        Raises EntityNotFoundError if any entity is missing; nothing from the
        batch is written in that case.
        """
        inputs = _coerce(ObservationInput, observations)
        with self.lock:
            graph = self.load()
            by_name = {e.name: e for e in graph.entities}

            results = []
            for item in inputs:
                entity = by_name.get(item.entity_name)
                if entity is None:
                    raise EntityNotFoundError(item.entity_name)

                present = set(entity.observations)
                added = []
                for content in item.contents:
                    if content not in present:
                        present.add(content)
                        added.append(content)

                entity.observations.extend(added)
                results.append(ObservationResult(entity_name=item.entity_name, added_observations=added))

            if any(r.added_observations for r in results):
                self.save(graph)

        logger.debug(f"Added observations to {len(results)} entities")
        return results

    def delete_entities(self, entity_names: Iterable[str]) -> None:
        """Delete entities and every relation touching them. Unknown names are ignored."""
        names = set(entity_names)
        with self.lock:
            graph = self.load()
            entities = [e for e in graph.entities if e.name not in names]
            relations = [r for r in graph.relations if not r.touches(names)]

            removed = len(graph.entities) - len(entities)
            removed_relations = len(graph.relations) - len(relations)
            if removed or removed_relations:
                self.save(KnowledgeGraph(entities=entities, relations=relations))

        logger.info(f"Deleted {removed} entities and {removed_relations} relations")

    def delete_observations(self, deletions: Iterable[ObservationDeletion | dict]) -> None:
        """Remove matching observations. Entities that don't exist are skipped."""
        deletions = _coerce(ObservationDeletion, deletions)
        with self.lock:
            graph = self.load()
            by_name = {e.name: e for e in graph.entities}

            changed = False
            for deletion in deletions:
                entity = by_name.get(deletion.entity_name)
                if entity is None:
                    logger.debug(f"Skipping observation delete for unknown entity '{deletion.entity_name}'")
                    continue

                doomed = set(deletion.observations)
                kept = [o for o in entity.observations if o not in doomed]
                if len(kept) != len(entity.observations):
                    entity.observations = kept
                    changed = True

            if changed:
                self.save(graph)

    def delete_relations(self, relations: Iterable[Relation | dict]) -> None:
        """Delete relations matching an input triple exactly. Non-matches are ignored."""
        keys = {r.key for r in _coerce(Relation, relations)}
        with self.lock:
            graph = self.load()
            kept = [r for r in graph.relations if r.key not in keys]

            removed = len(graph.relations) - len(kept)
            if removed:
                graph.relations = kept
                self.save(graph)

        logger.info(f"Deleted {removed} relations")

    # ========================================================================
    # Read Operations
    # ========================================================================

    def read_graph(self) -> KnowledgeGraph:
        with self.lock:
            return self.load()

    def search_nodes(self, query: str) -> KnowledgeGraph:
        """
        Case-insensitive substring search over entity names, types and observations.
        Relations are included only when both endpoints matched.
        """
        needle = query.lower()
        graph = self.read_graph()
        matches = [
            e for e in graph.entities
            if needle in e.name.lower()
            or needle in e.entity_type.lower()
            or any(needle in o.lower() for o in e.observations)
        ]
        return _closure(graph, matches)

    def open_nodes(self, names: Iterable[str]) -> KnowledgeGraph:
        """Entities with the given names plus the relations between them."""
        wanted = set(names)
        graph = self.read_graph()
        return _closure(graph, [e for e in graph.entities if e.name in wanted])

    def search_observations(self, entity_name: str, query: str) -> list[str]:
        """Case-insensitive substring search within one entity's observations."""
        entity = self.read_graph().find_entity(entity_name)
        if entity is None:
            raise EntityNotFoundError(entity_name)

        needle = query.lower()
        return [o for o in entity.observations if needle in o.lower()]

    def stats(self) -> dict:
        """Counts for health checks and the CLI."""
        graph = self.read_graph()
        return {
            "entities": len(graph.entities),
            "relations": len(graph.relations),
            "entity_types": sorted({e.entity_type for e in graph.entities}),
        }
