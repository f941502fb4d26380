"""Graph persistence: newline-delimited records with atomic rewrites."""

import logging
import os
from pathlib import Path

from .codec import decode_record, encode_record
from .types import Entity, KnowledgeGraph

logger = logging.getLogger(__name__)


class GraphPersistence:
    """Loads and fully rewrites the JSONL file backing one graph."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.temp_path = self.path.with_name(self.path.name + ".tmp")

    def load(self) -> KnowledgeGraph:
        """
        Load the graph from disk.
        A missing file is an empty graph (first run). Blank lines are skipped;
        any other undecodable line raises MalformedRecordError.
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"No graph file at {self.path}, starting empty")
            return KnowledgeGraph()

        graph = KnowledgeGraph()
        # Only "\n" delimits records; U+2028 and friends may appear raw inside strings
        for line_number, line in enumerate(text.split("\n"), start=1):
            if not line.strip():
                continue
            record = decode_record(line, line_number)
            if isinstance(record, Entity):
                graph.entities.append(record)
            else:
                graph.relations.append(record)

        logger.debug(f"Loaded graph from {self.path}: {len(graph.entities)} entities, {len(graph.relations)} relations")
        return graph

    def save(self, graph: KnowledgeGraph) -> None:
        """
        Rewrite the whole file: every entity, then every relation, one per line.
        Written to a temp file and renamed over the original so a crash never
        leaves a half-written graph behind. I/O errors propagate.
        """
        lines = [encode_record(e) for e in graph.entities]
        lines.extend(encode_record(r) for r in graph.relations)
        content = "\n".join(lines) + "\n" if lines else ""

        try:
            with open(self.temp_path, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())

            # Atomic rename (POSIX guarantees atomicity)
            self.temp_path.replace(self.path)
        except OSError:
            logger.error(f"Failed to save graph to {self.path}", exc_info=True)
            self.temp_path.unlink(missing_ok=True)
            raise

        logger.debug(f"Saved graph to {self.path}: {len(graph.entities)} entities, {len(graph.relations)} relations")
