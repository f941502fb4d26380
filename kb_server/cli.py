"""
Command-line entry points.

Usage:
    kb-server [--memory-path PATH] [--log-level LEVEL]   (same as: python -m kb_server)
    kb-visualize [PATH] [--port PORT] [--host HOST] [--no-browser]

Environment variables:
    KNOWLEDGE_BASE_FILE_PATH: JSONL storage file (default: knowledge_base.jsonl next to the package)
    KB_LOG_LEVEL: Logging level (default: INFO)
    KB_VIZ_HOST: Visualization host (default: 127.0.0.1)
    KB_VIZ_PORT: First visualization port to try (default: 3000)
    KB_POLL_INTERVAL_MS: Viewer poll interval (default: 2000)
"""

import argparse
import asyncio
import logging
import os
import sys
import tempfile
import threading
from pathlib import Path

from .config import KBConfig, configure_logging
from .core.constants import MEMORY_PATH_ENV
from .core.manager import KnowledgeGraphManager
from .viz.server import VisualizationServer, open_in_browser

logger = logging.getLogger(__name__)

SAMPLE_ENTITIES = [
    {"name": "Alice", "entityType": "person", "observations": ["Software Engineer", "Loves hiking", "Based in Berlin"]},
    {"name": "Bob", "entityType": "person", "observations": ["Data Scientist", "Plays guitar", "Coffee enthusiast"]},
    {"name": "Carol", "entityType": "person", "observations": ["Product Manager", "Former developer"]},
    {"name": "TechCorp", "entityType": "company", "observations": ["Founded in 2015", "AI startup", "50 employees"]},
    {"name": "DataInc", "entityType": "company", "observations": ["Big data analytics", "Remote-first company"]},
    {"name": "ML_Project", "entityType": "project", "observations": ["Machine learning pipeline", "Python based", "In production"]},
    {"name": "WebApp", "entityType": "project", "observations": ["Customer-facing application", "React frontend"]},
    {"name": "Berlin", "entityType": "city", "observations": ["Capital of Germany", "Major tech hub"]},
    {"name": "San_Francisco", "entityType": "city", "observations": ["Tech capital", "Bay Area"]},
    {"name": "Python", "entityType": "technology", "observations": ["Programming language", "Great for ML"]},
    {"name": "TypeScript", "entityType": "technology", "observations": ["JavaScript with types", "Enterprise ready"]},
]

SAMPLE_RELATIONS = [
    {"from": "Alice", "to": "TechCorp", "relationType": "works_at"},
    {"from": "Bob", "to": "DataInc", "relationType": "works_at"},
    {"from": "Carol", "to": "TechCorp", "relationType": "works_at"},
    {"from": "Alice", "to": "Bob", "relationType": "collaborates_with"},
    {"from": "Alice", "to": "Carol", "relationType": "mentors"},
    {"from": "Alice", "to": "ML_Project", "relationType": "leads"},
    {"from": "Bob", "to": "ML_Project", "relationType": "contributes_to"},
    {"from": "Carol", "to": "WebApp", "relationType": "manages"},
    {"from": "TechCorp", "to": "Berlin", "relationType": "headquartered_in"},
    {"from": "DataInc", "to": "San_Francisco", "relationType": "headquartered_in"},
    {"from": "Alice", "to": "Berlin", "relationType": "lives_in"},
    {"from": "Bob", "to": "San_Francisco", "relationType": "lives_in"},
    {"from": "ML_Project", "to": "Python", "relationType": "built_with"},
    {"from": "WebApp", "to": "TypeScript", "relationType": "built_with"},
    {"from": "Alice", "to": "Python", "relationType": "expert_in"},
    {"from": "Bob", "to": "Python", "relationType": "uses"},
]


def load_sample_data(manager: KnowledgeGraphManager) -> tuple[int, int]:
    """Seed a store with the demo graph. Returns (entities, relations) created."""
    entities = manager.create_entities(SAMPLE_ENTITIES)
    relations = manager.create_relations(SAMPLE_RELATIONS)
    return len(entities), len(relations)


def serve(argv: list[str] | None = None):
    """Run the MCP server over stdio."""
    parser = argparse.ArgumentParser(description="Knowledge Base MCP Server")
    parser.add_argument("--memory-path", default=None, help="JSONL storage file")
    parser.add_argument("--log-level", default=None, help="Log level (default: INFO)")
    args = parser.parse_args(argv)

    # Set environment variables from args if provided
    if args.memory_path:
        os.environ[MEMORY_PATH_ENV] = str(Path(args.memory_path).resolve())
    if args.log_level:
        os.environ["KB_LOG_LEVEL"] = args.log_level.upper()

    from .server import main

    try:
        asyncio.run(main(KBConfig.from_env()))
    except KeyboardInterrupt:
        pass


def visualize(argv: list[str] | None = None):
    """Open the live visualization for a knowledge base file (or sample data)."""
    parser = argparse.ArgumentParser(
        description="Knowledge Base Visualization",
        epilog="Without PATH a sample knowledge base is created in the temp directory.",
    )
    parser.add_argument("path", nargs="?", default=None, help="JSONL knowledge base file")
    parser.add_argument("--port", type=int, default=None, help="First port to try (default: 3000)")
    parser.add_argument("--host", default=None, help="Host to bind (default: 127.0.0.1)")
    parser.add_argument("--no-browser", action="store_true", help="Don't open a browser")
    args = parser.parse_args(argv)

    config = KBConfig.from_env()
    configure_logging(config.log_level)

    if args.path is None:
        path = Path(tempfile.gettempdir()) / "knowledge_base_example.jsonl"
        print("No file provided - using sample data.\n")
    else:
        path = Path(args.path).expanduser().resolve()
        if not path.exists():
            print(f"Error: File not found: {path}", file=sys.stderr)
            sys.exit(1)
        print(f"Loading from: {path}\n")

    manager = KnowledgeGraphManager(path)
    if args.path is None:
        entities, relations = load_sample_data(manager)
        print(f"Created {entities} entities and {relations} relations")

    stats = manager.stats()
    if stats["entities"] == 0:
        print("The knowledge base is empty. Nothing to visualize.")
        print("Run without arguments to see sample data.")
        return

    print("Graph Statistics:")
    print(f"  Entities: {stats['entities']}")
    print(f"  Relations: {stats['relations']}")
    print(f"  Entity Types: {', '.join(stats['entity_types'])}\n")

    server = VisualizationServer(
        manager,
        host=args.host or config.viz_host,
        default_port=args.port or config.viz_port,
        poll_interval_ms=config.poll_interval_ms,
    )
    url = server.start()
    print(f"Visualization running at: {url}")
    if not args.no_browser:
        open_in_browser(url)
    print("Edits to the file show up live. Press Ctrl+C to stop the server...")

    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        print("\nServer stopped by user")
    finally:
        server.close()
