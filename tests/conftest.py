"""Shared fixtures for knowledge base tests."""

from pathlib import Path

import pytest

from kb_server.core.manager import KnowledgeGraphManager


@pytest.fixture
def memory_path(tmp_path: Path) -> Path:
    """Storage file inside a fresh temp directory (not created yet)."""
    return tmp_path / "knowledge_base.jsonl"


@pytest.fixture
def manager(memory_path: Path) -> KnowledgeGraphManager:
    return KnowledgeGraphManager(memory_path)


@pytest.fixture
def people(manager: KnowledgeGraphManager) -> KnowledgeGraphManager:
    """Store seeded with Alice -> Bob -> TechCorp."""
    manager.create_entities([
        {"name": "Alice", "entityType": "person", "observations": ["Senior engineer", "Lives in Berlin"]},
        {"name": "Bob", "entityType": "person", "observations": ["Likes coding"]},
        {"name": "TechCorp", "entityType": "company", "observations": ["AI startup"]},
    ])
    manager.create_relations([
        {"from": "Alice", "to": "Bob", "relationType": "knows"},
        {"from": "Bob", "to": "TechCorp", "relationType": "works_at"},
    ])
    return manager
