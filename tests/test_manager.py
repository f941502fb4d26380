"""Tests for the knowledge graph store."""

import threading

import pytest

from kb_server.core.exceptions import EntityNotFoundError, MalformedRecordError
from kb_server.core.manager import KnowledgeGraphManager
from kb_server.core.types import Entity, ObservationResult, Relation


def entity(name, entity_type="person", observations=()):
    return {"name": name, "entityType": entity_type, "observations": list(observations)}


def relation(from_, to, relation_type):
    return {"from": from_, "to": to, "relationType": relation_type}


class TestCreateEntities:

    def test_creates_and_returns_survivors(self, manager):
        created = manager.create_entities([entity("Alice"), entity("Bob")])
        assert [e.name for e in created] == ["Alice", "Bob"]
        assert len(manager.read_graph().entities) == 2

    def test_idempotent_recreation(self, manager):
        batch = [entity("Alice", observations=["works at TechCorp"])]
        first = manager.create_entities(batch)
        second = manager.create_entities(batch)

        assert len(first) == 1
        assert second == []
        assert len(manager.read_graph().entities) == 1

    def test_duplicates_detected_by_set_difference(self, manager):
        manager.create_entities([entity("Alice")])
        created = manager.create_entities([entity("Alice", "robot"), entity("Bob")])
        assert [e.name for e in created] == ["Bob"]
        # Existing entity is left untouched
        assert manager.open_nodes(["Alice"]).entities[0].entity_type == "person"

    def test_repeated_name_in_one_batch_created_once(self, manager):
        created = manager.create_entities([entity("Alice", "person"), entity("Alice", "robot")])
        assert len(created) == 1
        assert created[0].entity_type == "person"

    def test_accepts_models(self, manager):
        created = manager.create_entities([Entity(name="Alice", entity_type="person")])
        assert created[0].observations == []

    def test_duplicate_observations_collapsed(self, manager):
        created = manager.create_entities([entity("Alice", observations=["x", "x", "y"])])
        assert created[0].observations == ["x", "y"]

    def test_no_write_when_nothing_created(self, manager, memory_path):
        assert manager.create_entities([]) == []
        assert not memory_path.exists()


class TestCreateRelations:

    def test_dedup_by_full_triple(self, manager):
        manager.create_entities([entity("A"), entity("B")])
        created = manager.create_relations([relation("A", "B", "knows"), relation("A", "B", "likes")])
        assert len(created) == 2

        again = manager.create_relations([relation("A", "B", "knows")])
        assert again == []
        assert {r.relation_type for r in manager.read_graph().relations} == {"knows", "likes"}

    def test_dangling_endpoints_accepted(self, manager):
        created = manager.create_relations([relation("Ghost", "Nobody", "haunts")])
        assert created == [Relation(from_="Ghost", to="Nobody", relation_type="haunts")]
        assert len(manager.read_graph().relations) == 1

    def test_direction_matters(self, manager):
        created = manager.create_relations([relation("A", "B", "knows"), relation("B", "A", "knows")])
        assert len(created) == 2


class TestAddObservations:

    def test_dedup_within_input(self, people):
        people.create_entities([entity("Carol")])
        results = people.add_observations([{"entityName": "Carol", "contents": ["x", "x", "y"]}])
        assert results == [ObservationResult(entity_name="Carol", added_observations=["x", "y"])]
        assert people.open_nodes(["Carol"]).entities[0].observations == ["x", "y"]

    def test_skips_existing_observations(self, people):
        results = people.add_observations([
            {"entityName": "Alice", "contents": ["Senior engineer", "Plays chess"]},
        ])
        assert results[0].added_observations == ["Plays chess"]
        assert people.open_nodes(["Alice"]).entities[0].observations == [
            "Senior engineer", "Lives in Berlin", "Plays chess",
        ]

    def test_dedup_is_case_sensitive(self, people):
        results = people.add_observations([{"entityName": "Bob", "contents": ["likes coding"]}])
        assert results[0].added_observations == ["likes coding"]

    def test_empty_result_per_entity(self, people):
        results = people.add_observations([{"entityName": "Bob", "contents": ["Likes coding"]}])
        assert results[0].to_dict() == {"entityName": "Bob", "addedObservations": []}

    def test_missing_entity_commits_nothing(self, people):
        before = people.read_graph()
        with pytest.raises(EntityNotFoundError) as excinfo:
            people.add_observations([
                {"entityName": "Alice", "contents": ["new fact"]},
                {"entityName": "ghost", "contents": ["x"]},
            ])

        assert excinfo.value.entity_name == "ghost"
        assert people.read_graph() == before


class TestDeleteEntities:

    def test_cascading_delete(self, manager):
        manager.create_entities([entity("A"), entity("B")])
        manager.create_relations([relation("A", "B", "knows")])

        manager.delete_entities(["A"])

        graph = manager.read_graph()
        assert [e.name for e in graph.entities] == ["B"]
        assert not any("A" in (r.from_, r.to) for r in graph.relations)

    def test_removes_dangling_relations_too(self, manager):
        manager.create_relations([relation("Ghost", "B", "haunts")])
        manager.delete_entities(["Ghost"])
        assert manager.read_graph().relations == []

    def test_unknown_name_is_noop(self, people):
        before = people.read_graph()
        people.delete_entities(["Nobody"])
        assert people.read_graph() == before


class TestDeleteObservations:

    def test_removes_matching(self, people):
        people.delete_observations([{"entityName": "Alice", "observations": ["Lives in Berlin", "not there"]}])
        assert people.open_nodes(["Alice"]).entities[0].observations == ["Senior engineer"]

    def test_unknown_entity_skipped(self, people):
        people.delete_observations([
            {"entityName": "ghost", "observations": ["x"]},
            {"entityName": "Bob", "observations": ["Likes coding"]},
        ])
        assert people.open_nodes(["Bob"]).entities[0].observations == []


class TestDeleteRelations:

    def test_exact_match_only(self, people):
        people.delete_relations([
            relation("Alice", "Bob", "knows"),
            relation("Bob", "TechCorp", "owns"),
        ])
        assert [r.key for r in people.read_graph().relations] == [("Bob", "TechCorp", "works_at")]

    def test_entities_untouched(self, people):
        people.delete_relations([relation("Alice", "Bob", "knows")])
        assert len(people.read_graph().entities) == 3


class TestQueries:

    def test_search_closure(self, manager):
        manager.create_entities([
            entity("A", "person", ["Senior engineer"]),
            entity("B", "company"),
        ])
        manager.create_relations([relation("A", "B", "works_at")])

        result = manager.search_nodes("engineer")
        assert [e.name for e in result.entities] == ["A"]
        assert result.relations == []

    def test_search_is_case_insensitive(self, people):
        result = people.search_nodes("PERSON")
        assert {e.name for e in result.entities} == {"Alice", "Bob"}
        assert [r.key for r in result.relations] == [("Alice", "Bob", "knows")]

    def test_search_matches_names(self, people):
        assert [e.name for e in people.search_nodes("corp").entities] == ["TechCorp"]

    def test_search_ignores_relation_fields(self, people):
        assert people.search_nodes("works_at").entities == []

    def test_open_nodes(self, people):
        result = people.open_nodes(["Bob", "TechCorp", "Nobody"])
        assert {e.name for e in result.entities} == {"Bob", "TechCorp"}
        assert [r.key for r in result.relations] == [("Bob", "TechCorp", "works_at")]

    def test_search_observations(self, people):
        assert people.search_observations("Alice", "berlin") == ["Lives in Berlin"]

    def test_search_observations_missing_entity(self, people):
        with pytest.raises(EntityNotFoundError):
            people.search_observations("ghost", "x")

    def test_stats(self, people):
        assert people.stats() == {"entities": 3, "relations": 2, "entity_types": ["company", "person"]}


class TestDurability:

    def test_round_trip_through_fresh_instance(self, people, memory_path):
        expected = people.read_graph()
        fresh = KnowledgeGraphManager(memory_path)
        graph = fresh.read_graph()

        assert {e.name: e for e in graph.entities} == {e.name: e for e in expected.entities}
        assert set(graph.relations) == set(expected.relations)

    def test_reads_changes_made_by_other_instances(self, people, memory_path):
        KnowledgeGraphManager(memory_path).create_entities([entity("Dave")])
        assert "Dave" in people.read_graph().entity_names()

    def test_malformed_storage_fails_the_call(self, people, memory_path):
        with open(memory_path, "a", encoding="utf-8") as f:
            f.write("{broken\n")
        with pytest.raises(MalformedRecordError):
            people.create_entities([entity("Eve")])

    def test_concurrent_writers_do_not_lose_updates(self, manager):
        def worker(i):
            manager.create_entities([entity(f"E{i}")])
            manager.add_observations([{"entityName": f"E{i}", "contents": [f"fact {i}"]}])

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        graph = manager.read_graph()
        assert len(graph.entities) == 16
        assert all(e.observations == [f"fact {e.name[1:]}"] for e in graph.entities)

    def test_unicode_line_separators_survive_reload(self, manager, memory_path):
        manager.create_entities([entity("A", observations=["x\x85y", "a\u2028b"])])
        graph = KnowledgeGraphManager(memory_path).read_graph()
        assert graph.entities[0].observations == ["x\x85y", "a\u2028b"]
