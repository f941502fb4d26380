"""Tests for MCP tool dispatch."""

import json

import pytest

from kb_server import server as kb_server_module
from kb_server.server import TOOLS, create_server, run_tool


def call(manager, name, arguments=None, visualizer=None):
    result = run_tool(manager, visualizer, name, arguments, open_browser=False)
    assert len(result) == 1
    return result[0].text


class TestToolList:

    def test_names(self):
        assert [t.name for t in TOOLS] == [
            "create_entities",
            "create_relations",
            "add_observations",
            "delete_entities",
            "delete_observations",
            "delete_relations",
            "read_graph",
            "search_nodes",
            "open_nodes",
            "search_observations",
            "visualize_graph",
            "ping",
        ]

    def test_create_server(self, manager):
        assert create_server(manager).name == "knowledge-base-server"


class TestTools:

    def test_create_entities_returns_created(self, manager):
        entities = [{"name": "Alice", "entityType": "person", "observations": ["x"]}]
        assert json.loads(call(manager, "create_entities", {"entities": entities})) == entities
        assert json.loads(call(manager, "create_entities", {"entities": entities})) == []

    def test_create_relations_wire_names(self, people):
        relation = {"from": "TechCorp", "to": "Alice", "relationType": "employs"}
        assert json.loads(call(people, "create_relations", {"relations": [relation]})) == [relation]

    def test_add_observations(self, people):
        text = call(people, "add_observations", {
            "observations": [{"entityName": "Bob", "contents": ["Likes coding", "Drinks tea"]}],
        })
        assert json.loads(text) == [{"entityName": "Bob", "addedObservations": ["Drinks tea"]}]

    def test_add_observations_missing_entity(self, people):
        text = call(people, "add_observations", {"observations": [{"entityName": "ghost", "contents": ["x"]}]})
        assert json.loads(text) == {"error": "Entity with name ghost not found"}

    def test_delete_tools(self, people):
        assert call(people, "delete_relations", {
            "relations": [{"from": "Alice", "to": "Bob", "relationType": "knows"}],
        }) == "Relations deleted successfully"
        assert call(people, "delete_observations", {
            "deletions": [{"entityName": "Alice", "observations": ["Lives in Berlin"]}],
        }) == "Observations deleted successfully"
        assert call(people, "delete_entities", {"entityNames": ["TechCorp"]}) == "Entities deleted successfully"

        graph = json.loads(call(people, "read_graph"))
        assert [e["name"] for e in graph["entities"]] == ["Alice", "Bob"]
        assert graph["entities"][0]["observations"] == ["Senior engineer"]
        assert graph["relations"] == []

    def test_search_nodes(self, people):
        graph = json.loads(call(people, "search_nodes", {"query": "engineer"}))
        assert [e["name"] for e in graph["entities"]] == ["Alice"]
        assert graph["relations"] == []

    def test_open_nodes(self, people):
        graph = json.loads(call(people, "open_nodes", {"names": ["Alice", "Bob"]}))
        assert graph["relations"] == [{"from": "Alice", "to": "Bob", "relationType": "knows"}]

    def test_search_observations(self, people):
        text = call(people, "search_observations", {"entityName": "Alice", "query": "SENIOR"})
        assert json.loads(text) == ["Senior engineer"]

    def test_ping(self, people):
        data = json.loads(call(people, "ping"))
        assert data["status"] == "ok"
        assert data["entities"] == 3


class TestErrors:

    def test_missing_argument(self, manager):
        assert json.loads(call(manager, "search_nodes", {})) == {"error": "Missing required argument: query"}

    def test_unknown_tool(self, manager):
        assert json.loads(call(manager, "drop_database")) == {"error": "Unknown tool: drop_database"}

    def test_invalid_entity(self, manager):
        text = call(manager, "create_entities", {"entities": [{"name": "Alice"}]})
        assert "entityType" in json.loads(text)["error"]

    def test_malformed_storage(self, manager, memory_path):
        memory_path.write_text("not json\n", encoding="utf-8")
        text = call(manager, "read_graph")
        assert "line 1" in json.loads(text)["error"]

    def test_visualize_without_visualizer(self, manager):
        assert "not available" in json.loads(call(manager, "visualize_graph"))["error"]


class TestVisualize:

    def test_reports_url(self, manager, monkeypatch):
        seen = {}

        def fake_visualize(server, open_browser=True):
            seen["open_browser"] = open_browser
            return "http://127.0.0.1:3001"

        monkeypatch.setattr(kb_server_module, "visualize_graph", fake_visualize)
        text = call(manager, "visualize_graph", visualizer=object())

        assert "http://127.0.0.1:3001" in text
        assert seen["open_browser"] is False
