"""
Knowledge Base MCP Server
Exposes the JSONL-backed knowledge graph as MCP tools over stdio, plus a
live browser visualization that follows the graph as it changes.
"""

import json
import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .config import KBConfig, configure_logging
from .core.exceptions import KGError
from .core.manager import KnowledgeGraphManager
from .version import __version__
from .viz.server import VisualizationServer, visualize_graph

logger = logging.getLogger(__name__)


# ============================================================================
# Tool Definitions
# ============================================================================

_ENTITY_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "The name of the entity"},
        "entityType": {"type": "string", "description": "The type of the entity"},
        "observations": {
            "type": "array",
            "items": {"type": "string"},
            "description": "An array of observation contents associated with the entity",
        },
    },
    "required": ["name", "entityType", "observations"],
}

_RELATION_SCHEMA = {
    "type": "object",
    "properties": {
        "from": {"type": "string", "description": "The name of the entity where the relation starts"},
        "to": {"type": "string", "description": "The name of the entity where the relation ends"},
        "relationType": {"type": "string", "description": "The type of the relation"},
    },
    "required": ["from", "to", "relationType"],
}

_EMPTY_SCHEMA = {"type": "object", "properties": {}}

TOOLS = [
    Tool(
        name="create_entities",
        description="Create multiple new entities in the knowledge graph. Entities whose name already exists are skipped.",
        inputSchema={
            "type": "object",
            "properties": {"entities": {"type": "array", "items": _ENTITY_SCHEMA}},
            "required": ["entities"],
        },
    ),
    Tool(
        name="create_relations",
        description="Create multiple new relations between entities in the knowledge graph. Relations should be in active voice",
        inputSchema={
            "type": "object",
            "properties": {"relations": {"type": "array", "items": _RELATION_SCHEMA}},
            "required": ["relations"],
        },
    ),
    Tool(
        name="add_observations",
        description="Add new observations to existing entities in the knowledge graph",
        inputSchema={
            "type": "object",
            "properties": {
                "observations": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "entityName": {"type": "string", "description": "The name of the entity to add the observations to"},
                            "contents": {"type": "array", "items": {"type": "string"}, "description": "An array of observation contents to add"},
                        },
                        "required": ["entityName", "contents"],
                    },
                }
            },
            "required": ["observations"],
        },
    ),
    Tool(
        name="delete_entities",
        description="Delete multiple entities and their associated relations from the knowledge graph",
        inputSchema={
            "type": "object",
            "properties": {
                "entityNames": {"type": "array", "items": {"type": "string"}, "description": "An array of entity names to delete"}
            },
            "required": ["entityNames"],
        },
    ),
    Tool(
        name="delete_observations",
        description="Delete specific observations from entities in the knowledge graph",
        inputSchema={
            "type": "object",
            "properties": {
                "deletions": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "entityName": {"type": "string", "description": "The name of the entity containing the observations"},
                            "observations": {"type": "array", "items": {"type": "string"}, "description": "An array of observations to delete"},
                        },
                        "required": ["entityName", "observations"],
                    },
                }
            },
            "required": ["deletions"],
        },
    ),
    Tool(
        name="delete_relations",
        description="Delete multiple relations from the knowledge graph",
        inputSchema={
            "type": "object",
            "properties": {
                "relations": {"type": "array", "items": _RELATION_SCHEMA, "description": "An array of relations to delete"}
            },
            "required": ["relations"],
        },
    ),
    Tool(
        name="read_graph",
        description="Read the entire knowledge graph",
        inputSchema=_EMPTY_SCHEMA,
    ),
    Tool(
        name="search_nodes",
        description="Search for nodes in the knowledge graph based on a query",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "The search query to match against entity names, types, and observation content"}
            },
            "required": ["query"],
        },
    ),
    Tool(
        name="open_nodes",
        description="Open specific nodes in the knowledge graph by their names",
        inputSchema={
            "type": "object",
            "properties": {
                "names": {"type": "array", "items": {"type": "string"}, "description": "An array of entity names to retrieve"}
            },
            "required": ["names"],
        },
    ),
    Tool(
        name="search_observations",
        description="Search for observations within a specific entity's observations that match a query",
        inputSchema={
            "type": "object",
            "properties": {
                "entityName": {"type": "string", "description": "The name of the entity to search within"},
                "query": {"type": "string", "description": "The search query to match against observation content"},
            },
            "required": ["entityName", "query"],
        },
    ),
    Tool(
        name="visualize_graph",
        description="Open an interactive visualization of the knowledge graph in the browser. Entities are displayed as nodes and relations as edges. The visualization updates live as the graph changes.",
        inputSchema=_EMPTY_SCHEMA,
    ),
    Tool(
        name="ping",
        description="Health check for MCP connectivity. Returns server status and graph statistics.",
        inputSchema=_EMPTY_SCHEMA,
    ),
]


# ============================================================================
# Tool Dispatch
# ============================================================================

def _dump(result: Any) -> str:
    if isinstance(result, list):
        result = [item.to_dict() if hasattr(item, "to_dict") else item for item in result]
    elif hasattr(result, "to_dict"):
        result = result.to_dict()
    return json.dumps(result, indent=2, ensure_ascii=False)


def dispatch(
    manager: KnowledgeGraphManager,
    visualizer: VisualizationServer | None,
    name: str,
    arguments: dict,
    open_browser: bool = True,
) -> str:
    """Run one tool against the store and return its text result."""
    if name == "create_entities":
        return _dump(manager.create_entities(arguments["entities"]))

    elif name == "create_relations":
        return _dump(manager.create_relations(arguments["relations"]))

    elif name == "add_observations":
        return _dump(manager.add_observations(arguments["observations"]))

    elif name == "delete_entities":
        manager.delete_entities(arguments["entityNames"])
        return "Entities deleted successfully"

    elif name == "delete_observations":
        manager.delete_observations(arguments["deletions"])
        return "Observations deleted successfully"

    elif name == "delete_relations":
        manager.delete_relations(arguments["relations"])
        return "Relations deleted successfully"

    elif name == "read_graph":
        return _dump(manager.read_graph())

    elif name == "search_nodes":
        return _dump(manager.search_nodes(arguments["query"]))

    elif name == "open_nodes":
        return _dump(manager.open_nodes(arguments["names"]))

    elif name == "search_observations":
        return _dump(manager.search_observations(arguments["entityName"], arguments["query"]))

    elif name == "visualize_graph":
        if visualizer is None:
            raise KGError("Visualization is not available in this server")
        url = visualize_graph(visualizer, open_browser=open_browser)
        return (
            f"Knowledge graph visualization opened in browser at {url}. "
            "The visualization will update live as you modify the graph."
        )

    elif name == "ping":
        return _dump({"status": "ok", "version": __version__, **manager.stats()})

    raise KGError(f"Unknown tool: {name}")


def run_tool(
    manager: KnowledgeGraphManager,
    visualizer: VisualizationServer | None,
    name: str,
    arguments: Any,
    open_browser: bool = True,
) -> list[TextContent]:
    """Handle tool calls with uniform error handling."""
    try:
        text = dispatch(manager, visualizer, name, arguments or {}, open_browser)
        return [TextContent(type="text", text=text)]

    except KeyError as e:
        logger.warning(f"Missing argument {e} in {name}")
        return [TextContent(type="text", text=json.dumps({"error": f"Missing required argument: {e.args[0]}"}))]

    except (KGError, ValueError) as e:
        # Known errors: not found, malformed storage, invalid arguments
        logger.warning(f"KG error in {name}: {e}")
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]

    except Exception as e:
        logger.error(f"Unexpected error in {name}: {e}", exc_info=True)
        return [TextContent(type="text", text=json.dumps({"error": f"Internal error: {str(e)}"}))]


# ============================================================================
# MCP Server
# ============================================================================

def create_server(
    manager: KnowledgeGraphManager,
    visualizer: VisualizationServer | None = None,
) -> Server:
    """Create and configure the MCP server with all tools."""
    server = Server("knowledge-base-server", version=__version__)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available knowledge graph tools."""
        return TOOLS

    @server.call_tool()
    async def call_tool(name: str, arguments: Any) -> list[TextContent]:
        return run_tool(manager, visualizer, name, arguments)

    return server


async def main(config: KBConfig | None = None):
    """Main entry point."""
    config = config or KBConfig.from_env()
    configure_logging(config.log_level)

    manager = KnowledgeGraphManager(config.memory_path)
    visualizer = VisualizationServer(manager, config.viz_host, config.viz_port, config.poll_interval_ms)
    server = create_server(manager, visualizer)

    logger.info(f"Starting Knowledge Base MCP Server (storage: {config.memory_path})")

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        if visualizer.running:
            visualizer.close()
