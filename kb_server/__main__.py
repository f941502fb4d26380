"""Run the MCP server: python -m kb_server."""

from .cli import serve

serve()
