"""Version information for the Knowledge Base server."""

__version__ = "1.1.0"
