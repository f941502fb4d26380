"""Custom exceptions for knowledge base operations."""


class KGError(Exception):
    """Base exception for knowledge graph operations."""
    pass


class EntityNotFoundError(KGError):
    """Raised when an operation requires an entity that does not exist."""
    def __init__(self, entity_name: str):
        self.entity_name = entity_name
        super().__init__(f"Entity with name {entity_name} not found")


class MalformedRecordError(KGError):
    """Raised when a line of durable storage cannot be decoded."""
    def __init__(self, reason: str, line_number: int | None = None):
        self.reason = reason
        self.line_number = line_number
        where = f" on line {line_number}" if line_number is not None else ""
        super().__init__(f"Malformed record{where}: {reason}")
