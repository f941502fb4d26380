"""Constants for knowledge base operations."""

# Storage
DEFAULT_MEMORY_FILENAME = "knowledge_base.jsonl"
MEMORY_PATH_ENV = "KNOWLEDGE_BASE_FILE_PATH"

# Durable record tags
RECORD_ENTITY = "entity"
RECORD_RELATION = "relation"
RECORD_TYPES = (RECORD_ENTITY, RECORD_RELATION)

# Live sync
POLL_INTERVAL_MS = 2000
NEW_NODE_SPREAD = 100.0  # Width of the box new nodes are dropped into

# Visualization server
DEFAULT_VIZ_HOST = "127.0.0.1"
DEFAULT_VIZ_PORT = 3000
MAX_PORT_ATTEMPTS = 20
