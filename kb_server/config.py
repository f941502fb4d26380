"""Configuration and logging setup for the knowledge base server."""

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .core.constants import (
    DEFAULT_MEMORY_FILENAME,
    DEFAULT_VIZ_HOST,
    DEFAULT_VIZ_PORT,
    MEMORY_PATH_ENV,
    POLL_INTERVAL_MS,
)

# Relative storage paths resolve against the package directory
BASE_DIR = Path(__file__).resolve().parent

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def resolve_memory_file_path(value: str | None = None, base_dir: Path = BASE_DIR) -> Path:
    """
    Resolve the JSONL storage path.
    Uses value (or the KNOWLEDGE_BASE_FILE_PATH env var); relative paths are
    joined to base_dir. Falls back to knowledge_base.jsonl in base_dir.
    """
    if value is None:
        value = os.getenv(MEMORY_PATH_ENV)

    if not value:
        return base_dir / DEFAULT_MEMORY_FILENAME

    path = Path(value).expanduser()
    return path if path.is_absolute() else base_dir / path


def configure_logging(level: str | None = None) -> None:
    """Configure logging to stderr (never stdout for MCP)."""
    level = (level or os.getenv("KB_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


@dataclass(frozen=True)
class KBConfig:
    """Knowledge base configuration."""
    memory_path: Path = field(default_factory=resolve_memory_file_path)
    log_level: str = "INFO"
    viz_host: str = DEFAULT_VIZ_HOST
    viz_port: int = DEFAULT_VIZ_PORT
    poll_interval_ms: int = POLL_INTERVAL_MS

    @classmethod
    def from_env(cls) -> "KBConfig":
        """Create configuration from environment variables."""
        return cls(
            memory_path=resolve_memory_file_path(),
            log_level=os.getenv("KB_LOG_LEVEL", "INFO").upper(),
            viz_host=os.getenv("KB_VIZ_HOST", DEFAULT_VIZ_HOST),
            viz_port=int(os.getenv("KB_VIZ_PORT", str(DEFAULT_VIZ_PORT))),
            poll_interval_ms=int(os.getenv("KB_POLL_INTERVAL_MS", str(POLL_INTERVAL_MS))),
        )
