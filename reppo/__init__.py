"""Reppo publisher: Moltbook posts, pods on Base and Reppo metadata."""

import logging
import os


def resolve_log_level(name=None):
    """Map a level name to its number, falling back to WARNING for unknown names."""
    if name is None:
        name = os.environ.get("REPPO_LOG_LEVEL", "")
    level = logging.getLevelName(str(name).strip().upper())
    return level if isinstance(level, int) else logging.WARNING


# Centralized logging configuration
# Records go to stderr so --json stdout stays a single object
logging.basicConfig(
    level=resolve_log_level(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
