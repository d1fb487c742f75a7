"""
Persistence for the auth-provider session.

The session manager only needs load/save of a JSON object, so the on-disk
file can be swapped for an in-memory store in tests.

Security:
- The session file holds bearer tokens. It is written owner-only (0600).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .credentials import write_secure_file

logger = logging.getLogger(__name__)


class FileSessionStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.info("Ignoring unreadable session file %s: %s", self.path, exc)
            return None
        return data if isinstance(data, dict) else None

    def save(self, data: Dict[str, Any]) -> Path:
        return write_secure_file(self.path, json.dumps(data, indent=2))


class MemorySessionStore:
    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        self.data = dict(data) if data is not None else None
        self.saves = 0

    def load(self) -> Optional[Dict[str, Any]]:
        return dict(self.data) if self.data is not None else None

    def save(self, data: Dict[str, Any]) -> None:
        self.data = dict(data)
        self.saves += 1
