"""
Credential store for the Reppo publisher.

Secrets (wallet private key, Moltbook API key) are resolved from environment
variables first, then from single-value files under the config directory
(default ~/.config/reppo).

Security:
- Files are written owner-only (0600) inside an owner-only directory.
- Values are never logged. Callers report presence only.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from .constants import CONFIG_DIR_NAME
from .errors import MissingCredentialError

logger = logging.getLogger(__name__)

ENV_MAP = {
    "private_key": "REPPO_PRIVATE_KEY",
    "moltbook_key": "MOLTBOOK_API_KEY",
    "api_key": "REPPO_API_KEY",
}


def default_config_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if environ is None else environ
    override = (env.get("REPPO_CONFIG_DIR") or "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / CONFIG_DIR_NAME


def write_secure_file(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        fh.write(content)
    # O_CREAT mode is ignored for files that already exist.
    os.chmod(path, 0o600)
    return path


class CredentialStore:
    def __init__(self, config_dir: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> None:
        self.environ = os.environ if environ is None else environ
        self.config_dir = Path(config_dir) if config_dir else default_config_dir(self.environ)

    def path_for(self, name: str) -> Path:
        return self.config_dir / name

    def load(self, name: str) -> Optional[str]:
        env_var = ENV_MAP.get(name)
        if env_var:
            value = (self.environ.get(env_var) or "").strip()
            if value:
                return value

        path = self.path_for(name)
        if path.exists():
            value = path.read_text(encoding="utf-8").strip()
            return value or None
        return None

    def require(self, name: str) -> str:
        value = self.load(name)
        if not value:
            raise MissingCredentialError(name, ENV_MAP.get(name), str(self.path_for(name)))
        return value

    def has(self, name: str) -> bool:
        return self.load(name) is not None

    def save(self, name: str, value: str) -> Path:
        path = write_secure_file(self.path_for(name), str(value).strip() + "\n")
        logger.info("Saved %s to %s", name, path)
        return path

    def get_config_value(self, key: str) -> Optional[str]:
        """Non-secret settings: env REPPO_<KEY>, then <config_dir>/<key>."""
        value = (self.environ.get(f"REPPO_{key.upper()}") or "").strip()
        if value:
            return value
        path = self.path_for(key)
        if path.exists():
            return path.read_text(encoding="utf-8").strip() or None
        return None
