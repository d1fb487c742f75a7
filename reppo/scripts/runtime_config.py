"""
Runtime settings for the Reppo publisher.

Resolved once per command from environment variables and the config
directory, falling back to the defaults in constants.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .constants import (
    CHAIN_ID,
    DEFAULT_RPC_URL,
    HTTP_TIMEOUT_SECONDS,
    MAX_RETRIES,
    RETRY_BASE_DELAY,
    SESSION_FILE_NAME,
    TX_RECEIPT_TIMEOUT,
)
from .credentials import CredentialStore


@dataclass
class RuntimeConfig:
    config_dir: Path
    rpc_url: str = DEFAULT_RPC_URL
    chain_id: int = CHAIN_ID
    http_timeout_seconds: int = HTTP_TIMEOUT_SECONDS
    max_retries: int = MAX_RETRIES
    retry_base_delay: float = RETRY_BASE_DELAY
    receipt_timeout: float = TX_RECEIPT_TIMEOUT

    @property
    def session_file(self) -> Path:
        return self.config_dir / SESSION_FILE_NAME


def load_runtime_config(credentials: Optional[CredentialStore] = None) -> RuntimeConfig:
    store = credentials or CredentialStore()
    env = store.environ
    return RuntimeConfig(
        config_dir=store.config_dir,
        rpc_url=store.get_config_value("rpc_url") or DEFAULT_RPC_URL,
        http_timeout_seconds=int(env.get("REPPO_HTTP_TIMEOUT_SECONDS") or HTTP_TIMEOUT_SECONDS),
        max_retries=int(env.get("REPPO_HTTP_MAX_RETRIES") or MAX_RETRIES),
        retry_base_delay=float(env.get("REPPO_RETRY_BASE_DELAY") or RETRY_BASE_DELAY),
        receipt_timeout=float(env.get("REPPO_TX_RECEIPT_TIMEOUT") or TX_RECEIPT_TIMEOUT),
    )
