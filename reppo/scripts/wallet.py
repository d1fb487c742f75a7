"""
Signing identity plus the web3 client used for every on-chain call.

A WalletHandle is built once per command and passed to each gateway.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from eth_account import Account
from web3 import Web3

from .constants import CHAIN_ID, DEFAULT_RPC_URL, HTTP_TIMEOUT_SECONDS
from .errors import ValidationError

logger = logging.getLogger(__name__)


def normalize_private_key(private_key: str) -> str:
    key = str(private_key or "").strip()
    return key if key.startswith("0x") else f"0x{key}"


def account_from_key(private_key: str):
    try:
        return Account.from_key(normalize_private_key(private_key))
    except Exception:
        # Never include the key material in the message.
        raise ValidationError("Private key is not a valid 32-byte hex string") from None


@dataclass(frozen=True)
class WalletHandle:
    account: Any
    web3: Any
    chain_id: int = CHAIN_ID
    rpc_url: str = DEFAULT_RPC_URL

    @property
    def address(self) -> str:
        return self.account.address


def open_wallet(
    private_key: str,
    *,
    rpc_url: Optional[str] = None,
    chain_id: int = CHAIN_ID,
    timeout_seconds: int = HTTP_TIMEOUT_SECONDS,
    web3: Optional[Any] = None,
) -> WalletHandle:
    url = (rpc_url or DEFAULT_RPC_URL).strip()
    account = account_from_key(private_key)
    client = web3 if web3 is not None else Web3(Web3.HTTPProvider(url, request_kwargs={"timeout": timeout_seconds}))
    logger.info("Wallet %s on chain %s via %s", account.address, chain_id, url)
    return WalletHandle(account=account, web3=client, chain_id=int(chain_id), rpc_url=url)
