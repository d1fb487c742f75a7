"""
On-chain reads and writes against the Reppo pod contract and REPPO token.

Reads are retried with bounded exponential backoff. Transactions are sent
once: a retried submission could be mined twice.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional

from web3 import Web3
from web3.exceptions import TimeExhausted
from web3.logs import DISCARD

from .constants import (
    EMISSION_SHARE,
    ERC20_ABI,
    ETH_DECIMALS,
    MAX_RETRIES,
    POD_ABI,
    POD_CONTRACT,
    REPPO_DECIMALS,
    REPPO_TOKEN,
    RETRY_BASE_DELAY,
    TX_RECEIPT_TIMEOUT,
    USDC_TOKEN,
    ZERO_TX_HASH,
)
from .errors import InsufficientFundsError, ReceiptTimeoutError, TransactionRevertedError
from .http_retry import with_retry
from .units import format_units
from .wallet import WalletHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MintOutcome:
    tx_hash: str
    receipt: Mapping[str, Any] = field(default_factory=dict)
    pod_id: Optional[int] = None
    dry_run: bool = False


def read_concurrently(*calls: Callable[[], Any]) -> List[Any]:
    """Run independent read-only calls together and return results in order."""

    async def _gather() -> List[Any]:
        return list(await asyncio.gather(*(asyncio.to_thread(call) for call in calls)))

    return asyncio.run(_gather())


class ChainGateway:
    def __init__(
        self,
        wallet: WalletHandle,
        *,
        max_attempts: int = MAX_RETRIES,
        base_delay: float = RETRY_BASE_DELAY,
        receipt_timeout: float = TX_RECEIPT_TIMEOUT,
        progress: Optional[Callable[[str], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.wallet = wallet
        self.web3 = wallet.web3
        self.max_attempts = int(max_attempts)
        self.base_delay = float(base_delay)
        self.receipt_timeout = float(receipt_timeout)
        self.progress = progress or logger.info
        self.sleep = sleep

        self.pod = self.contract(POD_CONTRACT, POD_ABI)
        self.reppo = self.contract(REPPO_TOKEN, ERC20_ABI)
        self.usdc = self.contract(USDC_TOKEN, ERC20_ABI)

    @property
    def address(self) -> str:
        return self.wallet.address

    def contract(self, address: str, abi: list):
        return self.web3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    def retry(self, fn: Callable[[], Any], label: str) -> Any:
        return with_retry(
            fn,
            label,
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            sleep=self.sleep,
        )

    # Reads

    def get_publishing_fee(self) -> int:
        return int(self.retry(lambda: self.pod.functions.publishingFee().call(), "getPublishingFee"))

    def get_token_balance(self, address: str) -> int:
        return self.balance_of(self.reppo, address, "getReppoBalance")

    def get_usdc_balance(self, address: str) -> int:
        return self.balance_of(self.usdc, address, "getUsdcBalance")

    def get_eth_balance(self, address: str) -> int:
        checksum = Web3.to_checksum_address(address)
        return int(self.retry(lambda: self.web3.eth.get_balance(checksum), "getEthBalance"))

    def balance_of(self, token, address: str, label: str = "balanceOf") -> int:
        checksum = Web3.to_checksum_address(address)
        return int(self.retry(lambda: token.functions.balanceOf(checksum).call(), label))

    def get_allowance(self, token, owner: str, spender: str) -> int:
        owner_cs = Web3.to_checksum_address(owner)
        spender_cs = Web3.to_checksum_address(spender)
        return int(self.retry(lambda: token.functions.allowance(owner_cs, spender_cs).call(), "readAllowance"))

    def estimate_mint_gas(self) -> int:
        """Estimated mint cost in wei. Advisory only: any failure yields 0."""
        try:
            gas = self.pod.functions.mintPod(self.address, EMISSION_SHARE).estimate_gas({"from": self.address})
            return int(gas) * int(self.web3.eth.gas_price)
        except Exception as exc:
            logger.info("Gas estimation failed, skipping ETH check: %s", exc)
            return 0

    # Writes

    def send_transaction(self, fn_call) -> str:
        tx = fn_call.build_transaction(
            {
                "from": self.address,
                "nonce": self.web3.eth.get_transaction_count(self.address, "pending"),
                "chainId": self.wallet.chain_id,
            }
        )
        signed = self.wallet.account.sign_transaction(tx)
        tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)

    def wait_for_receipt(self, tx_hash: str, label: str) -> Mapping[str, Any]:
        try:
            receipt = self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except TimeExhausted as exc:
            raise ReceiptTimeoutError(tx_hash, self.receipt_timeout) from exc
        if int(receipt["status"]) != 1:
            raise TransactionRevertedError(label, tx_hash)
        return receipt

    def ensure_allowance(
        self,
        token,
        spender: str,
        amount: int,
        *,
        symbol: str,
        decimals: int,
        dry_run: bool = False,
    ) -> Optional[str]:
        """Approve `spender` for `amount` unless the current allowance covers it."""
        allowance = self.get_allowance(token, self.address, spender)
        if allowance >= amount:
            self.progress("Already approved")
            return None
        if dry_run:
            self.progress(f"[dry-run] Would approve {format_units(amount, decimals)} {symbol} spend")
            return None

        self.progress(f"Approving {symbol} spend...")
        approve_tx = self.send_transaction(
            token.functions.approve(Web3.to_checksum_address(spender), int(amount))
        )
        self.progress(f"  Approve tx: {approve_tx}")
        self.wait_for_receipt(approve_tx, "Approval")
        self.progress("  Approved")
        return approve_tx

    def extract_pod_id(self, receipt: Mapping[str, Any]) -> Optional[int]:
        for event in self.pod.events.Transfer().process_receipt(receipt, errors=DISCARD):
            return int(event["args"]["tokenId"])
        return None

    def mint_pod(self, *, skip_approve: bool = False, dry_run: bool = False) -> MintOutcome:
        fee = self.get_publishing_fee()
        self.progress(f"Publishing fee: {format_units(fee, REPPO_DECIMALS)} REPPO")

        if fee > 0 and not skip_approve:
            balance = self.get_token_balance(self.address)
            self.progress(f"REPPO balance: {format_units(balance, REPPO_DECIMALS)}")
            if balance < fee:
                raise InsufficientFundsError(
                    "REPPO",
                    format_units(fee, REPPO_DECIMALS),
                    format_units(balance, REPPO_DECIMALS),
                )
            self.ensure_allowance(
                self.reppo,
                POD_CONTRACT,
                fee,
                symbol="REPPO",
                decimals=REPPO_DECIMALS,
                dry_run=dry_run,
            )

        eth_balance = self.get_eth_balance(self.address)
        estimated_gas = self.estimate_mint_gas()
        if estimated_gas > 0 and eth_balance < estimated_gas:
            raise InsufficientFundsError(
                "ETH",
                format_units(estimated_gas, ETH_DECIMALS),
                format_units(eth_balance, ETH_DECIMALS),
                what="gas",
            )

        if dry_run:
            self.progress("[dry-run] Would mint pod on Base")
            if estimated_gas > 0:
                self.progress(f"[dry-run] Estimated gas cost: {format_units(estimated_gas, ETH_DECIMALS)} ETH")
            return MintOutcome(tx_hash=ZERO_TX_HASH, receipt={}, dry_run=True)

        self.progress("Minting pod on Base...")
        mint_tx = self.send_transaction(self.pod.functions.mintPod(self.address, EMISSION_SHARE))
        self.progress(f"  Mint tx: {mint_tx}")
        receipt = self.wait_for_receipt(mint_tx, "Mint")

        pod_id = self.extract_pod_id(receipt)
        suffix = f", Pod ID: {pod_id}" if pod_id is not None else ""
        self.progress(f"  Pod minted! Block: {receipt.get('blockNumber')}{suffix}")
        return MintOutcome(tx_hash=mint_tx, receipt=receipt, pod_id=pod_id)
