"""
Buy REPPO with USDC through the Uniswap V3 router on Base.

Flow:
- quote the USDC cost of an exact REPPO output (QuoterV2, simulated call)
- add the slippage allowance in basis points
- check the USDC balance
- approve the router if needed, then swap with exactOutputSingle
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

from web3 import Web3

from .chain import ChainGateway
from .constants import (
    QUOTER_ABI,
    REPPO_DECIMALS,
    REPPO_TOKEN,
    SWAP_ROUTER_ABI,
    UNISWAP_POOL_FEE,
    UNISWAP_QUOTER,
    UNISWAP_ROUTER,
    USDC_DECIMALS,
    USDC_TOKEN,
)
from .errors import InsufficientFundsError
from .units import format_units

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwapOutcome:
    tx_hash: str
    # Slippage ceiling passed to the router, not the amount actually debited.
    amount_in: int
    amount_out: int


def max_amount_in(quoted_amount_in: int, slippage: float) -> int:
    basis_points = int(math.floor(float(slippage) * 100 + 0.5))
    return int(quoted_amount_in) + (int(quoted_amount_in) * basis_points) // 10000


class SwapGateway:
    def __init__(self, chain: ChainGateway, *, progress: Optional[Callable[[str], None]] = None) -> None:
        self.chain = chain
        self.progress = progress or chain.progress
        self.quoter = chain.contract(UNISWAP_QUOTER, QUOTER_ABI)
        self.router = chain.contract(UNISWAP_ROUTER, SWAP_ROUTER_ABI)

    def quote_price(self, amount_out: int) -> int:
        params = {
            "tokenIn": Web3.to_checksum_address(USDC_TOKEN),
            "tokenOut": Web3.to_checksum_address(REPPO_TOKEN),
            "amount": int(amount_out),
            "fee": UNISWAP_POOL_FEE,
            "sqrtPriceLimitX96": 0,
        }
        result = self.chain.retry(
            lambda: self.quoter.functions.quoteExactOutputSingle(params).call(),
            "quoteExactOutputSingle",
        )
        return int(result[0])

    def buy(self, *, amount: int, slippage: float = 1.0, dry_run: bool = False) -> Optional[SwapOutcome]:
        chain = self.chain
        address = chain.address

        self.progress(f"Quoting {format_units(amount, REPPO_DECIMALS)} REPPO...")
        quoted = self.quote_price(amount)
        maximum = max_amount_in(quoted, slippage)
        self.progress(f"  Estimated cost: {format_units(quoted, USDC_DECIMALS)} USDC")
        self.progress(f"  Max cost ({slippage:g}% slippage): {format_units(maximum, USDC_DECIMALS)} USDC")

        usdc_balance = chain.get_usdc_balance(address)
        self.progress(f"  USDC balance: {format_units(usdc_balance, USDC_DECIMALS)}")
        if usdc_balance < maximum:
            raise InsufficientFundsError(
                "USDC",
                format_units(maximum, USDC_DECIMALS),
                format_units(usdc_balance, USDC_DECIMALS),
            )

        if dry_run:
            self.progress(
                f"[dry-run] Would swap up to {format_units(maximum, USDC_DECIMALS)} USDC "
                f"for {format_units(amount, REPPO_DECIMALS)} REPPO"
            )
            return None

        chain.ensure_allowance(chain.usdc, UNISWAP_ROUTER, maximum, symbol="USDC", decimals=USDC_DECIMALS)

        self.progress("Swapping USDC for REPPO...")
        swap_tx = chain.send_transaction(
            self.router.functions.exactOutputSingle(
                {
                    "tokenIn": Web3.to_checksum_address(USDC_TOKEN),
                    "tokenOut": Web3.to_checksum_address(REPPO_TOKEN),
                    "fee": UNISWAP_POOL_FEE,
                    "recipient": address,
                    "amountOut": int(amount),
                    "amountInMaximum": maximum,
                    "sqrtPriceLimitX96": 0,
                }
            )
        )
        self.progress(f"  Swap tx: {swap_tx}")
        receipt = chain.wait_for_receipt(swap_tx, "Swap")
        self.progress(f"  Swap complete! Block: {receipt.get('blockNumber')}")

        return SwapOutcome(tx_hash=swap_tx, amount_in=maximum, amount_out=int(amount))
