"""
Reppo publisher CLI.

Publishes agent content to Moltbook, mints a matching pod on Base and
registers its metadata with Reppo.

Examples:
  reppo init
  reppo publish --title "Fridge rhythms" --body "The fridge hums its one note..."
  reppo --json mint --title "Fridge rhythms" --url https://moltbook.com/post/abc --dry-run
  reppo buy --amount 100 --slippage 0.5
  python -m reppo.scripts.cli status --json
"""

from __future__ import annotations

import argparse
import os
import sys
import traceback
from dataclasses import dataclass
from functools import cached_property
from getpass import getpass
from typing import Any, Dict, List, Optional

import requests
from dotenv import find_dotenv, load_dotenv

from .auth import SessionManager, evaluate_session
from .chain import ChainGateway, read_concurrently
from .constants import (
    BASESCAN_TX_URL,
    CHAIN_ID,
    CHAIN_NAME,
    DEFAULT_SUBMOLT,
    ETH_DECIMALS,
    POD_CONTRACT,
    REPPO_DECIMALS,
    REPPO_TOKEN,
    USDC_DECIMALS,
)
from .credentials import CredentialStore
from .moltbook_client import MoltbookClient
from .output import Output
from .registry_client import RegistryClient
from .runtime_config import RuntimeConfig, load_runtime_config
from .session_store import FileSessionStore
from .swap import SwapGateway
from .units import format_units
from .validators import validate_amount, validate_body, validate_description, validate_slippage, validate_title
from .wallet import account_from_key, open_wallet


def _tx_url(tx_hash: str) -> str:
    return BASESCAN_TX_URL.format(tx_hash=tx_hash)


def _pod_id_text(pod_id: Optional[int]) -> Optional[str]:
    return str(pod_id) if pod_id is not None else None


@dataclass(frozen=True)
class PublishRequest:
    title: str
    body: str = ""
    description: Optional[str] = None
    submolt: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def from_args(cls, args: argparse.Namespace, *, require_body: bool = True) -> "PublishRequest":
        title = validate_title(args.title)
        body = validate_body(args.body) if require_body else ""
        description = getattr(args, "description", None)
        return cls(
            title=title,
            body=body,
            description=validate_description(description) if description else None,
            submolt=getattr(args, "submolt", None) or None,
            image_url=getattr(args, "image_url", None) or None,
        )

    @property
    def target_submolt(self) -> str:
        return self.submolt or DEFAULT_SUBMOLT


class CommandContext:
    """Lazily built collaborators for one command run."""

    def __init__(self, *, json_mode: bool = False, environ: Optional[Dict[str, str]] = None) -> None:
        self.out = Output(json_mode)
        self.environ = environ

    @property
    def json_mode(self) -> bool:
        return self.out.json_mode

    @cached_property
    def credentials(self) -> CredentialStore:
        return CredentialStore(environ=self.environ)

    @cached_property
    def config(self) -> RuntimeConfig:
        return load_runtime_config(self.credentials)

    @cached_property
    def http(self) -> requests.Session:
        return requests.Session()

    @cached_property
    def wallet(self):
        return open_wallet(
            self.credentials.require("private_key"),
            rpc_url=self.config.rpc_url,
            chain_id=self.config.chain_id,
            timeout_seconds=self.config.http_timeout_seconds,
        )

    @cached_property
    def chain(self) -> ChainGateway:
        return ChainGateway(
            self.wallet,
            max_attempts=self.config.max_retries,
            base_delay=self.config.retry_base_delay,
            receipt_timeout=self.config.receipt_timeout,
            progress=self.out.progress,
        )

    @cached_property
    def swap(self) -> SwapGateway:
        return SwapGateway(self.chain, progress=self.out.progress)

    @cached_property
    def sessions(self) -> SessionManager:
        # Login needs only the signer, never the RPC endpoint.
        key = self.credentials.load("private_key")
        return SessionManager(
            FileSessionStore(self.config.session_file),
            account=account_from_key(key) if key else None,
            http=self.http,
            timeout_seconds=self.config.http_timeout_seconds,
            progress=self.out.progress,
        )

    @cached_property
    def registry(self) -> RegistryClient:
        return RegistryClient(
            self.sessions,
            timeout_seconds=self.config.http_timeout_seconds,
            max_attempts=self.config.max_retries,
            base_delay=self.config.retry_base_delay,
            session=self.http,
            progress=self.out.progress,
        )

    @cached_property
    def moltbook(self) -> MoltbookClient:
        return MoltbookClient(
            api_key=self.credentials.require("moltbook_key"),
            timeout_seconds=self.config.http_timeout_seconds,
            session=self.http,
            progress=self.out.progress,
        )


def _context(args: argparse.Namespace) -> CommandContext:
    return CommandContext(json_mode=bool(getattr(args, "json", False)))


def _wallet_summary(ctx: CommandContext) -> Dict[str, Any]:
    chain = ctx.chain
    address = chain.address
    reppo_balance, eth_balance, fee = read_concurrently(
        lambda: chain.get_token_balance(address),
        lambda: chain.get_eth_balance(address),
        chain.get_publishing_fee,
    )
    return {
        "address": address,
        "reppoBalance": str(reppo_balance),
        "reppoBalanceFormatted": format_units(reppo_balance, REPPO_DECIMALS),
        "ethBalance": str(eth_balance),
        "ethBalanceFormatted": format_units(eth_balance, ETH_DECIMALS),
        "publishingFee": str(fee),
        "publishingFeeFormatted": format_units(fee, REPPO_DECIMALS),
        "canPublish": fee == 0 or reppo_balance >= fee,
    }


def cmd_login(args: argparse.Namespace) -> int:
    ctx = _context(args)
    session = ctx.sessions.login()
    session_file = str(ctx.config.session_file)
    ctx.out.result(
        {"userId": session.user_id, "sessionFile": session_file},
        [
            "",
            "Privy session active",
            f"  User: {session.user_id or 'unknown'}",
            f"  Token saved to: {session_file}",
        ],
    )
    return 0


def _prompt_secret(ctx: CommandContext, name: str, label: str, prompt_text: str) -> str:
    existing = ctx.credentials.load(name)
    if existing:
        if name == "private_key":
            ctx.out.progress(f"{label}: already configured ({account_from_key(existing).address})")
        else:
            ctx.out.progress(f"{label}: already configured")
        if input(f"Overwrite existing {label}? (y/N): ").strip().lower() != "y":
            ctx.out.progress("  Keeping existing key\n")
            return "kept"

    value = getpass(prompt_text).strip()
    if not value:
        ctx.out.progress("  Skipped\n")
        return "kept" if existing else "skipped"
    if name == "private_key":
        # Reject a malformed key before it is written to disk.
        account_from_key(value)
    ctx.credentials.save(name, value)
    ctx.out.progress("  Saved (permissions: 600)\n")
    return "saved"


def cmd_init(args: argparse.Namespace) -> int:
    ctx = _context(args)
    ctx.out.progress("Reppo Agent Publisher - Setup\n")
    ctx.out.progress(f"Config directory: {ctx.credentials.config_dir}\n")

    summary: Dict[str, Any] = {
        "configDir": str(ctx.credentials.config_dir),
        "privateKey": _prompt_secret(
            ctx, "private_key", "Private key", "Enter your Ethereum private key (Base network): "
        ),
        "moltbookKey": _prompt_secret(ctx, "moltbook_key", "Moltbook API key", "Enter your Moltbook API key: "),
    }

    if not ctx.credentials.has("private_key"):
        ctx.out.progress("Skipping auth and wallet check (no private key configured)")
    else:
        ctx.out.progress("Authenticating with Reppo...")
        try:
            session = ctx.sessions.login()
            summary["login"] = {"ok": True, "userId": session.user_id}
        except Exception as exc:
            print(f"  Auth failed: {exc}\n", file=sys.stderr)
            summary["login"] = {"ok": False, "error": str(exc)}

        try:
            wallet = _wallet_summary(ctx)
            summary["wallet"] = wallet
            ctx.out.progress(f"\nWallet: {wallet['address']}")
            ctx.out.progress(f"  ETH balance:    {wallet['ethBalanceFormatted']} ETH")
            ctx.out.progress(f"  REPPO balance:  {wallet['reppoBalanceFormatted']} REPPO")
            ctx.out.progress(f"  Publishing fee: {wallet['publishingFeeFormatted']} REPPO")
            if wallet["canPublish"]:
                ctx.out.progress("\n  Ready to publish!")
            else:
                ctx.out.progress("\n  WARNING: Insufficient REPPO for publishing")
        except Exception as exc:
            print(f"  Could not fetch wallet info: {exc}", file=sys.stderr)
            summary["wallet"] = {"error": str(exc)}

    ctx.out.progress('\nSetup complete. Run "reppo status" to verify configuration.')
    if ctx.json_mode:
        ctx.out.result(summary)
    return 0


def cmd_post(args: argparse.Namespace) -> int:
    ctx = _context(args)
    request = PublishRequest.from_args(args)

    if args.dry_run:
        ctx.out.result(
            {"dryRun": True, "submolt": request.target_submolt},
            [f"[dry-run] Would post to Moltbook (m/{request.target_submolt})"],
        )
        return 0

    post = ctx.moltbook.create_post(title=request.title, body=request.body, submolt=request.target_submolt)
    ctx.out.result(post.to_dict())
    return 0


def cmd_mint(args: argparse.Namespace) -> int:
    ctx = _context(args)
    request = PublishRequest.from_args(args, require_body=False)
    url = str(args.url or "").strip()

    if args.dry_run:
        # Read-only preflight: fee, balances, allowance and gas, no transactions.
        ctx.chain.mint_pod(skip_approve=bool(args.skip_approve), dry_run=True)
        ctx.out.result(
            {"dryRun": True, "title": request.title, "url": url},
            [
                "[dry-run] Would mint pod and submit metadata",
                f"  Title: {request.title}",
                f"  URL: {url}",
            ],
        )
        return 0

    outcome = ctx.chain.mint_pod(skip_approve=bool(args.skip_approve))
    metadata = ctx.registry.submit_metadata(
        tx_hash=outcome.tx_hash,
        title=request.title,
        url=url,
        description=request.description,
        image_url=request.image_url,
    )

    lines = ["", "Pod published!", f"  Tx: {_tx_url(outcome.tx_hash)}"]
    if outcome.pod_id is not None:
        lines.append(f"  Pod ID: {outcome.pod_id}")
    ctx.out.result(
        {
            "txHash": outcome.tx_hash,
            "podId": _pod_id_text(outcome.pod_id),
            "txUrl": _tx_url(outcome.tx_hash),
            "metadata": metadata,
        },
        lines,
    )
    return 0


def cmd_publish(args: argparse.Namespace) -> int:
    ctx = _context(args)
    request = PublishRequest.from_args(args)
    skip_approve = bool(args.skip_approve)

    if args.dry_run:
        ctx.out.result(
            {
                "dryRun": True,
                "steps": [
                    {"action": "post", "submolt": request.target_submolt},
                    {"action": "approve", "skip": skip_approve},
                    {"action": "mint"},
                    {"action": "submitMetadata"},
                ],
            },
            [
                "[dry-run] Full publish simulation:",
                f"  1. Would post to Moltbook (m/{request.target_submolt})",
                f"  2. Would approve REPPO spend{' (skipped)' if skip_approve else ''}",
                "  3. Would mint pod on Base",
                "  4. Would submit metadata to Reppo",
            ],
        )
        return 0

    post = ctx.moltbook.create_post(title=request.title, body=request.body, submolt=request.target_submolt)
    outcome = ctx.chain.mint_pod(skip_approve=skip_approve)
    metadata = ctx.registry.submit_metadata(
        tx_hash=outcome.tx_hash,
        title=request.title,
        url=post.url,
        description=request.description or request.body[:200],
        image_url=request.image_url,
    )

    lines = ["", "Publish complete!", f"  Moltbook: {post.url}", f"  Tx: {_tx_url(outcome.tx_hash)}"]
    if outcome.pod_id is not None:
        lines.append(f"  Pod ID: {outcome.pod_id}")
    ctx.out.result(
        {
            "moltbook": post.to_dict(),
            "txHash": outcome.tx_hash,
            "podId": _pod_id_text(outcome.pod_id),
            "txUrl": _tx_url(outcome.tx_hash),
            "metadata": metadata,
        },
        lines,
    )
    return 0


def cmd_buy(args: argparse.Namespace) -> int:
    ctx = _context(args)
    amount = validate_amount(args.amount, REPPO_DECIMALS)
    slippage = validate_slippage(args.slippage)

    outcome = ctx.swap.buy(amount=amount, slippage=slippage, dry_run=bool(args.dry_run))

    if args.dry_run or outcome is None:
        ctx.out.result(
            {"dryRun": True, "amountReppo": format_units(amount, REPPO_DECIMALS), "slippage": slippage}
        )
        return 0

    ctx.out.result(
        {
            "txHash": outcome.tx_hash,
            "amountIn": format_units(outcome.amount_in, USDC_DECIMALS),
            "amountOut": format_units(outcome.amount_out, REPPO_DECIMALS),
            "txUrl": _tx_url(outcome.tx_hash),
        },
        [
            "",
            "Swap complete!",
            f"  USDC spent: {format_units(outcome.amount_in, USDC_DECIMALS)}",
            f"  REPPO received: {format_units(outcome.amount_out, REPPO_DECIMALS)}",
            f"  Tx: {_tx_url(outcome.tx_hash)}",
        ],
    )
    return 0


def cmd_balance(args: argparse.Namespace) -> int:
    ctx = _context(args)
    chain = ctx.chain
    address = chain.address
    eth_balance, reppo_balance, usdc_balance = read_concurrently(
        lambda: chain.get_eth_balance(address),
        lambda: chain.get_token_balance(address),
        lambda: chain.get_usdc_balance(address),
    )

    def _entry(raw: int, decimals: int) -> Dict[str, str]:
        return {"raw": str(raw), "formatted": format_units(raw, decimals)}

    ctx.out.result(
        {
            "address": address,
            "eth": _entry(eth_balance, ETH_DECIMALS),
            "reppo": _entry(reppo_balance, REPPO_DECIMALS),
            "usdc": _entry(usdc_balance, USDC_DECIMALS),
        },
        [
            f"Wallet: {address}",
            f"  ETH:   {format_units(eth_balance, ETH_DECIMALS)}",
            f"  REPPO: {format_units(reppo_balance, REPPO_DECIMALS)}",
            f"  USDC:  {format_units(usdc_balance, USDC_DECIMALS)}",
        ],
    )
    return 0


def cmd_fee(args: argparse.Namespace) -> int:
    ctx = _context(args)
    fee = ctx.chain.get_publishing_fee()
    lines = [f"Publishing fee: {format_units(fee, REPPO_DECIMALS)} REPPO"]
    if fee == 0:
        lines.append("No fee required!")
    ctx.out.result(
        {
            "fee": str(fee),
            "feeFormatted": format_units(fee, REPPO_DECIMALS),
            "decimals": REPPO_DECIMALS,
            "symbol": "REPPO",
        },
        lines,
    )
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    ctx = _context(args)
    creds = ctx.credentials
    has_key = creds.has("private_key")
    has_moltbook = creds.has("moltbook_key")
    # Read-only: no signer needed to classify the stored session.
    session = evaluate_session(FileSessionStore(ctx.config.session_file).load())
    session_state = "none" if session is None else ("expired" if session.expired else "active")

    result: Dict[str, Any] = {
        "auth": {
            "privateKey": has_key,
            "moltbookKey": has_moltbook,
            "privySession": session_state,
            "privyUserId": session.user_id if session else None,
        },
        "config": {
            "chainId": CHAIN_ID,
            "podContract": POD_CONTRACT,
            "reppoToken": REPPO_TOKEN,
            "configDir": str(creds.config_dir),
        },
    }

    lines: List[str] = [
        "Auth Status:",
        f"  Private key:      {'configured' if has_key else 'missing'}",
        f"  Moltbook API key: {'configured' if has_moltbook else 'missing'}",
    ]
    if session_state == "active":
        lines.append(f"  Privy session:    active (user: {session.user_id or 'unknown'})")
    elif session_state == "expired":
        lines.append("  Privy session:    expired (will auto-refresh on next request)")
    else:
        lines.append("  Privy session:    not logged in (run: reppo login)")

    if has_key:
        try:
            wallet = _wallet_summary(ctx)
        except Exception as exc:
            result["wallet"] = {"error": str(exc)}
            lines.append(f"  Could not fetch on-chain data: {exc}")
        else:
            result["wallet"] = wallet
            lines.extend(
                [
                    "",
                    f"Wallet: {wallet['address']}",
                    f"  ETH balance:    {wallet['ethBalanceFormatted']} ETH",
                    f"  REPPO balance:  {wallet['reppoBalanceFormatted']}",
                    f"  Publishing fee: {wallet['publishingFeeFormatted']} REPPO",
                    "  Ready to publish" if wallet["canPublish"] else "  WARNING: Insufficient REPPO for publishing!",
                ]
            )

    lines.extend(
        [
            "",
            "Config:",
            f"  Chain:        {CHAIN_NAME} ({CHAIN_ID})",
            f"  Pod contract: {POD_CONTRACT}",
            f"  REPPO token:  {REPPO_TOKEN}",
            f"  Config dir:   {creds.config_dir}",
        ]
    )
    ctx.out.result(result, lines)
    return 0


def build_parser() -> argparse.ArgumentParser:
    # Shared so --json is accepted before or after the subcommand.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--json",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Output results as a single JSON object",
    )

    p = argparse.ArgumentParser(
        prog="reppo",
        description="Publish AI agent training intentions to Reppo.ai",
        parents=[common],
    )
    p.add_argument("--version", action="version", version="%(prog)s 0.1.0")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_login = sub.add_parser("login", parents=[common], help="Authenticate with Reppo via Privy (SIWE wallet login)")
    p_login.set_defaults(func=cmd_login)

    p_init = sub.add_parser("init", parents=[common], help="Interactive setup wizard for credentials and config")
    p_init.set_defaults(func=cmd_init)

    p_post = sub.add_parser("post", parents=[common], help="Post content to Moltbook")
    p_post.add_argument("--title", required=True, help="Content title (3-50 chars)")
    p_post.add_argument("--body", required=True, help="Content body (markdown)")
    p_post.add_argument("--submolt", default=None, help=f"Target submolt (default: {DEFAULT_SUBMOLT})")
    p_post.add_argument("--dry-run", action="store_true", help="Simulate without making changes")
    p_post.set_defaults(func=cmd_post)

    p_mint = sub.add_parser("mint", parents=[common], help="Mint pod on-chain and submit metadata to Reppo")
    p_mint.add_argument("--title", required=True, help="Content title (3-50 chars)")
    p_mint.add_argument("--url", required=True, help="Content URL (e.g. Moltbook post URL)")
    p_mint.add_argument("--description", default=None, help="Short description (10-200 chars)")
    p_mint.add_argument("--image-url", default=None, help="Image URL for the pod")
    p_mint.add_argument("--skip-approve", action="store_true", help="Skip ERC20 approval step")
    p_mint.add_argument(
        "--dry-run",
        action="store_true",
        help="Check fee, balances and gas without sending transactions (requires a configured wallet and RPC access)",
    )
    p_mint.set_defaults(func=cmd_mint)

    p_pub = sub.add_parser(
        "publish",
        parents=[common],
        help="Full flow: post to Moltbook + mint pod + submit metadata",
    )
    p_pub.add_argument("--title", required=True, help="Content title (3-50 chars)")
    p_pub.add_argument("--body", required=True, help="Content body (markdown)")
    p_pub.add_argument("--description", default=None, help="Short description (10-200 chars)")
    p_pub.add_argument("--submolt", default=None, help=f"Target submolt (default: {DEFAULT_SUBMOLT})")
    p_pub.add_argument("--image-url", default=None, help="Image URL for the pod")
    p_pub.add_argument("--skip-approve", action="store_true", help="Skip ERC20 approval step")
    p_pub.add_argument("--dry-run", action="store_true", help="Simulate without making changes")
    p_pub.set_defaults(func=cmd_publish)

    p_buy = sub.add_parser("buy", parents=[common], help="Buy REPPO tokens with USDC via Uniswap")
    p_buy.add_argument("--amount", required=True, help="Amount of REPPO to buy")
    p_buy.add_argument("--slippage", default="1", help="Slippage tolerance in percent (default: 1)")
    p_buy.add_argument("--dry-run", action="store_true", help="Quote and check balances without swapping")
    p_buy.set_defaults(func=cmd_buy)

    p_balance = sub.add_parser("balance", parents=[common], help="Show wallet balances (ETH, REPPO, USDC)")
    p_balance.set_defaults(func=cmd_balance)

    p_fee = sub.add_parser("fee", parents=[common], help="Check current publishing fee")
    p_fee.set_defaults(func=cmd_fee)

    p_status = sub.add_parser("status", parents=[common], help="Show auth, wallet balance, and config")
    p_status.set_defaults(func=cmd_status)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    env_path = find_dotenv(usecwd=True)
    if env_path:
        load_dotenv(env_path)
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args))
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        if os.environ.get("DEBUG"):
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
