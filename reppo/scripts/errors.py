"""
Exception types raised by the Reppo publisher.

Everything derives from ReppoError so the CLI can report any of them as a
single line and exit non-zero.
"""

from __future__ import annotations

from typing import Optional


class ReppoError(Exception):
    pass


class ValidationError(ReppoError, ValueError):
    """Bad user input. Raised before any network call."""


class MissingCredentialError(ReppoError):
    def __init__(self, name: str, env_var: Optional[str], path: Optional[str]) -> None:
        self.name = name
        self.env_var = env_var
        self.path = path
        hints = []
        if env_var:
            hints.append(f"set {env_var}")
        if path:
            hints.append(f"create {path}")
        msg = f"{_LABELS.get(name, name)} not found."
        if hints:
            hint = " or ".join(hints)
            msg = f"{msg} {hint[0].upper()}{hint[1:]}"
        super().__init__(msg)


class InsufficientFundsError(ReppoError):
    def __init__(self, asset: str, needed: str, available: str, *, what: str = "balance") -> None:
        self.asset = asset
        self.needed = needed
        self.available = available
        if what == "gas":
            msg = f"Insufficient {asset} for gas. Estimated cost: {needed} {asset}, balance: {available} {asset}"
        else:
            msg = f"Insufficient {asset} balance. Need {needed}, have {available}"
        super().__init__(msg)


class RemoteCallError(ReppoError):
    def __init__(self, status_code: int, body: str, *, label: Optional[str] = None) -> None:
        self.status_code = int(status_code)
        self.body = body
        prefix = f"{label} failed " if label else ""
        if prefix:
            super().__init__(f"{prefix}({self.status_code}): {body}")
        else:
            super().__init__(f"HTTP {self.status_code}: {body}")


class TransactionRevertedError(ReppoError):
    def __init__(self, label: str, tx_hash: str) -> None:
        self.label = label
        self.tx_hash = tx_hash
        super().__init__(f"{label} transaction reverted: {tx_hash}")


class ReceiptTimeoutError(ReppoError):
    def __init__(self, tx_hash: str, timeout: float) -> None:
        self.tx_hash = tx_hash
        self.timeout = timeout
        super().__init__(
            f"Timed out after {timeout:g}s waiting for receipt of {tx_hash}. "
            "The transaction may still confirm; check the explorer before retrying."
        )


_LABELS = {
    "private_key": "Private key",
    "moltbook_key": "Moltbook API key",
    "api_key": "Reppo API key",
}
