"""
Sign-In with Ethereum session management against the Privy auth provider.

Flow:
- Reuse the stored session while its JWT is more than 60s from expiry.
- Otherwise refresh it with the stored refresh token.
- If there is no session, or the refresh fails, run the full SIWE login:
  nonce -> signed message -> authenticate.

Every successful login or refresh overwrites the stored session.
"""

from __future__ import annotations

import base64
import json
import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import requests
from eth_account.messages import encode_defunct

from .constants import (
    PRIVY_API,
    PRIVY_APP_ID,
    PRIVY_CLIENT,
    SESSION_EXPIRY_MARGIN_SECONDS,
    SIWE_CHAIN_ID,
    SIWE_DOMAIN,
    SIWE_STATEMENT,
    SIWE_URI,
    SIWE_VERSION,
)
from .credentials import ENV_MAP
from .errors import MissingCredentialError, RemoteCallError
from .http_retry import EndpointConfig, fetch_json

logger = logging.getLogger(__name__)

PRIVY_ENDPOINT = EndpointConfig(
    base_url=PRIVY_API,
    fixed_headers={"privy-app-id": PRIVY_APP_ID, "privy-client": PRIVY_CLIENT},
)


@dataclass(frozen=True)
class AuthSession:
    token: str
    privy_access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    user_id: Optional[str] = None
    expired: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthSession":
        return cls(
            token=str(data.get("token") or ""),
            privy_access_token=data.get("privyAccessToken") or None,
            refresh_token=data.get("refreshToken") or None,
            user_id=data.get("userId") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"token": self.token}
        if self.privy_access_token:
            out["privyAccessToken"] = self.privy_access_token
        if self.refresh_token:
            out["refreshToken"] = self.refresh_token
        if self.user_id:
            out["userId"] = self.user_id
        return out


def token_expiry(token: str) -> Optional[float]:
    """Return the `exp` claim of a JWT, or None if the token is malformed."""
    parts = str(token or "").split(".")
    if len(parts) != 3:
        return None
    segment = parts[1]
    try:
        payload = json.loads(base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4)))
    except (ValueError, TypeError):
        return None
    exp = payload.get("exp") if isinstance(payload, dict) else None
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    return float(exp)


def evaluate_session(data: Optional[Dict[str, Any]], now: Optional[float] = None) -> Optional[AuthSession]:
    """
    Classify stored session data.

    Returns the session unchanged if usable, the session flagged `expired`
    if it can still be refreshed, or None if it should be discarded.
    """
    if not isinstance(data, dict):
        return None
    session = AuthSession.from_dict(data)
    current = time.time() if now is None else now

    exp = token_expiry(session.token)
    if exp is not None and exp > current + SESSION_EXPIRY_MARGIN_SECONDS:
        return session
    if session.refresh_token:
        return replace(session, expired=True)
    return None


def build_siwe_message(
    *,
    address: str,
    nonce: str,
    chain_id: int = SIWE_CHAIN_ID,
    issued_at: Optional[datetime] = None,
) -> str:
    stamp = (issued_at or datetime.now(timezone.utc)).astimezone(timezone.utc)
    issued = stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return "\n".join(
        [
            f"{SIWE_DOMAIN} wants you to sign in with your Ethereum account:",
            address,
            "",
            SIWE_STATEMENT,
            "",
            f"URI: {SIWE_URI}",
            f"Version: {SIWE_VERSION}",
            f"Chain ID: {chain_id}",
            f"Nonce: {nonce}",
            f"Issued At: {issued}",
        ]
    )


class SessionManager:
    def __init__(
        self,
        store,
        *,
        account=None,
        endpoint: EndpointConfig = PRIVY_ENDPOINT,
        http: Optional[requests.Session] = None,
        timeout_seconds: int = 30,
        progress: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.account = account
        self.endpoint = endpoint
        self.http = http or requests.Session()
        self.timeout_seconds = int(timeout_seconds)
        self.progress = progress or logger.info
        self.clock = clock

    def load_session(self) -> Optional[AuthSession]:
        return evaluate_session(self.store.load(), now=self.clock())

    def state(self) -> str:
        session = self.load_session()
        if session is None:
            return "none"
        return "expired" if session.expired else "active"

    def login(self) -> AuthSession:
        session = self.load_session()
        if session is not None and not session.expired:
            return session

        if session is not None and session.refresh_token:
            refreshed = self.refresh(session)
            if refreshed is not None:
                return refreshed

        return self.siwe_login()

    def refresh(self, session: AuthSession) -> Optional[AuthSession]:
        self.progress("Refreshing Privy session...")
        try:
            data = fetch_json(
                session=self.http,
                method="POST",
                url=self.endpoint.url("/api/v1/sessions"),
                headers=self.endpoint.headers(bearer=session.token),
                json={"refresh_token": session.refresh_token},
                timeout=self.timeout_seconds,
            )
        except (RemoteCallError, requests.RequestException) as exc:
            logger.warning("Session refresh failed: %s", exc)
            return None
        if not isinstance(data, dict):
            logger.warning("Session refresh returned an unexpected body")
            return None

        refreshed = AuthSession(
            token=str(data.get("token") or session.token),
            privy_access_token=data.get("privy_access_token") or session.privy_access_token,
            refresh_token=data.get("refresh_token") or session.refresh_token,
            user_id=session.user_id,
        )
        self.store.save(refreshed.to_dict())
        self.progress("Session refreshed")
        return refreshed

    def siwe_login(self) -> AuthSession:
        if self.account is None:
            raise MissingCredentialError("private_key", ENV_MAP["private_key"], None)

        address = self.account.address
        self.progress(f"Logging into Reppo via Privy (wallet: {address})...")

        init = fetch_json(
            session=self.http,
            method="POST",
            url=self.endpoint.url("/api/v1/siwe/init"),
            headers=self.endpoint.headers(),
            json={"address": address},
            timeout=self.timeout_seconds,
            label="SIWE init",
        )
        nonce = str(init.get("nonce") or "") if isinstance(init, dict) else ""
        if not nonce:
            raise RemoteCallError(200, f"missing nonce in response: {init}", label="SIWE init")

        message = build_siwe_message(address=address, nonce=nonce)
        signed = self.account.sign_message(encode_defunct(text=message))
        signature = "0x" + bytes(signed.signature).hex()

        auth = fetch_json(
            session=self.http,
            method="POST",
            url=self.endpoint.url("/api/v1/siwe/authenticate"),
            headers=self.endpoint.headers(),
            json={
                "message": message,
                "signature": signature,
                "chainId": f"eip155:{SIWE_CHAIN_ID}",
                "walletClientType": "unknown",
                "connectorType": "injected",
                "mode": "login-or-sign-up",
            },
            timeout=self.timeout_seconds,
            label="SIWE authenticate",
        )
        if not isinstance(auth, dict) or not auth.get("token"):
            raise RemoteCallError(200, f"missing token in response: {auth}", label="SIWE authenticate")

        user = auth.get("user") if isinstance(auth.get("user"), dict) else {}
        session = AuthSession(
            token=str(auth["token"]),
            privy_access_token=auth.get("privy_access_token") or None,
            refresh_token=auth.get("refresh_token") or None,
            user_id=user.get("id") or None,
        )
        self.store.save(session.to_dict())
        self.progress(f"Logged in as {session.user_id or 'unknown'}")
        return session

    def auth_headers(self) -> Dict[str, str]:
        session = self.login()
        return {"Authorization": f"Bearer {session.token}"}
