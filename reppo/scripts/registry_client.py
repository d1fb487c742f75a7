"""
Reppo metadata registry client.

Links a minted pod (by transaction hash) to its content URL. Requests are
authorised with the Privy session bearer token.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

import requests

from .auth import SessionManager
from .constants import HTTP_TIMEOUT_SECONDS, MAX_RETRIES, REPPO_API, RETRY_BASE_DELAY
from .http_retry import EndpointConfig, fetch_json, is_transient, with_retry

logger = logging.getLogger(__name__)

REPPO_ENDPOINT = EndpointConfig(base_url=REPPO_API)


def build_pod_payload(
    *,
    tx_hash: str,
    title: str,
    url: str,
    description: Optional[str] = None,
    image_url: Optional[str] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "txHash": tx_hash,
        "verifyTx": tx_hash,
        "podName": title,
        "podDescription": description or title,
        "url": url,
        "subnet": "AGENTS",
        "platform": "moltbook",
        "category": "AGENTS",
    }
    if image_url:
        payload["imageURL"] = image_url
    return payload


class RegistryClient:
    def __init__(
        self,
        sessions: SessionManager,
        *,
        endpoint: EndpointConfig = REPPO_ENDPOINT,
        timeout_seconds: int = HTTP_TIMEOUT_SECONDS,
        max_attempts: int = MAX_RETRIES,
        base_delay: float = RETRY_BASE_DELAY,
        session: Optional[requests.Session] = None,
        progress: Optional[Callable[[str], None]] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.sessions = sessions
        self.endpoint = endpoint
        self.timeout_seconds = int(timeout_seconds)
        self.max_attempts = int(max_attempts)
        self.base_delay = float(base_delay)
        self.session = session or requests.Session()
        self.progress = progress or logger.info
        self.sleep = sleep

    def submit_metadata(
        self,
        *,
        tx_hash: str,
        title: str,
        url: str,
        description: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> Any:
        auth_headers = self.sessions.auth_headers()
        headers = self.endpoint.headers()
        headers.update(auth_headers)
        payload = build_pod_payload(
            tx_hash=tx_hash,
            title=title,
            url=url,
            description=description,
            image_url=image_url,
        )

        self.progress("Submitting metadata to Reppo...")
        retry_kwargs = {"sleep": self.sleep} if self.sleep is not None else {}
        data = with_retry(
            lambda: fetch_json(
                session=self.session,
                method="POST",
                url=self.endpoint.url("/pods"),
                headers=headers,
                json=payload,
                timeout=self.timeout_seconds,
            ),
            "submitMetadata",
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            retry_on=is_transient,
            **retry_kwargs,
        )
        self.progress("Metadata submitted")
        return data
