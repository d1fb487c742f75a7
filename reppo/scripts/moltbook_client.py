"""
Moltbook posting client.

Authenticates with a static API key (not the Privy session) and creates a
single post. Posting is not retried: a retried POST could publish twice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import requests

from .constants import DEFAULT_SUBMOLT, HTTP_TIMEOUT_SECONDS, MOLTBOOK_API, MOLTBOOK_POST_URL
from .credentials import ENV_MAP
from .errors import MissingCredentialError, RemoteCallError
from .http_retry import EndpointConfig, fetch_json

logger = logging.getLogger(__name__)

MOLTBOOK_ENDPOINT = EndpointConfig(base_url=MOLTBOOK_API)


@dataclass(frozen=True)
class MoltbookPost:
    id: str
    url: str
    raw: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "url": self.url}


class MoltbookClient:
    def __init__(
        self,
        *,
        api_key: Optional[str],
        endpoint: EndpointConfig = MOLTBOOK_ENDPOINT,
        timeout_seconds: int = HTTP_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
        progress: Optional[Callable[[str], None]] = None,
    ) -> None:
        if not api_key or not api_key.strip():
            raise MissingCredentialError("moltbook_key", ENV_MAP["moltbook_key"], None)
        self.api_key = api_key.strip()
        self.endpoint = endpoint
        self.timeout_seconds = int(timeout_seconds)
        self.session = session or requests.Session()
        self.progress = progress or logger.info

    def create_post(self, *, title: str, body: str, submolt: Optional[str] = None) -> MoltbookPost:
        target = submolt or DEFAULT_SUBMOLT
        self.progress(f"Posting to Moltbook (m/{target})...")

        payload: Dict[str, Any] = {"title": title, "body": body}
        if submolt:
            payload["submolt"] = submolt

        data = fetch_json(
            session=self.session,
            method="POST",
            url=self.endpoint.url("/posts"),
            headers=self.endpoint.headers(bearer=self.api_key),
            json=payload,
            timeout=self.timeout_seconds,
        )
        if not isinstance(data, dict):
            raise RemoteCallError(200, f"unexpected response: {data}", label="Moltbook post")

        # Some deployments nest the post under "post" or "data".
        post = data
        for key in ("post", "data"):
            if isinstance(data.get(key), dict):
                post = data[key]
                break

        post_id = str(post.get("id") or "")
        if not post_id:
            raise RemoteCallError(200, f"missing post id in response: {data}", label="Moltbook post")

        url = str(post.get("url") or data.get("url") or MOLTBOOK_POST_URL.format(id=post_id))
        self.progress(f"Posted to Moltbook: {url}")
        return MoltbookPost(id=post_id, url=url, raw=data)
