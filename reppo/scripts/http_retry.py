"""
HTTP and retry helpers shared by the Reppo gateways.

Goals:
- One JSON request helper that turns non-2xx responses into RemoteCallError.
- Bounded exponential-backoff retry for reads and idempotent submissions.
- Mutating calls (posts, transactions) are never wrapped in a retry.
"""

from __future__ import annotations

import json as jsonlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

import requests

from .constants import HTTP_TIMEOUT_SECONDS, MAX_RETRIES, RETRY_BASE_DELAY
from .errors import RemoteCallError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRY_STATUSES = (429, 500, 502, 503, 504)


@dataclass(frozen=True)
class EndpointConfig:
    """Base URL plus the fixed headers a service expects on every request."""

    base_url: str
    fixed_headers: Mapping[str, str] = field(default_factory=dict)

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def headers(self, bearer: Optional[str] = None) -> Dict[str, str]:
        out = {"Content-Type": "application/json"}
        out.update(self.fixed_headers)
        if bearer:
            out["Authorization"] = f"Bearer {bearer}"
        return out


def fetch_json(
    *,
    session: requests.Session,
    method: str,
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    json: Optional[Any] = None,
    timeout: int = HTTP_TIMEOUT_SECONDS,
    label: Optional[str] = None,
) -> Any:
    """
    Send one request and return the decoded body.

    Non-JSON bodies are returned as text. Non-2xx responses raise
    RemoteCallError carrying the status and body.
    """
    merged = {"Content-Type": "application/json"}
    merged.update(headers or {})
    resp = session.request(
        method=method.upper().strip(),
        url=url,
        headers=merged,
        json=json,
        timeout=timeout,
    )
    text = resp.text or ""
    try:
        data: Any = jsonlib.loads(text)
    except ValueError:
        data = text

    if not (200 <= resp.status_code < 300):
        body = data if isinstance(data, str) else jsonlib.dumps(data, separators=(",", ":"))
        raise RemoteCallError(resp.status_code, body, label=label)
    return data


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, RemoteCallError):
        return exc.status_code in DEFAULT_RETRY_STATUSES
    return isinstance(exc, requests.RequestException)


def with_retry(
    fn: Callable[[], T],
    label: str,
    *,
    max_attempts: int = MAX_RETRIES,
    base_delay: float = RETRY_BASE_DELAY,
    retry_on: Optional[Callable[[BaseException], bool]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call `fn` up to `max_attempts` times, sleeping base, base*2, ... between tries.

    `retry_on` can narrow which exceptions are retried; anything it rejects is
    raised immediately. After the last attempt the last error is re-raised.
    """
    attempts = max(1, int(max_attempts))
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except Exception as exc:
            if retry_on is not None and not retry_on(exc):
                raise
            if attempt >= attempts:
                raise
            delay = float(base_delay) * (2 ** (attempt - 1))
            logger.warning("Retry %s/%s for %s (waiting %.1fs): %s", attempt, attempts, label, delay, exc)
            sleep(delay)

    # Loop always returns or raises.
    raise RuntimeError("with_retry failed unexpectedly")
