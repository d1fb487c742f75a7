import json

import pytest

from reppo.scripts.errors import MissingCredentialError, RemoteCallError
from reppo.scripts.moltbook_client import MoltbookClient


class DummyResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self.text = json.dumps(payload or {})


class DummySession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, headers=None, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "headers": headers, "json": json, "timeout": timeout})
        return self.responses.pop(0)


def _client(session):
    return MoltbookClient(api_key="mk_test", session=session, progress=lambda _: None)


def test_missing_api_key_is_rejected():
    with pytest.raises(MissingCredentialError, match="Moltbook API key not found"):
        MoltbookClient(api_key="  ")


def test_create_post_sends_bearer_and_uses_service_url():
    session = DummySession([DummyResponse(200, {"id": "p1", "url": "https://moltbook.com/m/x/p1"})])

    post = _client(session).create_post(title="Fridge rhythms", body="hum", submolt="music")

    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://moltbook.com/api/posts"
    assert call["headers"]["Authorization"] == "Bearer mk_test"
    assert call["json"] == {"title": "Fridge rhythms", "body": "hum", "submolt": "music"}
    assert post.id == "p1"
    assert post.url == "https://moltbook.com/m/x/p1"


def test_create_post_builds_url_from_nested_id():
    session = DummySession([DummyResponse(201, {"post": {"id": 42}})])

    post = _client(session).create_post(title="Title", body="body")

    assert "submolt" not in session.calls[0]["json"]
    assert post.to_dict() == {"id": "42", "url": "https://moltbook.com/post/42"}


def test_create_post_is_not_retried():
    session = DummySession([DummyResponse(503, {"error": "busy"}), DummyResponse(200, {"id": "p2"})])

    with pytest.raises(RemoteCallError) as exc:
        _client(session).create_post(title="Title", body="body")

    assert exc.value.status_code == 503
    assert len(session.calls) == 1


def test_create_post_without_id_fails():
    session = DummySession([DummyResponse(200, {"ok": True})])

    with pytest.raises(RemoteCallError, match="missing post id"):
        _client(session).create_post(title="Title", body="body")
