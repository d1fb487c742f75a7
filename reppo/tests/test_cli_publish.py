import json

from reppo.scripts.cli import build_parser, main
from reppo.scripts.moltbook_client import MoltbookPost

TEST_KEY = "0x" + "11" * 32
BODY = "The fridge hums its one note, the faucet drips in 3/4 time."


class FakeMoltbook:
    posts = []

    def __init__(self, api_key, **kwargs):
        self.api_key = api_key

    def create_post(self, *, title, body, submolt=None):
        FakeMoltbook.posts.append({"title": title, "body": body, "submolt": submolt})
        return MoltbookPost(id="post-123", url="https://moltbook.com/post/post-123")


class FakeRegistry:
    submissions = []

    def __init__(self, sessions, **kwargs):
        self.sessions = sessions

    def submit_metadata(self, **kwargs):
        FakeRegistry.submissions.append(kwargs)
        return {"success": True}


def _no_wallet(*args, **kwargs):
    raise AssertionError("wallet must not be opened")


def _use_fakes(monkeypatch, wallet=None):
    FakeMoltbook.posts = []
    FakeRegistry.submissions = []
    monkeypatch.setattr("reppo.scripts.cli.MoltbookClient", FakeMoltbook)
    monkeypatch.setattr("reppo.scripts.cli.RegistryClient", FakeRegistry)
    if wallet is None:
        monkeypatch.setattr("reppo.scripts.cli.open_wallet", _no_wallet)
    else:
        monkeypatch.setattr("reppo.scripts.cli.open_wallet", lambda *a, **k: wallet)


def test_json_flag_accepted_before_or_after_subcommand():
    parser = build_parser()
    assert parser.parse_args(["--json", "fee"]).json is True
    assert parser.parse_args(["fee", "--json"]).json is True
    assert getattr(parser.parse_args(["fee"]), "json", False) is False


def test_publish_dry_run_json_emits_plan_without_calls(monkeypatch, capsys):
    _use_fakes(monkeypatch)

    rc = main(["--json", "publish", "--title", "Fridge rhythms", "--body", BODY, "--dry-run"])

    assert rc == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["dryRun"] is True
    assert [step["action"] for step in payload["steps"]] == ["post", "approve", "mint", "submitMetadata"]
    assert payload["steps"][0]["submolt"] == "datatrading"
    assert payload["steps"][1]["skip"] is False
    assert FakeMoltbook.posts == []
    assert FakeRegistry.submissions == []


def test_publish_dry_run_human_uses_given_submolt(monkeypatch, capsys):
    _use_fakes(monkeypatch)

    rc = main(["publish", "--title", "Fridge rhythms", "--body", BODY, "--submolt", "music", "--skip-approve", "--dry-run"])

    assert rc == 0
    out = capsys.readouterr().out
    assert "1. Would post to Moltbook (m/music)" in out
    assert "2. Would approve REPPO spend (skipped)" in out


def test_publish_rejects_short_title_before_any_call(monkeypatch, capsys):
    _use_fakes(monkeypatch)

    rc = main(["publish", "--title", "ab", "--body", BODY])

    assert rc == 1
    assert capsys.readouterr().err.strip() == "Error: Title must be at least 3 characters"
    assert FakeMoltbook.posts == []


def test_publish_rejects_blank_body(monkeypatch, capsys):
    _use_fakes(monkeypatch)

    rc = main(["publish", "--title", "Fridge rhythms", "--body", "   "])

    assert rc == 1
    assert "Body cannot be empty" in capsys.readouterr().err


def test_publish_full_flow_json(monkeypatch, capsys, wallet, fake_web3):
    monkeypatch.setenv("REPPO_PRIVATE_KEY", TEST_KEY)
    monkeypatch.setenv("MOLTBOOK_API_KEY", "mk_test")
    _use_fakes(monkeypatch, wallet)
    fake_web3.eth.receipts["mintPod"] = {
        "status": 1,
        "blockNumber": 5,
        "transfer_events": [{"args": {"tokenId": 9}}],
    }

    rc = main(["publish", "--title", "Fridge rhythms", "--body", BODY, "--json"])

    assert rc == 0
    payload = json.loads(capsys.readouterr().out)
    tx_hash = "0x" + "02" * 32
    assert payload == {
        "moltbook": {"id": "post-123", "url": "https://moltbook.com/post/post-123"},
        "txHash": tx_hash,
        "podId": "9",
        "txUrl": f"https://basescan.org/tx/{tx_hash}",
        "metadata": {"success": True},
    }
    assert FakeMoltbook.posts == [{"title": "Fridge rhythms", "body": BODY, "submolt": "datatrading"}]
    assert fake_web3.eth.sent_functions() == ["approve", "mintPod"]
    submission = FakeRegistry.submissions[0]
    assert submission["tx_hash"] == tx_hash
    assert submission["url"] == "https://moltbook.com/post/post-123"
    assert submission["description"] == BODY[:200]


def test_post_dry_run_human(monkeypatch, capsys):
    _use_fakes(monkeypatch)

    rc = main(["post", "--title", "Fridge rhythms", "--body", BODY, "--dry-run"])

    assert rc == 0
    assert capsys.readouterr().out.strip() == "[dry-run] Would post to Moltbook (m/datatrading)"


def test_post_requires_moltbook_key(monkeypatch, capsys):
    monkeypatch.setattr("reppo.scripts.cli.open_wallet", _no_wallet)

    rc = main(["post", "--title", "Fridge rhythms", "--body", BODY])

    assert rc == 1
    err = capsys.readouterr().err
    assert "Moltbook API key not found" in err
    assert "MOLTBOOK_API_KEY" in err


def test_post_json_reports_id_and_url(monkeypatch, capsys):
    monkeypatch.setenv("MOLTBOOK_API_KEY", "mk_test")
    _use_fakes(monkeypatch)

    rc = main(["--json", "post", "--title", "Fridge rhythms", "--body", BODY, "--submolt", "music"])

    assert rc == 0
    assert json.loads(capsys.readouterr().out) == {"id": "post-123", "url": "https://moltbook.com/post/post-123"}
    assert FakeMoltbook.posts[0]["submolt"] == "music"


def test_mint_dry_run_is_read_only(monkeypatch, capsys, wallet, fake_web3):
    monkeypatch.setenv("REPPO_PRIVATE_KEY", TEST_KEY)
    _use_fakes(monkeypatch, wallet)

    rc = main(["--json", "mint", "--title", "Fridge rhythms", "--url", "https://moltbook.com/post/1", "--dry-run"])

    assert rc == 0
    assert json.loads(capsys.readouterr().out) == {
        "dryRun": True,
        "title": "Fridge rhythms",
        "url": "https://moltbook.com/post/1",
    }
    assert fake_web3.eth.sent == []
    assert FakeRegistry.submissions == []


def test_mint_submits_metadata_with_description(monkeypatch, capsys, wallet, fake_web3):
    monkeypatch.setenv("REPPO_PRIVATE_KEY", TEST_KEY)
    _use_fakes(monkeypatch, wallet)
    fake_web3.contract_named("reppo").reads["allowance"] = 10**30

    rc = main(
        [
            "mint",
            "--title",
            "Fridge rhythms",
            "--url",
            "https://moltbook.com/post/1",
            "--description",
            "Kitchen appliance music",
            "--image-url",
            "https://img.example/1.png",
        ]
    )

    assert rc == 0
    out = capsys.readouterr().out
    assert "Pod published!" in out
    assert "Pod ID" not in out
    assert fake_web3.eth.sent_functions() == ["mintPod"]
    assert FakeRegistry.submissions == [
        {
            "tx_hash": "0x" + "01" * 32,
            "title": "Fridge rhythms",
            "url": "https://moltbook.com/post/1",
            "description": "Kitchen appliance music",
            "image_url": "https://img.example/1.png",
        }
    ]


def test_mint_rejects_short_description(monkeypatch, capsys):
    _use_fakes(monkeypatch)

    rc = main(["mint", "--title", "Fridge rhythms", "--url", "https://x", "--description", "short"])

    assert rc == 1
    assert "Description must be at least 10 characters" in capsys.readouterr().err


def test_mint_dry_run_help_mentions_wallet_requirement(capsys):
    try:
        main(["mint", "--help"])
    except SystemExit as exc:
        assert exc.code == 0
    else:
        raise AssertionError("expected SystemExit")

    help_text = " ".join(capsys.readouterr().out.split())
    assert "requires a configured wallet and RPC access" in help_text
