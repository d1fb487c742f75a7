from reppo.scripts.constants import DEFAULT_RPC_URL
from reppo.scripts.credentials import CredentialStore
from reppo.scripts.runtime_config import load_runtime_config


def test_runtime_config_defaults(tmp_path):
    cfg = load_runtime_config(CredentialStore(tmp_path, environ={}))

    assert cfg.config_dir == tmp_path
    assert cfg.rpc_url == DEFAULT_RPC_URL
    assert cfg.chain_id == 8453
    assert cfg.http_timeout_seconds == 30
    assert cfg.max_retries == 3
    assert cfg.receipt_timeout == 120
    assert cfg.session_file == tmp_path / "privy_session.json"


def test_runtime_config_reads_env_overrides(tmp_path):
    env = {
        "REPPO_RPC_URL": "https://rpc.example",
        "REPPO_HTTP_TIMEOUT_SECONDS": "5",
        "REPPO_HTTP_MAX_RETRIES": "1",
        "REPPO_RETRY_BASE_DELAY": "0.1",
        "REPPO_TX_RECEIPT_TIMEOUT": "30",
    }
    cfg = load_runtime_config(CredentialStore(tmp_path, environ=env))

    assert cfg.rpc_url == "https://rpc.example"
    assert cfg.http_timeout_seconds == 5
    assert cfg.max_retries == 1
    assert cfg.retry_base_delay == 0.1
    assert cfg.receipt_timeout == 30.0


def test_runtime_config_reads_rpc_url_file(tmp_path):
    (tmp_path / "rpc_url").write_text("https://custom.rpc\n", encoding="utf-8")
    cfg = load_runtime_config(CredentialStore(tmp_path, environ={}))
    assert cfg.rpc_url == "https://custom.rpc"
