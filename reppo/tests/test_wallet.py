import pytest

from reppo.scripts.errors import ValidationError
from reppo.scripts.wallet import account_from_key, normalize_private_key, open_wallet

TEST_KEY = "11" * 32


def test_normalize_private_key_adds_prefix():
    assert normalize_private_key(f" {TEST_KEY} ") == f"0x{TEST_KEY}"
    assert normalize_private_key(f"0x{TEST_KEY}") == f"0x{TEST_KEY}"


def test_account_from_key_accepts_bare_hex():
    assert account_from_key(TEST_KEY).address == account_from_key(f"0x{TEST_KEY}").address


def test_invalid_key_does_not_leak_material():
    secret = "zz" + TEST_KEY[2:]
    with pytest.raises(ValidationError) as exc:
        account_from_key(secret)
    assert secret not in str(exc.value)


def test_open_wallet_uses_injected_client(fake_web3):
    handle = open_wallet(TEST_KEY, rpc_url=" https://rpc.example ", web3=fake_web3)

    assert handle.web3 is fake_web3
    assert handle.rpc_url == "https://rpc.example"
    assert handle.chain_id == 8453
    assert handle.address == account_from_key(TEST_KEY).address
