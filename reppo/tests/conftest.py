from types import SimpleNamespace

import pytest

from reppo.scripts.constants import POD_CONTRACT, REPPO_TOKEN, UNISWAP_QUOTER, UNISWAP_ROUTER, USDC_TOKEN
from reppo.scripts.wallet import WalletHandle

# All-digit address: already in checksum form.
WALLET_ADDRESS = "0x" + "11" * 20


class FakeFunction:
    def __init__(self, contract, name, args):
        self.contract = contract
        self.name = name
        self.args = args

    def call(self):
        self.contract.calls.append((self.name, self.args))
        value = self.contract.reads[self.name]
        if callable(value):
            value = value(*self.args)
        if isinstance(value, Exception):
            raise value
        return value

    def estimate_gas(self, tx):
        if isinstance(self.contract.gas, Exception):
            raise self.contract.gas
        return self.contract.gas

    def build_transaction(self, tx):
        built = dict(tx)
        built.update({"contract": self.contract.name, "fn": self.name, "args": self.args})
        return built


class FakeFunctions:
    def __init__(self, contract):
        self._contract = contract

    def __getattr__(self, name):
        return lambda *args: FakeFunction(self._contract, name, args)


class FakeTransferEvent:
    def process_receipt(self, receipt, errors=None):
        return list(receipt.get("transfer_events", []))


class FakeContract:
    def __init__(self, name, reads=None, gas=200_000):
        self.name = name
        self.reads = dict(reads or {})
        self.gas = gas
        self.calls = []
        self.functions = FakeFunctions(self)
        self.events = SimpleNamespace(Transfer=FakeTransferEvent)


class FakeEth:
    def __init__(self, contracts):
        self.contracts = contracts
        self.balance = 10**18
        self.gas_price = 10**9
        self.sent = []
        self.receipts = {}
        self._by_hash = {}

    def contract(self, address, abi):
        return self.contracts[address.lower()]

    def get_balance(self, address):
        return self.balance

    def get_transaction_count(self, address, block_identifier="latest"):
        return len(self.sent)

    def send_raw_transaction(self, raw):
        self.sent.append(raw)
        tx_hash = bytes([len(self.sent)]) * 32
        self._by_hash["0x" + tx_hash.hex()] = raw
        return tx_hash

    def wait_for_transaction_receipt(self, tx_hash, timeout=120):
        tx = self._by_hash[tx_hash]
        receipt = self.receipts.get(tx["fn"], {"status": 1, "blockNumber": 123})
        if isinstance(receipt, Exception):
            raise receipt
        return receipt

    def sent_functions(self):
        return [tx["fn"] for tx in self.sent]


class FakeAccount:
    address = WALLET_ADDRESS

    def sign_transaction(self, tx):
        return SimpleNamespace(raw_transaction=tx)


class FakeWeb3:
    def __init__(self):
        contracts = {
            POD_CONTRACT.lower(): FakeContract("pod", {"publishingFee": 10 * 10**18}),
            REPPO_TOKEN.lower(): FakeContract("reppo", {"balanceOf": 100 * 10**18, "allowance": 0}),
            USDC_TOKEN.lower(): FakeContract("usdc", {"balanceOf": 1_000 * 10**6, "allowance": 0}),
            UNISWAP_QUOTER.lower(): FakeContract("quoter", {"quoteExactOutputSingle": (2_000_000, 0, 0, 0)}),
            UNISWAP_ROUTER.lower(): FakeContract("router"),
        }
        self.eth = FakeEth(contracts)

    def contract_named(self, name):
        for contract in self.eth.contracts.values():
            if contract.name == name:
                return contract
        raise KeyError(name)


@pytest.fixture
def fake_web3():
    return FakeWeb3()


@pytest.fixture
def wallet(fake_web3):
    return WalletHandle(account=FakeAccount(), web3=fake_web3)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    config_dir = tmp_path / "reppo-config"
    monkeypatch.setenv("REPPO_CONFIG_DIR", str(config_dir))
    for name in ("REPPO_PRIVATE_KEY", "MOLTBOOK_API_KEY", "REPPO_API_KEY", "REPPO_RPC_URL", "DEBUG"):
        monkeypatch.delenv(name, raising=False)
    return config_dir
