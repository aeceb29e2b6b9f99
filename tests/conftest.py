from types import SimpleNamespace
from typing import Any, Dict, NamedTuple, Optional, Tuple

import pytest
from eth_utils import to_checksum_address
from ethpm_types.abi import ABIType, MethodABI

from xterio_deployment import params
from xterio_deployment.params import Deployer
from xterio_deployment.utils import UnknownContract

GATEWAY_ADMIN = to_checksum_address("0x" + "a" * 40)
SERVICE_FEE_RECIPIENT = to_checksum_address("0x" + "fe" * 20)
PAYMENT_TOKEN = to_checksum_address("0x" + "70" * 20)
GATEWAY = to_checksum_address("0x" + "9a" * 20)

PROXY = "TransparentUpgradeableProxy"

# method name -> ABI inputs, for the contracts touched by the recipes
INTERFACES = {
    "XterToken": {},
    "TokenGateway": {"initialize": [("gatewayAdmin", "address")]},
    "MarketplaceV2": {
        "initialize": [],
        "addPaymentTokens": [("paymentTokens", "address[]")],
        "setServiceFeeRecipient": [("serviceFeeRecipient", "address")],
        "setGateway": [("gateway", "address")],
    },
    "Forwarder": {},
    "WhitelistMinter": {},
    "LootboxUnwrapper": {},
    "CreatorTokenTransferValidator": {},
    "Distribute": {},
    PROXY: {},
    "ProxyAdmin": {
        "upgradeAndCall": [("proxy", "address"), ("implementation", "address"), ("data", "bytes")]
    },
}


class Reverted(Exception):
    """Stands in for the error a provider raises on a reverted transaction."""


class Transaction(NamedTuple):
    kind: str  # deploy, initialize or transact
    contract: str
    method: Optional[str]
    args: Tuple[Any, ...]
    kwargs: Dict[str, Any]
    address: str


class FakeReceipt:
    def __init__(self):
        self.confirmed = False

    def await_confirmations(self):
        self.confirmed = True
        return self

    def raise_for_status(self):
        return None


class FakeMethod:
    def __init__(self, contract, name, inputs):
        self.contract = contract
        self.name = name
        self.abis = [
            MethodABI(
                name=name, inputs=[ABIType(name=arg, type=typ) for arg, typ in inputs]
            )
        ]

    def __str__(self):
        return self.name

    def __call__(self, *args, sender=None, **kwargs):
        chain = self.contract.chain
        if self.name in chain.reverts:
            raise Reverted(f"{self.name} reverted")
        kwargs["sender"] = sender.address
        chain.transactions.append(
            Transaction(
                "transact", self.contract.contract_type.name, self.name, args, kwargs,
                self.contract.address,
            )
        )
        return FakeReceipt()

    def encode_input(self, *args):
        chain = self.contract.chain
        data = f"{self.name}#{len(chain.calldata)}".encode()
        chain.calldata[data] = (self.name, args)
        return data


class FakeInstance:
    def __init__(self, container, address, txn_hash=None):
        self.container = container
        self.chain = container.chain
        self.address = address
        self.contract_type = container.contract_type
        self.txn_hash = txn_hash

    def owner(self):
        return self.chain.owners[self.address]

    def __getattr__(self, name):
        methods = INTERFACES[self.contract_type.name]
        if name not in methods:
            raise AttributeError(name)
        return FakeMethod(self, name, methods[name])


class FakeConstructor:
    def encode_input(self, *args):
        return "|".join(str(arg) for arg in args).encode()


class FakeContainer:
    def __init__(self, chain, name):
        self.chain = chain
        self.contract_type = SimpleNamespace(name=name, source_id=f"contracts/{name}.sol")
        self.constructor = FakeConstructor()

    def at(self, address):
        return FakeInstance(self, address)


class FakeAccount:
    def __init__(self, chain, address):
        self.chain = chain
        self.address = address
        self.autosign = False

    def set_autosign(self, enabled, passphrase=None):
        self.autosign = enabled

    def deploy(self, container, *args, **kwargs):
        chain = self.chain
        name = container.contract_type.name
        if name in chain.reverts:
            raise Reverted(f"{name} constructor reverted")

        initialization = None
        if name == PROXY:
            logic_address, owner, data = args
            if data:
                method, initializer_args = chain.calldata[data]
                if method in chain.reverts:
                    raise Reverted(f"{method} reverted")
                initialization = (chain.contracts[logic_address], method, initializer_args)

        address = chain.next_address()
        kwargs["sender"] = self.address
        chain.transactions.append(Transaction("deploy", name, None, args, kwargs, address))
        chain.contracts[address] = name

        if name == PROXY:
            admin = chain.next_address()
            chain.contracts[admin] = "ProxyAdmin"
            chain.owners[admin] = owner
            chain.storage[address] = bytes(12) + bytes.fromhex(admin[2:])
        if initialization:
            logic_name, method, initializer_args = initialization
            chain.transactions.append(
                Transaction("initialize", logic_name, method, initializer_args, {}, address)
            )
        txn_hash = f"0x{len(chain.receipts):064x}"
        chain.receipts[txn_hash] = FakeReceipt()
        return FakeInstance(container, address, txn_hash=txn_hash)


class FakeChain:
    """Records every transaction the deployment sends, in order."""

    def __init__(self):
        self.transactions = []
        self.calldata = dict()
        self.contracts = dict()
        self.owners = dict()
        self.storage = dict()
        self.receipts = dict()
        self.reverts = set()
        self._address_count = 0x100
        self.containers = {name: FakeContainer(self, name) for name in INTERFACES}

    def next_address(self):
        self._address_count += 1
        return to_checksum_address(f"0x{self._address_count:040x}")

    def resolve(self, contract_name):
        try:
            return self.containers[contract_name]
        except KeyError:
            raise UnknownContract(f"No contract found with name '{contract_name}'.")

    def of_kind(self, kind):
        return [tx for tx in self.transactions if tx.kind == kind]

    def get_storage(self, address, slot):
        return self.storage.get(address, bytes(32))

    def get_receipt(self, txn_hash):
        return self.receipts[txn_hash]


class RecordingVerifier:
    def __init__(self, fail=False):
        self.fail = fail
        self.requests = []

    def verify(self, request):
        self.requests.append(request)
        if self.fail:
            raise RuntimeError("explorer unavailable")


@pytest.fixture
def fake_chain(monkeypatch):
    chain = FakeChain()
    # the fake chain also serves as the provider for receipts and storage
    monkeypatch.setattr(params, "chain", SimpleNamespace(provider=chain))
    return chain


@pytest.fixture
def deployer_account(fake_chain):
    return FakeAccount(fake_chain, to_checksum_address("0x" + "de" * 20))


@pytest.fixture
def other_account(fake_chain):
    return FakeAccount(fake_chain, to_checksum_address("0x" + "0e" * 20))


@pytest.fixture
def deployer(fake_chain, deployer_account):
    return Deployer(account=deployer_account, resolver=fake_chain.resolve)


@pytest.fixture
def verifier():
    return RecordingVerifier()


@pytest.fixture
def failing_verifier():
    return RecordingVerifier(fail=True)


def accept(label, values):
    return True


def decline(label, values):
    return False
