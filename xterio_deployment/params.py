import typing
from typing import Any, Callable, Dict, List, Optional

from ape import chain, networks
from ape.api import AccountAPI, ReceiptAPI
from ape.cli.choices import select_account
from ape.contracts.base import ContractContainer, ContractInstance, ContractTransactionHandler
from ape.utils import EMPTY_BYTES32
from eth_utils import to_checksum_address
from ethpm_types import MethodABI
from web3 import Web3

from xterio_deployment.constants import (
    EIP1967_ADMIN_SLOT,
    INITIALIZER_METHOD,
    PROXY_ADMIN_CONTRACT_NAME,
    PROXY_CONTRACT_NAME,
)
from xterio_deployment.recipes import Recipe, Strategy
from xterio_deployment.utils import get_contract_container

w3 = Web3()

FEE_OVERRIDES = ("gas_price", "max_fee", "max_priority_fee", "gas_limit")


def _validate_method_args(
    method_abis: List[MethodABI], args: typing.Sequence[Any]
) -> typing.Dict[str, Any]:
    """Validates the transaction arguments against the function ABI."""
    if len(method_abis) == 0:
        raise ValueError("No method abis provided for validation of args")

    abis_matching_args_length = [abi for abi in method_abis if len(abi.inputs) == len(args)]
    for abi in abis_matching_args_length:
        named_args = {}
        for arg, abi_input in zip(args, abi.inputs):
            if not w3.is_encodable(abi_input.type, arg):
                break
            named_args[abi_input.name] = arg
        else:
            return named_args
    raise ValueError(
        f"Could not find ABI for '{method_abis[0].name}' with {len(args)} arg(s) and given type(s)"
    )


class TxOverrides(typing.NamedTuple):
    """
    Transaction parameters applied to every transaction of a deployment.
    Unset fields fall back to the network defaults.
    """

    gas_price: Optional[Any] = None
    max_fee: Optional[Any] = None
    max_priority_fee: Optional[Any] = None
    gas_limit: Optional[int] = None
    nonce: Optional[int] = None
    sender: Optional[AccountAPI] = None

    def to_kwargs(self, step: int = 0) -> Dict[str, Any]:
        """
        Returns the ape transaction kwargs for the `step`-th transaction.
        An explicit nonce is used for the first transaction and incremented for each one after.
        """
        kwargs = {name: getattr(self, name) for name in FEE_OVERRIDES}
        kwargs = {name: value for name, value in kwargs.items() if value is not None}
        if self.nonce is not None:
            kwargs["nonce"] = self.nonce + step
        return kwargs


class Transactor:
    """
    Represents an ape account plus validated/annotated transaction execution.
    """

    def __init__(
        self,
        account: typing.Optional[AccountAPI] = None,
        autosign: bool = False,
        overrides: typing.Optional[TxOverrides] = None,
    ):
        if account is None:
            self._account = select_account()
        else:
            self._account = account
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
            self._account.set_autosign(autosign)
        self._autosign = autosign
        self.overrides = overrides or TxOverrides()
        self._transaction_count = 0

    def get_account(self) -> AccountAPI:
        """Returns the account sending transactions; a sender override takes precedence."""
        return self.overrides.sender or self._account

    @property
    def transaction_count(self) -> int:
        return self._transaction_count

    def _next_transaction_kwargs(self) -> Dict[str, Any]:
        kwargs = self.overrides.to_kwargs(step=self._transaction_count)
        self._transaction_count += 1
        return kwargs

    def transact(self, method: ContractTransactionHandler, *args) -> ReceiptAPI:
        named_args = _validate_method_args(method_abis=method.abis, args=args)
        base_message = (
            f"\nTransacting {method.contract.contract_type.name}"
            f"[{method.contract.address[:10]}].{method}"
        )
        if named_args:
            pretty_args = "\n\t".join(f"{k}={v}" for k, v in named_args.items())
            message = f"{base_message} with arguments:\n\t{pretty_args}"
        else:
            message = f"{base_message} with no arguments"
        print(message)

        receipt = method(*args, sender=self.get_account(), **self._next_transaction_kwargs())
        receipt.raise_for_status()
        return receipt


class Deployer(Transactor):
    """
    Represents an ape account plus contract creation, either directly
    or behind a transparent upgradeable proxy.
    """

    def __init__(
        self,
        account: typing.Optional[AccountAPI] = None,
        autosign: bool = False,
        overrides: typing.Optional[TxOverrides] = None,
        resolver: Callable[[str], ContractContainer] = get_contract_container,
    ):
        super().__init__(account, autosign, overrides)
        self._resolver = resolver

    def resolve(self, contract_name: str) -> ContractContainer:
        """Returns the deployable container for a contract name."""
        return self._resolver(contract_name)

    def deploy_contract(self, container: ContractContainer, *args) -> ContractInstance:
        """Deploys a contract and waits until its creation is confirmed."""
        contract_name = container.contract_type.name
        if args:
            pretty_args = "\n\t".join(str(arg) for arg in args)
            print(f"\nDeploying {contract_name} with arguments:\n\t{pretty_args}")
        else:
            print(f"\nDeploying {contract_name} with no arguments")

        instance = self.get_account().deploy(
            container, *args, **self._next_transaction_kwargs()
        )
        receipt = chain.provider.get_receipt(instance.txn_hash)
        receipt.await_confirmations()
        receipt.raise_for_status()
        print(f"{contract_name} deployed to {instance.address}")
        return instance

    def deploy_proxy(
        self,
        container: ContractContainer,
        logic: ContractInstance,
        initializer_args: typing.Sequence[Any],
    ) -> ContractInstance:
        """
        Deploys a proxy in front of `logic`; the initializer runs through the
        proxy as part of its construction.
        """
        target_contract_name = container.contract_type.name
        proxy_container = self.resolve(PROXY_CONTRACT_NAME)
        initializer = getattr(logic, INITIALIZER_METHOD)
        initializer_data = initializer.encode_input(*initializer_args)
        print(
            f"\nDeploying {proxy_container.contract_type.name} "
            f"contract to proxy {target_contract_name}."
        )
        proxy_contract = self.deploy_contract(
            proxy_container,
            logic.address,
            self.get_account().address,  # initialOwner of the proxy admin
            initializer_data,
        )
        print(
            f"\nWrapping {target_contract_name} into {proxy_contract.contract_type.name} "
            f"at {proxy_contract.address}."
        )
        return container.at(proxy_contract.address)

    def upgrade(self, recipe: Recipe, proxy_address, data=b"") -> ContractInstance:
        if recipe.strategy is not Strategy.PROXY:
            raise ValueError(f"{recipe.contract_name} is not deployed behind a proxy.")
        container = self.resolve(recipe.contract_name)
        implementation = self.deploy_contract(container)
        # upgrade proxy to implementation
        return self.upgradeTo(implementation, proxy_address, data)

    def upgradeTo(
        self, implementation: ContractInstance, proxy_address, data=b""
    ) -> ContractInstance:
        admin_slot = chain.provider.get_storage(proxy_address, EIP1967_ADMIN_SLOT)

        if admin_slot == EMPTY_BYTES32:
            raise ValueError(
                f"Admin slot for contract at {proxy_address} is empty. "
                "Are you sure this is an EIP1967-compatible proxy?"
            )

        admin_address = to_checksum_address(admin_slot[-20:])
        proxy_admin = self.resolve(PROXY_ADMIN_CONTRACT_NAME).at(admin_address)
        admin_owner = proxy_admin.owner()
        if admin_owner != self.get_account().address:
            raise ValueError(
                f"{PROXY_ADMIN_CONTRACT_NAME} at {admin_address} is owned by {admin_owner}; "
                f"{self.get_account().address} cannot upgrade {proxy_address}."
            )

        self.transact(proxy_admin.upgradeAndCall, proxy_address, implementation.address, data)

        wrapped_instance = self.resolve(implementation.contract_type.name).at(proxy_address)
        return wrapped_instance

    def print_deployment_info(self, verify: bool) -> None:
        print(
            f"Account: {self.get_account().address}",
            f"Verify: {verify}",
            f"Ecosystem: {networks.provider.network.ecosystem.name}",
            f"Network: {networks.provider.network.name}",
            f"Chain ID: {networks.provider.network.chain_id}",
            f"Gas Price: {networks.provider.gas_price}",
            sep="\n",
        )
