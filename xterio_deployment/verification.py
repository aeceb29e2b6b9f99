from typing import Any, Callable, List, NamedTuple, Optional, Sequence, Tuple

import click
from ape import networks
from ape.api import ExplorerAPI
from ape.contracts import ContractContainer
from eth_typing import ChecksumAddress

from xterio_deployment.recipes import Recipe, Strategy
from xterio_deployment.utils import get_contract_container


class VerificationError(Exception):
    """Raised when an explorer cannot take a verification request."""


class VerificationRequest(NamedTuple):
    address: ChecksumAddress
    contract_name: str
    contract_id: str
    constructor_args: Tuple[Any, ...] = ()


def verification_request(
    recipe: Recipe, address: ChecksumAddress, arguments: Sequence[Any] = ()
) -> VerificationRequest:
    """
    Builds the request for a recipe's contract. Proxied contracts are created
    without constructor arguments, their arguments go to the initializer.
    """
    constructor_args = () if recipe.strategy is Strategy.PROXY else tuple(arguments)
    return VerificationRequest(
        address=address,
        contract_name=recipe.contract_name,
        contract_id=recipe.contract_id,
        constructor_args=constructor_args,
    )


class ExplorerVerifier:
    """Publishes contract sources to the block explorer of the connected network."""

    def __init__(
        self,
        explorer: Optional[ExplorerAPI] = None,
        resolver: Callable[[str], ContractContainer] = get_contract_container,
    ):
        self._explorer = explorer
        self._resolver = resolver

    @property
    def explorer(self) -> ExplorerAPI:
        explorer = self._explorer or networks.provider.network.explorer
        if explorer is None:
            raise VerificationError(
                f"No explorer configured for network '{networks.provider.network.name}'."
            )
        return explorer

    def implementation_of(self, address: ChecksumAddress) -> Optional[ChecksumAddress]:
        proxy_info = networks.provider.network.ecosystem.get_proxy_info(address)
        if proxy_info:
            return proxy_info.target
        return None

    @staticmethod
    def _print_constructor_args(container: ContractContainer, args: Tuple[Any, ...]) -> None:
        # informational only; the explorer reads the arguments from the creation transaction
        try:
            encoded_args = container.constructor.encode_input(*args)
        except Exception as e:
            click.secho(f"Could not encode constructor arguments {args}: {e}", fg="yellow")
            return
        print(f"Constructor arguments: {encoded_args.hex()}")

    def verify(self, request: VerificationRequest) -> None:
        container = self._resolver(request.contract_name)
        address = request.address

        # check whether contract is a proxy
        implementation = self.implementation_of(address)
        if implementation:
            # we have an instance of a proxy contract, but need the underlying implementation
            print(f"Proxy contract detected; verifying implementation contract at {implementation}")
            address = implementation
        elif request.constructor_args:
            self._print_constructor_args(container, request.constructor_args)

        # binds the contract type to the address so the explorer can find its sources
        container.at(address)
        self.explorer.publish_contract(address)


def verify_contract(request: VerificationRequest, verifier) -> bool:
    """Submits a verification request. Failures are reported but never raised."""
    print(f"(i) Verifying {request.contract_id} at {request.address}...")
    try:
        verifier.verify(request)
    except Exception as e:
        click.secho(f"Verify failed: {e}", fg="yellow")
        return False
    return True


def verify_contracts(requests: Sequence[VerificationRequest], verifier) -> List[bool]:
    return [verify_contract(request, verifier) for request in requests]
