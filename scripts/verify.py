#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, network_option

from xterio_deployment.constants import VERIFY_ADDRESS_ENVVAR
from xterio_deployment.types import ChecksumAddress
from xterio_deployment.utils import check_plugins, get_contract_container
from xterio_deployment.verification import ExplorerVerifier, VerificationRequest, verify_contract


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@click.option(
    "--address",
    "-a",
    help="Address of the deployed contract",
    type=ChecksumAddress(),
    required=True,
    envvar=VERIFY_ADDRESS_ENVVAR,
)
@click.option(
    "--contract-name",
    "-c",
    help="Name of the compiled contract deployed at the address",
    type=click.STRING,
    required=True,
)
@click.option(
    "--contract-id",
    help="Fully qualified contract id (e.g. contracts/Distribute.sol:Distribute); "
    "defaults to the source of the compiled contract",
    type=click.STRING,
    required=False,
)
@click.option(
    "--constructor-arg",
    "constructor_args",
    help="Constructor argument used at deployment, in order",
    type=click.STRING,
    multiple=True,
)
def cli(network, address, contract_name, contract_id, constructor_args):
    """Verify an existing contract deployment."""
    check_plugins()
    if not contract_id:
        contract_type = get_contract_container(contract_name).contract_type
        contract_id = f"{contract_type.source_id}:{contract_name}"

    request = VerificationRequest(
        address=address,
        contract_name=contract_name,
        contract_id=contract_id,
        constructor_args=tuple(constructor_args),
    )
    verify_contract(request, ExplorerVerifier())


if __name__ == "__main__":
    cli()
