#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from xterio_deployment.options import (
    autosign_option,
    skip_verify_option,
    tx_override_options,
    tx_overrides_from_options,
)
from xterio_deployment.params import Deployer
from xterio_deployment.recipes import RECIPES, ContractKind, Strategy
from xterio_deployment.runner import RunConfig, run_upgrade
from xterio_deployment.types import ChecksumAddress
from xterio_deployment.utils import check_plugins

UPGRADEABLE = [kind.value for kind, recipe in RECIPES.items() if recipe.strategy is Strategy.PROXY]


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@click.option(
    "--contract",
    "-c",
    "kind",
    help="Proxied contract to upgrade",
    type=click.Choice(UPGRADEABLE),
    required=True,
)
@click.option(
    "--proxy-address",
    "-p",
    help="Address of the proxy to upgrade",
    type=ChecksumAddress(),
    required=True,
)
@skip_verify_option
@autosign_option
@tx_override_options
def cli(network, account, kind, proxy_address, skip_verify, autosign, **overrides):
    """Deploy a new implementation and upgrade a proxy to it."""
    check_plugins(verify=not skip_verify)
    deployer = Deployer(
        account=account, autosign=autosign, overrides=tx_overrides_from_options(**overrides)
    )
    deployer.print_deployment_info(verify=not skip_verify)
    run_upgrade(ContractKind(kind), deployer, proxy_address, RunConfig(skip_verify=skip_verify))


if __name__ == "__main__":
    cli()
