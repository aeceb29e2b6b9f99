#!/usr/bin/python3

import click
from ape import networks
from ape.cli import ConnectedProviderCommand, account_option, network_option

from xterio_deployment.networks import is_local_network
from xterio_deployment.options import (
    autosign_option,
    gateway_option,
    run_config_from_options,
    run_options,
    skip_verify_option,
    tx_override_options,
    tx_overrides_from_options,
)
from xterio_deployment.params import Deployer
from xterio_deployment.plan import DeploymentPlan, plan_filepath
from xterio_deployment.recipes import ContractKind
from xterio_deployment.runner import RunConfig, run_plan, run_recipe
from xterio_deployment.types import ChecksumAddress
from xterio_deployment.utils import check_plugins


def _deploy(
    kind,
    account,
    arguments=None,
    settings=None,
    skip_verify=False,
    verify_address=None,
    autosign=False,
    **overrides,
):
    config = run_config_from_options(skip_verify=skip_verify, verify_address=verify_address)
    check_plugins(verify=not config.skip_verify)
    deployer = Deployer(
        account=account, autosign=autosign, overrides=tx_overrides_from_options(**overrides)
    )
    deployer.print_deployment_info(verify=not config.skip_verify)
    run_recipe(kind, deployer, config, arguments=arguments, settings=settings)


@click.group()
def cli():
    """Deploy the Xterio contracts."""


@cli.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@click.option(
    "--wallet",
    "-w",
    help="Receiver of the initial token supply; defaults to the deployer.",
    type=ChecksumAddress(),
    required=False,
)
@run_options
def token(network, account, wallet, **options):
    """Deploy the XterToken."""
    _deploy(ContractKind.TOKEN, account, {"wallet": wallet or account.address}, **options)


@cli.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@click.option(
    "--gateway-admin",
    "-a",
    help="Gateway admin; defaults to the deployer.",
    type=ChecksumAddress(),
    required=False,
)
@run_options
def gateway(network, account, gateway_admin, **options):
    """Deploy the TokenGateway behind an upgradeable proxy."""
    arguments = {"gateway_admin": gateway_admin or account.address}
    _deploy(ContractKind.GATEWAY, account, arguments, **options)


@cli.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@click.option(
    "--gateway",
    "-g",
    help="Address of the TokenGateway proxy; required unless only verifying.",
    type=ChecksumAddress(),
    required=False,
)
@click.option(
    "--service-fee-recipient",
    "-r",
    help="Receiver of the marketplace service fees; required unless only verifying.",
    type=ChecksumAddress(),
    required=False,
)
@click.option(
    "--payment-token",
    "-t",
    help="ERC20 token accepted as payment.",
    type=ChecksumAddress(),
    required=False,
)
@run_options
def marketplace(network, account, gateway, service_fee_recipient, payment_token, **options):
    """Deploy the MarketplaceV2 behind an upgradeable proxy and wire it to the gateway."""
    if not options["verify_address"] and not (gateway and service_fee_recipient):
        raise click.UsageError(
            "--gateway and --service-fee-recipient are required to deploy the marketplace."
        )
    settings = {
        "gateway": gateway,
        "service_fee_recipient": service_fee_recipient,
        "payment_token": payment_token,
    }
    _deploy(ContractKind.MARKETPLACE, account, settings=settings, **options)


@cli.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@run_options
def forwarder(network, account, **options):
    """Deploy the Forwarder."""
    _deploy(ContractKind.FORWARDER, account, **options)


@cli.command("whitelist-minter", cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@gateway_option
@run_options
def whitelist_minter(network, account, gateway, **options):
    """Deploy the WhitelistMinter."""
    _deploy(ContractKind.WHITELIST_MINTER, account, {"gateway": gateway}, **options)


@cli.command("lootbox-unwrapper", cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@gateway_option
@run_options
def lootbox_unwrapper(network, account, gateway, **options):
    """Deploy the LootboxUnwrapper."""
    _deploy(ContractKind.LOOTBOX_UNWRAPPER, account, {"gateway": gateway}, **options)


@cli.command("transfer-validator", cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@click.option(
    "--default-owner",
    "-o",
    help="Default owner of the validator; defaults to the deployer.",
    type=ChecksumAddress(),
    required=False,
)
@run_options
def transfer_validator(network, account, default_owner, **options):
    """Deploy the CreatorTokenTransferValidator."""
    arguments = {"default_owner": default_owner or account.address}
    _deploy(ContractKind.TRANSFER_VALIDATOR, account, arguments, **options)


@cli.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@click.option(
    "--admin",
    "-a",
    help="Distributor admin; defaults to the deployer.",
    type=ChecksumAddress(),
    required=False,
)
@run_options
def distributor(network, account, admin, **options):
    """Deploy the Distribute value distributor."""
    _deploy(ContractKind.DISTRIBUTOR, account, {"admin": admin or account.address}, **options)


@cli.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@click.option(
    "--plan",
    "-p",
    "plan_name",
    help="Deployment plan: a YAML filepath or the name of a bundled plan.",
    type=str,
    required=True,
)
@skip_verify_option
@autosign_option
@tx_override_options
def plan(network, account, plan_name, skip_verify, autosign, **overrides):
    """Deploy every contract of a deployment plan, in order."""
    deployment_plan = DeploymentPlan.from_yaml(plan_filepath(plan_name))
    deployment_plan.validate_chain(
        chain_id=networks.provider.network.chain_id, live=not is_local_network()
    )
    check_plugins(verify=not skip_verify)
    deployer = Deployer(
        account=account, autosign=autosign, overrides=tx_overrides_from_options(**overrides)
    )
    deployer.print_deployment_info(verify=not skip_verify)
    run_plan(deployment_plan, deployer, RunConfig(skip_verify=skip_verify))


if __name__ == "__main__":
    cli()
