from enum import Enum
from typing import Any, Callable, Dict, NamedTuple, Optional, Tuple

import click
from eth_typing import ChecksumAddress

from xterio_deployment.confirm import confirm_deployment
from xterio_deployment.orchestration import DeployedContract, RecipeExecution
from xterio_deployment.params import Deployer
from xterio_deployment.plan import DeploymentPlan
from xterio_deployment.recipes import ContractKind, bind_parameters, get_recipe
from xterio_deployment.utils import address_of
from xterio_deployment.verification import (
    ExplorerVerifier,
    verification_request,
    verify_contracts,
)

Confirm = Callable[[str, Dict[str, Any]], bool]


class Outcome(Enum):
    COMPLETED = "completed"
    ABORTED = "aborted"


class RunConfig(NamedTuple):
    skip_verify: bool = False
    verify_address: Optional[ChecksumAddress] = None


class RunResult(NamedTuple):
    outcome: Outcome
    address: Optional[ChecksumAddress] = None
    deployments: Tuple[DeployedContract, ...] = ()
    verified: Tuple[bool, ...] = ()


def _aborted() -> RunResult:
    click.secho("Aborting deployment!", fg="yellow")
    return RunResult(outcome=Outcome.ABORTED)


def _verify(config: RunConfig, requests, verifier) -> Tuple[bool, ...]:
    if config.skip_verify:
        print("(i) Skipping verification")
        return ()
    return tuple(verify_contracts(requests, verifier or ExplorerVerifier()))


def run_recipe(
    kind: ContractKind,
    deployer: Optional[Deployer],
    config: RunConfig,
    arguments: Optional[Dict[str, Any]] = None,
    settings: Optional[Dict[str, Any]] = None,
    confirm: Confirm = confirm_deployment,
    verifier=None,
) -> RunResult:
    """
    Deploys a single recipe after operator confirmation, then verifies it.
    With a `verify_address` nothing is deployed and that address is verified instead.
    """
    recipe = get_recipe(kind)
    bound_arguments = bind_parameters(recipe, recipe.arguments, arguments)

    deployments = ()
    address = config.verify_address
    if address is None:
        click.secho(f"Deploy {recipe.contract_name}", fg="blue")
        click.secho(f"Deployer: {deployer.get_account().address}", fg="yellow")
        params = {**bound_arguments, **bind_parameters(recipe, recipe.settings, settings)}
        params = {name: address_of(value) for name, value in params.items() if value is not None}
        if not confirm(recipe.contract_name, params):
            return _aborted()

        deployed = RecipeExecution(deployer, recipe).run(arguments, settings)
        deployments = (deployed,)
        address = deployed.address
        click.secho(f"{recipe.contract_name} @ {address}", fg="green")
        constructor_args = deployed.arguments
    else:
        print(f"(i) Skipping deployment; using {recipe.contract_name} at {address}")
        constructor_args = tuple(address_of(value) for value in bound_arguments.values())

    request = verification_request(recipe, address, constructor_args)
    verified = _verify(config, [request], verifier)
    return RunResult(
        outcome=Outcome.COMPLETED, address=address, deployments=deployments, verified=verified
    )


def run_plan(
    plan: DeploymentPlan,
    deployer: Deployer,
    config: RunConfig,
    confirm: Confirm = confirm_deployment,
    verifier=None,
) -> RunResult:
    """Deploys every entry of a plan in order after a single confirmation, then verifies them."""
    if config.verify_address is not None:
        raise ValueError("A verification address cannot be combined with a deployment plan.")

    click.secho(f"Deploy {plan.name}", fg="blue")
    click.secho(f"Deployer: {deployer.get_account().address}", fg="yellow")
    if not confirm(f"{len(plan.entries)} contracts", plan.summary()):
        return _aborted()

    deployments = tuple(plan.execute(deployer))
    for deployed in deployments:
        click.secho(f"{deployed.recipe.contract_name} @ {deployed.address}", fg="green")

    requests = [
        verification_request(deployed.recipe, deployed.address, deployed.arguments)
        for deployed in deployments
    ]
    verified = _verify(config, requests, verifier)
    return RunResult(outcome=Outcome.COMPLETED, deployments=deployments, verified=verified)


def run_upgrade(
    kind: ContractKind,
    deployer: Deployer,
    proxy_address: ChecksumAddress,
    config: RunConfig,
    confirm: Confirm = confirm_deployment,
    verifier=None,
) -> RunResult:
    """Upgrades a proxied contract to a freshly deployed implementation, then verifies it."""
    recipe = get_recipe(kind)
    click.secho(f"Upgrade {recipe.contract_name}", fg="blue")
    click.secho(f"Deployer: {deployer.get_account().address}", fg="yellow")
    if not confirm(f"{recipe.contract_name} implementation", {"proxy": proxy_address}):
        return _aborted()

    upgraded = deployer.upgrade(recipe, proxy_address)
    click.secho(f"{recipe.contract_name} @ {upgraded.address} upgraded", fg="green")

    request = verification_request(recipe, upgraded.address)
    verified = _verify(config, [request], verifier)
    return RunResult(outcome=Outcome.COMPLETED, address=upgraded.address, verified=verified)
