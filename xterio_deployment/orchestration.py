from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Tuple

from ape.contracts.base import ContractInstance
from eth_typing import ChecksumAddress

from xterio_deployment.params import Deployer
from xterio_deployment.recipes import (
    ContractKind,
    Recipe,
    Strategy,
    bind_parameters,
    get_recipe,
)
from xterio_deployment.utils import address_of


class RecipeState(Enum):
    NOT_STARTED = "not-started"
    CREATING = "creating"
    INITIALIZING = "initializing"
    CONFIGURING = "configuring"
    READY = "ready"


class DeployedContract(NamedTuple):
    recipe: Recipe
    instance: ContractInstance
    arguments: Tuple[Any, ...]
    implementation: Optional[ChecksumAddress] = None

    @property
    def address(self) -> ChecksumAddress:
        return self.instance.address


class RecipeExecution:
    """
    Runs one recipe end to end: creation, proxy initialization and the
    configuration calls, strictly in that order.

    Every step is an on-chain transaction; a failure leaves the steps already
    confirmed in place and the original error is raised to the caller.
    """

    def __init__(self, deployer: Deployer, recipe: Recipe):
        self.deployer = deployer
        self.recipe = recipe
        self.state = RecipeState.NOT_STARTED
        self.configured = 0

    def run(
        self,
        arguments: Optional[Dict[str, Any]] = None,
        settings: Optional[Dict[str, Any]] = None,
    ) -> DeployedContract:
        if self.state is not RecipeState.NOT_STARTED:
            raise RuntimeError(f"{self.recipe.contract_name} recipe has already been executed.")

        recipe = self.recipe
        bound_arguments = bind_parameters(recipe, recipe.arguments, arguments)
        bound_settings = bind_parameters(recipe, recipe.settings, settings)
        construction_args = tuple(address_of(value) for value in bound_arguments.values())
        calls = recipe.configuration(
            {name: address_of(value) for name, value in bound_settings.items()}
        )

        try:
            deployed = self._create(construction_args)
            for call in calls:
                self.state = RecipeState.CONFIGURING
                method = getattr(deployed.instance, call.method)
                self.deployer.transact(method, *call.args)
                self.configured += 1
        except Exception:
            print(f"(!) {recipe.contract_name} deployment failed while {self.state.value}.")
            raise

        self.state = RecipeState.READY
        return deployed

    def _create(self, construction_args: Tuple[Any, ...]) -> DeployedContract:
        self.state = RecipeState.CREATING
        container = self.deployer.resolve(self.recipe.contract_name)

        if self.recipe.strategy is Strategy.DIRECT:
            instance = self.deployer.deploy_contract(container, *construction_args)
            return DeployedContract(self.recipe, instance, construction_args)

        # upgradeable logic contracts take their arguments through the initializer
        logic = self.deployer.deploy_contract(container)
        self.state = RecipeState.INITIALIZING
        instance = self.deployer.deploy_proxy(container, logic, construction_args)
        return DeployedContract(self.recipe, instance, (), implementation=logic.address)


def execute_recipe(
    deployer: Deployer,
    kind: ContractKind,
    arguments: Optional[Dict[str, Any]] = None,
    settings: Optional[Dict[str, Any]] = None,
) -> DeployedContract:
    return RecipeExecution(deployer, get_recipe(kind)).run(arguments, settings)


def deploy_token(deployer: Deployer, wallet) -> DeployedContract:
    return execute_recipe(deployer, ContractKind.TOKEN, {"wallet": wallet})


def deploy_gateway(deployer: Deployer, gateway_admin) -> DeployedContract:
    return execute_recipe(deployer, ContractKind.GATEWAY, {"gateway_admin": gateway_admin})


def deploy_marketplace(
    deployer: Deployer, gateway, service_fee_recipient, payment_token=None
) -> DeployedContract:
    settings = {
        "gateway": gateway,
        "service_fee_recipient": service_fee_recipient,
        "payment_token": payment_token,
    }
    return execute_recipe(deployer, ContractKind.MARKETPLACE, settings=settings)


def deploy_forwarder(deployer: Deployer) -> DeployedContract:
    return execute_recipe(deployer, ContractKind.FORWARDER)


def deploy_whitelist_minter(deployer: Deployer, gateway) -> DeployedContract:
    return execute_recipe(deployer, ContractKind.WHITELIST_MINTER, {"gateway": gateway})


def deploy_lootbox_unwrapper(deployer: Deployer, gateway) -> DeployedContract:
    return execute_recipe(deployer, ContractKind.LOOTBOX_UNWRAPPER, {"gateway": gateway})


def deploy_transfer_validator(deployer: Deployer, default_owner) -> DeployedContract:
    return execute_recipe(
        deployer, ContractKind.TRANSFER_VALIDATOR, {"default_owner": default_owner}
    )


def deploy_distributor(deployer: Deployer, admin) -> DeployedContract:
    return execute_recipe(deployer, ContractKind.DISTRIBUTOR, {"admin": admin})
