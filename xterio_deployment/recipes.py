from enum import Enum
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

from xterio_deployment.utils import UnknownContract


class ContractKind(Enum):
    TOKEN = "token"
    GATEWAY = "gateway"
    MARKETPLACE = "marketplace"
    FORWARDER = "forwarder"
    WHITELIST_MINTER = "whitelist-minter"
    LOOTBOX_UNWRAPPER = "lootbox-unwrapper"
    TRANSFER_VALIDATOR = "transfer-validator"
    DISTRIBUTOR = "distributor"


class Strategy(Enum):
    DIRECT = "direct"  # constructor call
    PROXY = "proxy"  # logic contract + transparent proxy + initializer


class Parameter(NamedTuple):
    name: str
    required: bool = True


class ConfigurationCall(NamedTuple):
    method: str
    args: Tuple[Any, ...]


def _no_configuration(settings: Dict[str, Any]) -> List[ConfigurationCall]:
    return []


class Recipe(NamedTuple):
    """
    The ordered deployment and configuration procedure for one contract kind.

    `arguments` are the constructor arguments of a directly deployed contract,
    or the initializer arguments of a proxied one. `settings` feed the
    post-deployment configuration calls produced by `configuration`.
    """

    kind: ContractKind
    contract_name: str
    source_path: str
    strategy: Strategy
    arguments: Tuple[Parameter, ...] = ()
    settings: Tuple[Parameter, ...] = ()
    configuration: Callable[[Dict[str, Any]], List[ConfigurationCall]] = _no_configuration

    @property
    def contract_id(self) -> str:
        """Fully qualified contract identifier, as expected by block explorers."""
        return f"{self.source_path}:{self.contract_name}"

    @property
    def parameter_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.arguments + self.settings)


def _marketplace_configuration(settings: Dict[str, Any]) -> List[ConfigurationCall]:
    calls = list()
    payment_token = settings.get("payment_token")
    if payment_token:
        calls.append(ConfigurationCall("addPaymentTokens", ([payment_token],)))
    calls.append(ConfigurationCall("setServiceFeeRecipient", (settings["service_fee_recipient"],)))
    # atomicMatchAndDeposit queries the gateway for the manager of a token
    calls.append(ConfigurationCall("setGateway", (settings["gateway"],)))
    return calls


RECIPES: Dict[ContractKind, Recipe] = {
    ContractKind.TOKEN: Recipe(
        kind=ContractKind.TOKEN,
        contract_name="XterToken",
        source_path="contracts/XterToken.sol",
        strategy=Strategy.DIRECT,
        arguments=(Parameter("wallet"),),
    ),
    ContractKind.GATEWAY: Recipe(
        kind=ContractKind.GATEWAY,
        contract_name="TokenGateway",
        source_path="contracts/TokenGateway.sol",
        strategy=Strategy.PROXY,
        arguments=(Parameter("gateway_admin"),),
    ),
    ContractKind.MARKETPLACE: Recipe(
        kind=ContractKind.MARKETPLACE,
        contract_name="MarketplaceV2",
        source_path="contracts/MarketplaceV2.sol",
        strategy=Strategy.PROXY,
        settings=(
            Parameter("gateway"),
            Parameter("service_fee_recipient"),
            Parameter("payment_token", required=False),
        ),
        configuration=_marketplace_configuration,
    ),
    ContractKind.FORWARDER: Recipe(
        kind=ContractKind.FORWARDER,
        contract_name="Forwarder",
        source_path="contracts/Forwarder.sol",
        strategy=Strategy.DIRECT,
    ),
    ContractKind.WHITELIST_MINTER: Recipe(
        kind=ContractKind.WHITELIST_MINTER,
        contract_name="WhitelistMinter",
        source_path="contracts/WhitelistMinter.sol",
        strategy=Strategy.DIRECT,
        arguments=(Parameter("gateway"),),
    ),
    ContractKind.LOOTBOX_UNWRAPPER: Recipe(
        kind=ContractKind.LOOTBOX_UNWRAPPER,
        contract_name="LootboxUnwrapper",
        source_path="contracts/LootboxUnwrapper.sol",
        strategy=Strategy.DIRECT,
        arguments=(Parameter("gateway"),),
    ),
    ContractKind.TRANSFER_VALIDATOR: Recipe(
        kind=ContractKind.TRANSFER_VALIDATOR,
        contract_name="CreatorTokenTransferValidator",
        source_path="contracts/CreatorTokenTransferValidator.sol",
        strategy=Strategy.DIRECT,
        arguments=(Parameter("default_owner"),),
    ),
    ContractKind.DISTRIBUTOR: Recipe(
        kind=ContractKind.DISTRIBUTOR,
        contract_name="Distribute",
        source_path="contracts/Distribute.sol",
        strategy=Strategy.DIRECT,
        arguments=(Parameter("admin"),),
    ),
}


def get_recipe(kind: ContractKind) -> Recipe:
    return RECIPES[kind]


def recipe_for_contract(contract_name: str) -> Recipe:
    """Looks up a recipe by the name of the contract it deploys."""
    for recipe in RECIPES.values():
        if recipe.contract_name == contract_name:
            return recipe
    raise UnknownContract(f"No deployment recipe for contract '{contract_name}'.")


def bind_parameters(
    recipe: Recipe, parameters: Tuple[Parameter, ...], values: Optional[Dict[str, Any]]
) -> Dict[str, Any]:
    """Matches supplied values to recipe parameters, in declaration order."""
    values = dict(values or {})
    bound = dict()
    for parameter in parameters:
        value = values.pop(parameter.name, None)
        if value is None and parameter.required:
            raise ValueError(
                f"Missing required parameter '{parameter.name}' for {recipe.contract_name}"
            )
        bound[parameter.name] = value
    if values:
        unexpected = ", ".join(sorted(values))
        raise ValueError(f"Unexpected parameter(s) for {recipe.contract_name}: {unexpected}")
    return bound
