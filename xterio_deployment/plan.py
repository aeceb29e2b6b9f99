import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

from eth_typing import ChecksumAddress

from xterio_deployment.constants import PLANS_DIR
from xterio_deployment.orchestration import DeployedContract, RecipeExecution
from xterio_deployment.params import Deployer
from xterio_deployment.recipes import Recipe, recipe_for_contract
from xterio_deployment.utils import _load_yaml


class PlanError(ValueError):
    """Raised when a deployment plan is malformed."""


class PlanContext:
    """Addresses available while a plan runs: the deployer, constants and earlier deployments."""

    def __init__(
        self,
        deployer_address: ChecksumAddress,
        constants: typing.Dict[str, Any] = None,
        deployments: typing.Dict[str, DeployedContract] = None,
    ):
        self.deployer_address = deployer_address
        self.constants = constants or dict()
        self.deployments = deployments if deployments is not None else OrderedDict()


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self, context: PlanContext) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        result = isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)
        return result


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self, context: PlanContext) -> Any:
        return context.deployer_address


class Constant(Variable):
    def __init__(self, constant_name: str, constants: typing.Dict[str, Any]):
        try:
            self.constant_value = constants[constant_name]
        except KeyError:
            raise PlanError(f"Constant '{constant_name}' not found in deployment plan.")

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Returns True if the variable is a plan constant."""
        return value.isupper()

    def resolve(self, context: PlanContext) -> Any:
        return self.constant_value


class ContractReference(Variable):
    """The address of a contract deployed by an earlier entry of the plan."""

    def __init__(self, contract_name: str, deployed_before: Sequence[str], referrer: str):
        if contract_name not in deployed_before:
            raise PlanError(
                f"{referrer} references '{contract_name}', "
                f"which is not deployed earlier in the plan."
            )
        self.contract_name = contract_name

    def resolve(self, context: PlanContext) -> Any:
        return context.deployments[self.contract_name].address


def _variable_from_value(
    variable: str, constants: Dict[str, Any], deployed_before: Sequence[str], referrer: str
) -> Variable:
    variable = variable[len(Variable.VARIABLE_PREFIX) :]
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount()
    elif Constant.is_constant(variable):
        return Constant(variable, constants)
    else:
        return ContractReference(variable, deployed_before, referrer)


def _process_raw_value(
    value: Any, constants: Dict[str, Any], deployed_before: Sequence[str], referrer: str
) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, constants, deployed_before, referrer) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, constants, deployed_before, referrer)

    return value


def _resolve_param(value: Any, context: PlanContext) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v, context) for v in value]

    if isinstance(value, Variable):
        return value.resolve(context)

    return value  # literally a value


class PlanEntry(NamedTuple):
    recipe: Recipe
    arguments: Dict[str, Any]
    settings: Dict[str, Any]

    def resolve(self, context: PlanContext) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        arguments = {name: _resolve_param(v, context) for name, v in self.arguments.items()}
        settings = {name: _resolve_param(v, context) for name, v in self.settings.items()}
        return arguments, settings


def _split_values(recipe: Recipe, values: Dict[str, Any]) -> Tuple[Dict, Dict]:
    unexpected = set(values) - set(recipe.parameter_names)
    if unexpected:
        raise PlanError(
            f"Unexpected parameter(s) for {recipe.contract_name}: {', '.join(sorted(unexpected))}"
        )

    arguments, settings = OrderedDict(), OrderedDict()
    for parameters, bucket in ((recipe.arguments, arguments), (recipe.settings, settings)):
        for parameter in parameters:
            if parameter.name in values:
                bucket[parameter.name] = values[parameter.name]
            elif parameter.required:
                raise PlanError(
                    f"Missing required parameter '{parameter.name}' for {recipe.contract_name}."
                )
    return arguments, settings


def plan_filepath(name: str) -> Path:
    """Returns the path of a plan, given either a filepath or the name of a bundled plan."""
    filepath = Path(name)
    if filepath.exists():
        return filepath
    bundled = PLANS_DIR / f"{name}.yml"
    if not bundled.exists():
        raise PlanError(f"No deployment plan found for '{name}'")
    return bundled


class DeploymentPlan:
    """
    An ordered list of recipes with their parameters. Parameters can be literal
    values or variables: `$deployer`, `$CONSTANT_NAME` or `$ContractName` for
    the address of a contract deployed by an earlier entry.
    """

    def __init__(
        self,
        entries: List[PlanEntry],
        chain_id: int,
        constants: Optional[Dict[str, Any]] = None,
        path: Optional[Path] = None,
    ):
        self.entries = entries
        self.chain_id = chain_id
        self.constants = constants or dict()
        self.path = path

    @property
    def name(self) -> str:
        return self.path.stem if self.path else "deployment plan"

    @classmethod
    def from_yaml(cls, filepath: Path) -> "DeploymentPlan":
        config = _load_yaml(filepath)
        return cls.from_config(config, path=filepath)

    @classmethod
    def from_config(cls, config: typing.Dict, path: Optional[Path] = None) -> "DeploymentPlan":
        print("Processing deployment plan...")
        if not isinstance(config, dict):
            raise PlanError("Malformed deployment plan YAML.")

        deployment = config.get("deployment")
        if not deployment:
            raise PlanError("deployment is not set in plan file.")
        chain_id = deployment.get("chain_id")
        if not chain_id:
            raise PlanError("chain_id is not set in plan file.")

        contracts = config.get("contracts")
        if not contracts:
            raise PlanError("Plan file missing 'contracts' field.")

        constants = config.get("constants") or dict()
        entries = list()
        deployed_before = list()
        for contract_info in contracts:
            if isinstance(contract_info, str):
                contract_name, values = contract_info, dict()
            elif isinstance(contract_info, dict) and len(contract_info) == 1:
                contract_name = list(contract_info.keys())[0]  # only one entry
                values = contract_info[contract_name] or dict()
            else:
                raise PlanError("Malformed deployment plan YAML.")
            if not isinstance(values, dict):
                raise PlanError(f"Malformed deployment plan YAML: {contract_name} parameters.")

            if contract_name in deployed_before:
                raise PlanError(f"{contract_name} is deployed more than once in the plan.")

            recipe = recipe_for_contract(contract_name)
            processed = OrderedDict(
                (name, _process_raw_value(value, constants, deployed_before, contract_name))
                for name, value in values.items()
            )
            arguments, settings = _split_values(recipe, processed)
            entries.append(PlanEntry(recipe=recipe, arguments=arguments, settings=settings))
            deployed_before.append(contract_name)

        return cls(entries=entries, chain_id=int(chain_id), constants=constants, path=path)

    def validate_chain(self, chain_id: int, live: bool) -> None:
        """Checks that the plan targets the connected chain; development chains are exempt."""
        if live and self.chain_id != chain_id:
            raise PlanError(
                f"chain_id in plan file ({self.chain_id}) does not match "
                f"chain_id of current network ({chain_id})."
            )

    def summary(self) -> Dict[str, str]:
        summary = OrderedDict()
        for index, entry in enumerate(self.entries, start=1):
            values = {**entry.arguments, **entry.settings}
            pretty_values = ", ".join(f"{k}={_describe(v)}" for k, v in values.items())
            summary[f"{index}. {entry.recipe.contract_name}"] = pretty_values or "-"
        return summary

    def execute(self, deployer: Deployer) -> List[DeployedContract]:
        context = PlanContext(
            deployer_address=deployer.get_account().address, constants=self.constants
        )
        for entry in self.entries:
            arguments, settings = entry.resolve(context)
            deployed = RecipeExecution(deployer, entry.recipe).run(arguments, settings)
            context.deployments[entry.recipe.contract_name] = deployed
        return list(context.deployments.values())


def _describe(value: Any) -> str:
    if isinstance(value, list):
        return f"[{', '.join(_describe(v) for v in value)}]"
    if isinstance(value, DeployerAccount):
        return "$deployer"
    if isinstance(value, Constant):
        return str(value.constant_value)
    if isinstance(value, ContractReference):
        return f"${value.contract_name}"
    return str(value)
