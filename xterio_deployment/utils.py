import os
from pathlib import Path
from typing import Any

import yaml
from ape import project
from ape.contracts import ContractContainer

from xterio_deployment.constants import ETHERSCAN_API_KEY_ENVVAR
from xterio_deployment.networks import is_local_network


class UnknownContract(ValueError):
    """Raised when a contract name is not part of the compiled artifacts."""


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def address_of(value: Any) -> Any:
    """Returns the address of an account or contract, or the value itself."""
    address = getattr(value, "address", None)
    return value if address is None else address


def check_etherscan_plugin() -> None:
    """
    Checks that the ape-etherscan plugin is installed and that
    the explorer API key environment variable is set.
    """
    if is_local_network():
        # unnecessary for local deployment
        return
    try:
        import ape_etherscan  # noqa: F401
    except ImportError:
        raise ImportError("Please install the ape-etherscan plugin to use this script.")
    api_key = os.environ.get(ETHERSCAN_API_KEY_ENVVAR)
    if not api_key:
        raise ValueError(f"{ETHERSCAN_API_KEY_ENVVAR} is not set.")


def check_plugins(verify: bool = True) -> None:
    print("Checking plugins...")
    if verify:
        check_etherscan_plugin()


def _get_dependency_contract_container(contract: str) -> ContractContainer:
    for dependency_name, dependency_versions in project.dependencies.items():
        if len(dependency_versions) > 1:
            raise UnknownContract(f"Ambiguous {dependency_name} dependency for {contract}")
        try:
            dependency_api = list(dependency_versions.values())[0]
            contract_container = getattr(dependency_api, contract)
            return contract_container
        except AttributeError:
            continue
    raise UnknownContract(f"No contract found with name '{contract}'.")


def get_contract_container(contract: str) -> ContractContainer:
    try:
        contract_container = getattr(project, contract)
    except AttributeError:
        # not in root project; check dependencies
        contract_container = _get_dependency_contract_container(contract)

    return contract_container
