from typing import Any, Dict

from ape.utils import ZERO_ADDRESS


def _confirm(prompt: str) -> bool:
    """Asks the operator a yes/no question; anything but yes declines."""
    answer = input(f"{prompt} Y/N? ")
    return answer.lower().strip() in ("y", "yes")


def confirm_deployment(label: str, params: Dict[str, Any]) -> bool:
    """Asks the operator to confirm the resolved parameters of a deployment."""
    if len(params) == 0:
        print(f"\n(i) No parameters for {label}")
        return _confirm(f"Deploy {label}")

    print(f"\nParameters for {label}")
    contains_zero_address = False
    for name, value in params.items():
        print(f"\t{name}={value}")
        if not contains_zero_address:
            contains_zero_address = value == ZERO_ADDRESS
    if not _confirm(f"Deploy {label}"):
        return False
    if contains_zero_address:
        return _confirm("Zero Address detected for deployment parameter; Continue?")
    return True
