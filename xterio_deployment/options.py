import click

from xterio_deployment.constants import SKIP_VERIFY_ENVVAR, VERIFY_ADDRESS_ENVVAR
from xterio_deployment.params import TxOverrides
from xterio_deployment.runner import RunConfig
from xterio_deployment.types import ChecksumAddress


class TxInt(click.ParamType):
    """A transaction integer (gas limit, nonce) with a lower bound."""

    name = "txint"

    def __init__(self, min_value: int):
        self.min_value = min_value

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            number = value
        else:
            try:
                number = int(str(value).replace("_", ""))
            except ValueError:
                self.fail(f"{value} is not a whole number", param, ctx)
        if number < self.min_value:
            self.fail(f"{value} is less than the minimum of {self.min_value}", param, ctx)
        return number


skip_verify_option = click.option(
    "--skip-verify",
    help="Do not submit contract sources to the block explorer.",
    is_flag=True,
    default=False,
    envvar=SKIP_VERIFY_ENVVAR,
)

verify_address_option = click.option(
    "--verify-address",
    help="Address of an existing deployment; skips deployment and only verifies it.",
    type=ChecksumAddress(),
    required=False,
    envvar=VERIFY_ADDRESS_ENVVAR,
)

autosign_option = click.option(
    "--autosign",
    help="Sign transactions automatically.",
    is_flag=True,
    default=False,
)

gas_price_option = click.option(
    "--gas-price",
    help="Gas price for every transaction, e.g. '30 gwei'.",
    type=str,
    required=False,
)

max_fee_option = click.option(
    "--max-fee",
    help="EIP-1559 max fee per gas for every transaction.",
    type=str,
    required=False,
)

max_priority_fee_option = click.option(
    "--max-priority-fee",
    help="EIP-1559 max priority fee per gas for every transaction.",
    type=str,
    required=False,
)

gas_limit_option = click.option(
    "--gas-limit",
    help="Gas limit for every transaction.",
    type=TxInt(21000),
    required=False,
)

nonce_option = click.option(
    "--nonce",
    help="Nonce of the first transaction; later transactions use the following nonces.",
    type=TxInt(0),
    required=False,
)

gateway_option = click.option(
    "--gateway",
    "-g",
    help="Address of the TokenGateway proxy.",
    type=ChecksumAddress(),
    required=True,
)


def tx_override_options(func):
    """Adds the transaction override options to a command."""
    for option in reversed(
        (gas_price_option, max_fee_option, max_priority_fee_option, gas_limit_option, nonce_option)
    ):
        func = option(func)
    return func


def run_options(func):
    """Adds the verification, signing and transaction override options to a command."""
    for option in reversed((skip_verify_option, verify_address_option, autosign_option)):
        func = option(func)
    return tx_override_options(func)


def tx_overrides_from_options(
    gas_price=None, max_fee=None, max_priority_fee=None, gas_limit=None, nonce=None
) -> TxOverrides:
    return TxOverrides(
        gas_price=gas_price,
        max_fee=max_fee,
        max_priority_fee=max_priority_fee,
        gas_limit=gas_limit,
        nonce=nonce,
    )


def run_config_from_options(skip_verify=False, verify_address=None) -> RunConfig:
    return RunConfig(skip_verify=skip_verify, verify_address=verify_address)
