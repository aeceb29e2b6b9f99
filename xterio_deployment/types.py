import click
from eth_utils import to_checksum_address


class ChecksumAddress(click.ParamType):
    """An address option; blank values mean "not given"."""

    name = "checksum_address"

    def convert(self, value, param, ctx):
        if value is None or value == "":
            return None
        try:
            value = to_checksum_address(value=value)
        except ValueError:
            self.fail(f"{value} is not a valid ethereum address", param, ctx)
        else:
            return value
