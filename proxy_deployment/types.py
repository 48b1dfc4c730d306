import click
from eth_utils import is_address, to_checksum_address


class ChecksumAddress(click.ParamType):
    """Accepts any hex address and normalizes it to its checksum form."""

    name = "checksum_address"

    def convert(self, value, param, ctx):
        if not is_address(value):
            self.fail(f"'{value}' is not an ethereum address.", param, ctx)
        return to_checksum_address(value)
