import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from proxy_deployment.artifacts import load_artifact
from proxy_deployment.options import (
    artifact_filepath_option,
    contract_name_option,
    expected_option,
    method_option,
    proxy_address_option,
)
from proxy_deployment.verification import parse_expected, verify


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@proxy_address_option
@contract_name_option
@artifact_filepath_option
@method_option
@expected_option
def cli(network, account, proxy_address, contract_name, artifact_filepath, method, expected):
    """Verify a previously deployed proxy with a read-only call."""
    if not (bool(contract_name) ^ bool(artifact_filepath)):
        raise click.BadOptionUsage(
            option_name="--contract-name",
            message=(
                f"Provide either 'contract-name' or 'artifact-filepath'; "
                f"got {contract_name}, {artifact_filepath}"
            ),
        )

    artifact = load_artifact(contract_name=contract_name, artifact_filepath=artifact_filepath)
    expected_value = None
    if expected is not None:
        expected_value = parse_expected(artifact, method, expected)

    result = verify(proxy_address, artifact, account, method)
    if expected is not None:
        result.confirm(expected_value)
        print(f"(i) {method}() matches expected value {expected_value!r}.")


if __name__ == "__main__":
    cli()
