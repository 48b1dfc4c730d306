import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from proxy_deployment.artifacts import load_artifact
from proxy_deployment.deployer import ProxyDeployer
from proxy_deployment.options import (
    artifact_filepath_option,
    autosign_option,
    contract_name_option,
    proxy_address_option,
    publish_option,
)


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@proxy_address_option
@contract_name_option
@artifact_filepath_option
@click.option(
    "--initializer",
    "-i",
    help="Argument-less method to call on the proxy while upgrading (e.g. reinitialize)",
    type=click.STRING,
    required=False,
)
@autosign_option
@publish_option
def cli(
    network,
    account,
    proxy_address,
    contract_name,
    artifact_filepath,
    initializer,
    autosign,
    publish,
):
    """Upgrade a TransparentUpgradeableProxy to a new implementation."""
    if not (bool(contract_name) ^ bool(artifact_filepath)):
        raise click.BadOptionUsage(
            option_name="--contract-name",
            message=(
                f"Provide either 'contract-name' or 'artifact-filepath'; "
                f"got {contract_name}, {artifact_filepath}"
            ),
        )

    artifact = load_artifact(contract_name=contract_name, artifact_filepath=artifact_filepath)
    deployer = ProxyDeployer(account=account, autosign=autosign, publish=publish)
    record = deployer.upgrade(artifact, proxy_address, initializer=initializer)
    print(f"\n{record.pretty()}")


if __name__ == "__main__":
    cli()
