import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from proxy_deployment.deployer import ProxyDeployer
from proxy_deployment.options import autosign_option, params_filepath_option, publish_option
from proxy_deployment.verification import verify_deployment


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@params_filepath_option
@autosign_option
@publish_option
def cli(network, account, params_filepath, autosign, publish):
    """
    Deploy a contract behind a TransparentUpgradeableProxy, then verify
    the freshly deployed proxy with the read-only call from the parameters file.

    ape run deploy_proxy --network ethereum:sepolia:infura -p proxy_deployment/params/box.yml
    """
    deployer = ProxyDeployer.from_yaml(
        filepath=params_filepath, account=account, autosign=autosign, publish=publish
    )
    record = deployer.deploy_from_parameters()

    parameters = deployer.parameters
    if parameters.verification_method:
        verify_deployment(
            record,
            parameters.get_artifact(),
            account,
            parameters.verification_method,
            *parameters.resolve_verification_args(),
            expected=parameters.resolve_verification_expected(),
        )

    print(f"\n{record.pretty()}")


if __name__ == "__main__":
    cli()
