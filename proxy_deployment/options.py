from pathlib import Path

import click

from proxy_deployment.types import ChecksumAddress

params_filepath_option = click.option(
    "--params-filepath",
    "-p",
    help="Deployment parameters YAML file",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=True,
)

proxy_address_option = click.option(
    "--proxy-address",
    "-x",
    help="Address of the transparent proxy",
    type=ChecksumAddress(),
    required=True,
)

contract_name_option = click.option(
    "--contract-name",
    "-c",
    help="Name of the project contract behind the proxy",
    type=click.STRING,
    required=False,
)

artifact_filepath_option = click.option(
    "--artifact-filepath",
    "-f",
    help="Hardhat or foundry artifact of the contract behind the proxy",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=False,
)

method_option = click.option(
    "--method",
    "-m",
    help="Read-only method to call through the proxy",
    type=click.STRING,
    required=True,
)

expected_option = click.option(
    "--expected",
    "-e",
    help=(
        "Expected return value of the verification call; "
        "arrays, tuples and multiple outputs as a JSON list"
    ),
    type=click.STRING,
    required=False,
)

autosign_option = click.option(
    "--autosign",
    help="Automatically sign transactions and skip confirmations",
    is_flag=True,
    default=False,
)

publish_option = click.option(
    "--publish",
    help="Publish contract sources to the network's block explorer",
    is_flag=True,
    default=False,
)
