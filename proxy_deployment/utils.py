import json
import os
from pathlib import Path
from typing import Dict

import yaml
from ape import networks, project
from ape.contracts import ContractContainer

from proxy_deployment.constants import OZ_DEPENDENCY_NAME, OZ_DEPENDENCY_VERSION
from proxy_deployment.exceptions import ArtifactError, DeploymentConfigError
from proxy_deployment.networks import is_local_network

ETHERSCAN_API_KEY_ENVVAR = "ETHERSCAN_API_KEY"


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def validate_config(config: Dict) -> int:
    """
    Checks the structure of a deployment parameters file and that its chain_id
    matches the connected network. Returns the configured chain_id.
    """
    print("Validating parameters YAML...")
    if not isinstance(config, dict):
        raise DeploymentConfigError("Deployment parameters must be a mapping.")

    deployment = config.get("deployment")
    if not deployment:
        raise DeploymentConfigError("deployment is not set in params file.")

    config_chain_id = deployment.get("chain_id")
    if not config_chain_id:
        raise DeploymentConfigError("chain_id is not set in params file.")

    has_contract, has_artifact = bool(config.get("contract")), bool(config.get("artifact"))
    if has_contract == has_artifact:
        raise DeploymentConfigError(
            "Exactly one of 'contract' (project contract name) or 'artifact' "
            "(artifact filepath) must be set in params file."
        )

    config_chain_id = int(config_chain_id)
    connected_chain_id = networks.provider.network.chain_id
    chain_mismatch = config_chain_id != connected_chain_id
    if chain_mismatch and not is_local_network():
        raise DeploymentConfigError(
            f"chain_id in params file ({config_chain_id}) does not match "
            f"chain_id of current network ({connected_chain_id})."
        )

    return config_chain_id


def check_etherscan_plugin() -> None:
    """
    Checks that the ape-etherscan plugin is installed and that
    the API key environment variable is set.
    """
    if is_local_network():
        # unnecessary for local deployment
        return
    try:
        import ape_etherscan  # noqa: F401
    except ImportError:
        raise ImportError("Please install the ape-etherscan plugin to publish contracts.")
    if networks.provider.network.explorer is None:
        raise ValueError(f"No explorer available for network {networks.provider.network.name}.")
    if not os.environ.get(ETHERSCAN_API_KEY_ENVVAR):
        raise ValueError(f"{ETHERSCAN_API_KEY_ENVVAR} is not set.")


def check_plugins() -> None:
    print("Checking plugins...")
    check_etherscan_plugin()


def get_oz_dependency():
    """Returns the OpenZeppelin dependency declared in ape-config.yaml."""
    return project.dependencies[OZ_DEPENDENCY_NAME][OZ_DEPENDENCY_VERSION]


def _get_dependency_contract_container(contract: str) -> ContractContainer:
    matches = []
    for dependency_name, dependency_versions in project.dependencies.items():
        for version, dependency_api in dependency_versions.items():
            container = getattr(dependency_api, contract, None)
            if container is not None:
                matches.append((f"{dependency_name}@{version}", container))

    if not matches:
        raise ArtifactError(f"No project or dependency contract named '{contract}'.")
    if len(matches) > 1:
        sources = ", ".join(source for source, _ in matches)
        raise ArtifactError(f"Ambiguous contract '{contract}', found in {sources}.")
    return matches[0][1]


def get_contract_container(contract: str) -> ContractContainer:
    """Looks a contract up in the root project first, then in its dependencies."""
    container = getattr(project, contract, None)
    if container is None:
        container = _get_dependency_contract_container(contract)
    return container
