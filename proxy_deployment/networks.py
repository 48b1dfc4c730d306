from ape import networks
from ape.api import ProviderAPI

from proxy_deployment.constants import FORK_NETWORK_SUFFIX, LOCAL_NETWORKS
from proxy_deployment.exceptions import UnreachableNetworkError


def is_local_network() -> bool:
    """Returns True if the active network is a local test network or a local fork."""
    network_name = networks.provider.network.name
    return network_name in LOCAL_NETWORKS or network_name.endswith(FORK_NETWORK_SUFFIX)


def get_connected_provider() -> ProviderAPI:
    """Returns the active provider; raises UnreachableNetworkError if there is none."""
    provider = networks.active_provider
    if provider is None:
        raise UnreachableNetworkError("No active network provider; connect with --network.")
    if not provider.is_connected:
        raise UnreachableNetworkError(f"Provider '{provider.name}' is not connected.")
    return provider
