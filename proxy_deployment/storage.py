"""
Typed accessors for the EIP1967 storage slots of a proxy.

Addresses are read straight from the proxy's storage rather than through any
contract function, so the proxied contract's own functions can never shadow them.
"""

from typing import Optional

import requests
from ape.api import ProviderAPI
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from hexbytes import HexBytes

from proxy_deployment.constants import (
    EIP1967_ADMIN_SLOT,
    EIP1967_BEACON_SLOT,
    EIP1967_IMPLEMENTATION_SLOT,
)
from proxy_deployment.exceptions import ProxyStorageError, UnreachableNetworkError
from proxy_deployment.networks import get_connected_provider

SLOT_NAMES = {
    EIP1967_IMPLEMENTATION_SLOT: "implementation",
    EIP1967_ADMIN_SLOT: "admin",
    EIP1967_BEACON_SLOT: "beacon",
}


def read_storage_slot(
    address: str, slot: int, provider: Optional[ProviderAPI] = None
) -> ChecksumAddress:
    """Reads an address stored in the lower 20 bytes of a storage slot."""
    provider = provider or get_connected_provider()
    try:
        raw_value = provider.web3.eth.get_storage_at(to_checksum_address(address), slot)
    except requests.exceptions.ConnectionError as e:
        raise UnreachableNetworkError(f"Could not read storage of {address}: {e}") from e

    value = HexBytes(raw_value).rjust(32, b"\x00")
    if not any(value):
        slot_name = SLOT_NAMES.get(slot, hex(slot))
        raise ProxyStorageError(
            f"The {slot_name} slot of contract at {address} is empty. "
            "Are you sure this is an EIP1967-compatible proxy?"
        )
    return to_checksum_address(value[-20:])


def get_implementation_address(
    proxy_address: str, provider: Optional[ProviderAPI] = None
) -> ChecksumAddress:
    return read_storage_slot(proxy_address, EIP1967_IMPLEMENTATION_SLOT, provider=provider)


def get_admin_address(proxy_address: str, provider: Optional[ProviderAPI] = None) -> ChecksumAddress:
    return read_storage_slot(proxy_address, EIP1967_ADMIN_SLOT, provider=provider)
