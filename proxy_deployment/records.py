from typing import Any, NamedTuple, Optional

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from proxy_deployment.exceptions import DeploymentError, VerificationMismatchError

ChainId = int
ContractName = str


def _plain(value: Any) -> Any:
    """Decoded tuples and arrays compare equal to lists with the same items."""
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


class DeploymentRecord(NamedTuple):
    """The three canonical addresses of a proxied contract."""

    contract_name: ContractName
    chain_id: ChainId
    proxy_address: ChecksumAddress
    implementation_address: ChecksumAddress
    admin_address: ChecksumAddress

    @classmethod
    def create(
        cls,
        contract_name: ContractName,
        chain_id: ChainId,
        proxy_address: str,
        implementation_address: str,
        admin_address: str,
    ) -> "DeploymentRecord":
        """Builds a record, ensuring the proxy, implementation and admin are distinct."""
        record = cls(
            contract_name=contract_name,
            chain_id=int(chain_id),
            proxy_address=to_checksum_address(proxy_address),
            implementation_address=to_checksum_address(implementation_address),
            admin_address=to_checksum_address(admin_address),
        )
        addresses = {record.proxy_address, record.implementation_address, record.admin_address}
        if len(addresses) != 3:
            raise DeploymentError(
                f"Proxy ({record.proxy_address}), implementation "
                f"({record.implementation_address}) and admin ({record.admin_address}) "
                f"addresses for {contract_name} must be distinct."
            )
        return record

    def pretty(self) -> str:
        return "\n".join(
            (
                f"{self.contract_name} (chain id {self.chain_id})",
                f"\tproxy={self.proxy_address}",
                f"\timplementation={self.implementation_address}",
                f"\tadmin={self.admin_address}",
            )
        )


class VerificationResult(NamedTuple):
    """
    Decoded return value of a read-only call executed through a proxy.
    implementation_address is None when the EIP1967 implementation slot is empty.
    """

    proxy_address: ChecksumAddress
    implementation_address: Optional[ChecksumAddress]
    method: str
    value: Any

    def confirm(self, expected: Any) -> "VerificationResult":
        if _plain(self.value) != _plain(expected):
            raise VerificationMismatchError(
                f"{self.method}() through proxy {self.proxy_address} returned "
                f"{self.value!r}, expected {expected!r}."
            )
        return self

    def pretty(self) -> str:
        return (
            f"{self.method}() through proxy {self.proxy_address} "
            f"(implementation {self.implementation_address or 'unknown'}) returned {self.value!r}"
        )
