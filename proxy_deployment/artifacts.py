import typing
from pathlib import Path
from typing import Any, Dict, List, Union

from ape.contracts import ContractContainer
from eth_utils import is_hex
from ethpm_types import ContractType, MethodABI
from pydantic import ValidationError

from proxy_deployment.exceptions import ArtifactError
from proxy_deployment.utils import _load_json, get_contract_container

ABI_ENTRY_TYPES = ("function", "constructor", "event", "error", "fallback", "receive")


def _normalize_bytecode(bytecode: Union[str, bytes, Dict[str, Any], None]) -> str:
    """Returns the bytecode as a 0x-prefixed hex string; accepts foundry's {'object': ...}."""
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if isinstance(bytecode, (bytes, bytearray)):
        bytecode = bytecode.hex()
    if not isinstance(bytecode, str):
        raise ArtifactError(f"Bytecode must be a hex string, got {type(bytecode).__name__}.")

    bytecode = bytecode.strip()
    if not bytecode.startswith("0x"):
        bytecode = f"0x{bytecode}"
    if bytecode == "0x":
        raise ArtifactError("Bytecode is empty.")
    if not is_hex(bytecode) or len(bytecode) % 2 != 0:
        raise ArtifactError("Bytecode is not valid hex.")
    return bytecode


def _validate_abi_params(entry_name: str, params: Any, key: str) -> None:
    if not isinstance(params, list):
        raise ArtifactError(f"ABI entry '{entry_name}' has malformed '{key}'.")
    for param in params:
        if not isinstance(param, dict) or not param.get("type"):
            raise ArtifactError(f"ABI entry '{entry_name}' has an untyped parameter in '{key}'.")


def _validate_abi(abi: Any) -> List[Dict[str, Any]]:
    if not isinstance(abi, list):
        raise ArtifactError(f"ABI must be a list of entries, got {type(abi).__name__}.")

    for position, entry in enumerate(abi):
        if not isinstance(entry, dict):
            raise ArtifactError(f"ABI entry at position {position} is not an object.")
        entry_type = entry.get("type", "function")
        if entry_type not in ABI_ENTRY_TYPES:
            raise ArtifactError(f"ABI entry at position {position} has unknown type '{entry_type}'.")
        if entry_type in ("function", "event", "error") and not entry.get("name"):
            raise ArtifactError(f"ABI {entry_type} at position {position} has no name.")

        entry_name = entry.get("name", entry_type)
        _validate_abi_params(entry_name, entry.get("inputs", []), "inputs")
        if entry_type == "function":
            _validate_abi_params(entry_name, entry.get("outputs", []), "outputs")
    return abi


def build_contract_type(name: str, abi: Any, bytecode: typing.Optional[str] = None) -> ContractType:
    """Builds an ethpm ContractType; raises ArtifactError if the ABI is malformed."""
    data = {"contractName": name, "abi": _validate_abi(abi)}
    if bytecode is not None:
        data["deploymentBytecode"] = {"bytecode": bytecode}
    try:
        return ContractType.model_validate(data)
    except ValidationError as e:
        raise ArtifactError(f"Malformed ABI for {name}: {e}") from e


class ContractArtifact(typing.NamedTuple):
    """ABI plus creation bytecode of a compiled contract."""

    name: str
    abi: List[Dict[str, Any]]
    bytecode: str

    @classmethod
    def create(cls, name: str, abi: Any, bytecode: Any) -> "ContractArtifact":
        """Validates the ABI and bytecode; raises ArtifactError if either is unusable."""
        if not name:
            raise ArtifactError("Contract artifact requires a name.")
        artifact = cls(name=name, abi=abi, bytecode=_normalize_bytecode(bytecode))
        build_contract_type(name=name, abi=abi)
        return artifact

    @classmethod
    def from_file(cls, filepath: Path) -> "ContractArtifact":
        """Loads a hardhat or foundry compilation artifact."""
        filepath = Path(filepath)
        if not filepath.exists():
            raise ArtifactError(f"No contract artifact found at {filepath}.")
        try:
            data = _load_json(filepath)
        except ValueError as e:
            raise ArtifactError(f"Contract artifact at {filepath} is not valid JSON: {e}") from e

        if not isinstance(data, dict) or "abi" not in data:
            raise ArtifactError(f"Contract artifact at {filepath} has no 'abi' field.")
        name = data.get("contractName") or filepath.stem
        return cls.create(name=name, abi=data["abi"], bytecode=data.get("bytecode"))

    @classmethod
    def from_container(cls, container: ContractContainer) -> "ContractArtifact":
        """Builds an artifact from a compiled ape project contract."""
        contract_type = container.contract_type
        abi = [entry.model_dump(mode="json", by_alias=True, exclude_none=True) for entry in contract_type.abi]
        bytecode = None
        if contract_type.deployment_bytecode:
            bytecode = contract_type.deployment_bytecode.bytecode
        return cls.create(name=contract_type.name, abi=abi, bytecode=bytecode)

    def validate(self) -> "ContractArtifact":
        """Re-checks an artifact that may have been built without `create`."""
        return self.create(name=self.name, abi=self.abi, bytecode=self.bytecode)

    @property
    def contract_type(self) -> ContractType:
        return build_contract_type(name=self.name, abi=self.abi, bytecode=self.bytecode)

    def to_container(self) -> ContractContainer:
        return ContractContainer(self.contract_type)

    def method_abis(self, method_name: str) -> List[MethodABI]:
        return [abi for abi in self.contract_type.methods if abi.name == method_name]


def load_artifact(
    contract_name: typing.Optional[str] = None, artifact_filepath: typing.Optional[Path] = None
) -> ContractArtifact:
    """Loads an artifact from either a project contract name or an artifact file."""
    if bool(contract_name) == bool(artifact_filepath):
        raise ArtifactError(
            f"Provide either a contract name or an artifact filepath; "
            f"got {contract_name}, {artifact_filepath}"
        )
    if artifact_filepath:
        return ContractArtifact.from_file(artifact_filepath)
    return ContractArtifact.from_container(get_contract_container(contract_name))
