"""
Post-deployment verification: a read-only call issued through the proxy address,
so it always exercises whatever implementation the proxy currently delegates to.
"""

import json
import typing
from contextlib import contextmanager
from typing import Any, List, Optional, Union

import requests
from ape.api import AccountAPI, ProviderAPI
from ape.contracts import ContractInstance
from ape.exceptions import ContractLogicError
from ape.exceptions import DecodingError as ApeDecodingError
from ape.exceptions import ProviderNotConnectedError, VirtualMachineError
from eth_abi.exceptions import DecodingError as AbiDecodingError
from eth_utils import to_checksum_address
from hexbytes import HexBytes
from ethpm_types import ContractType, MethodABI

from proxy_deployment.artifacts import ContractArtifact, build_contract_type
from proxy_deployment.constants import READ_ONLY_MUTABILITIES
from proxy_deployment.exceptions import (
    CallRevertedError,
    DecodingError,
    ProxyStorageError,
    UnreachableNetworkError,
    VerificationError,
)
from proxy_deployment.networks import get_connected_provider
from proxy_deployment.records import DeploymentRecord, VerificationResult
from proxy_deployment.storage import get_implementation_address

ABI = List[typing.Dict[str, Any]]


@contextmanager
def _calling(description: str):
    try:
        yield
    except (ProviderNotConnectedError, requests.exceptions.ConnectionError) as e:
        raise UnreachableNetworkError(f"{description} failed, network unreachable: {e}") from e
    except (ContractLogicError, VirtualMachineError) as e:
        raise CallRevertedError(f"{description} reverted: {e}") from e
    except (ApeDecodingError, AbiDecodingError) as e:
        raise DecodingError(f"{description} returned undecodable data: {e}") from e


def _contract_type(abi: Union[ABI, ContractArtifact, ContractType]) -> ContractType:
    if isinstance(abi, ContractType):
        return abi
    if isinstance(abi, ContractArtifact):
        return abi.contract_type
    return build_contract_type(name="VerifiedContract", abi=abi)


def _read_only_method(contract_type: ContractType, method_name: str) -> MethodABI:
    method_abis = [abi for abi in contract_type.methods if abi.name == method_name]
    if not method_abis:
        raise VerificationError(f"Method '{method_name}' not found in {contract_type.name} ABI.")
    for abi in method_abis:
        if abi.stateMutability in READ_ONLY_MUTABILITIES:
            return abi
    raise VerificationError(
        f"Method '{method_name}' of {contract_type.name} mutates state; "
        "verification requires a view or pure method."
    )


def _check_code(proxy_address: str, provider: ProviderAPI) -> None:
    with _calling(f"Code lookup at {proxy_address}"):
        code = provider.get_code(proxy_address)
    if not code:
        raise CallRevertedError(f"No contract code at {proxy_address}; nothing to call.")


def verify(
    proxy_address: str,
    abi: Union[ABI, ContractArtifact, ContractType],
    account: AccountAPI,
    method_name: str,
    *args,
) -> VerificationResult:
    """
    Calls a read-only method through the proxy from the given account and
    returns the decoded output. No transaction is sent.
    """
    contract_type = _contract_type(abi)
    method_abi = _read_only_method(contract_type, method_name)
    if len(method_abi.inputs) != len(args):
        raise VerificationError(
            f"{method_name} expects {len(method_abi.inputs)} arg(s), got {len(args)}."
        )

    provider = get_connected_provider()
    proxy_address = to_checksum_address(proxy_address)
    _check_code(proxy_address, provider)
    try:
        implementation_address = get_implementation_address(proxy_address, provider=provider)
    except ProxyStorageError:
        # not an EIP1967 proxy; the call below still decides the outcome
        implementation_address = None

    proxy_contract = ContractInstance(proxy_address, contract_type)
    method_handler = getattr(proxy_contract, method_name)
    with _calling(f"{contract_type.name}.{method_name} through proxy {proxy_address}"):
        value = method_handler(*args, sender=account.address)

    result = VerificationResult(
        proxy_address=proxy_address,
        implementation_address=implementation_address,
        method=method_name,
        value=value,
    )
    print(result.pretty())
    return result


def verify_deployment(
    record: DeploymentRecord,
    abi: Union[ABI, ContractArtifact, ContractType],
    account: AccountAPI,
    method_name: str,
    *args,
    expected: Optional[Any] = None,
) -> VerificationResult:
    """Verifies the proxy of a fresh deployment; optionally confirms the returned value."""
    result = verify(record.proxy_address, abi, account, method_name, *args)
    if result.implementation_address not in (None, record.implementation_address):
        print(
            f"(i) Proxy {record.proxy_address} now delegates to {result.implementation_address} "
            f"(recorded implementation {record.implementation_address})."
        )
    if expected is not None:
        result.confirm(expected)
        print(f"(i) {method_name}() matches expected value {expected!r}.")
    return result


def _invalid_expected(value: Any, abi_type: str) -> VerificationError:
    return VerificationError(f"Expected value {value!r} is not a valid {abi_type}.")


def _parse_scalar(abi_type: str, text: str) -> Any:
    try:
        if abi_type == "address":
            return to_checksum_address(text)
        if abi_type.startswith("bytes"):
            return HexBytes(text)
        if abi_type == "string":
            return text
        if abi_type == "bool":
            if text.strip().lower() in ("true", "false"):
                return text.strip().lower() == "true"
        elif abi_type.startswith(("int", "uint")):
            return int(text, 0)
    except ValueError:
        pass
    raise _invalid_expected(text, abi_type)


def _coerce(abi_type: str, components: Optional[List[Any]], value: Any) -> Any:
    if abi_type.endswith("]"):
        if not isinstance(value, list):
            raise _invalid_expected(value, abi_type)
        item_type = abi_type[: abi_type.rindex("[")]
        return [_coerce(item_type, components, item) for item in value]
    if abi_type == "tuple":
        components = components or []
        if not isinstance(value, list) or len(value) != len(components):
            raise _invalid_expected(value, abi_type)
        return [_coerce(c.type, c.components, item) for c, item in zip(components, value)]
    if isinstance(value, str):
        return _parse_scalar(abi_type, value)
    if abi_type == "bool" and isinstance(value, bool):
        return value
    is_integer = isinstance(value, int) and not isinstance(value, bool)
    if abi_type.startswith(("int", "uint")) and is_integer:
        return value
    raise _invalid_expected(value, abi_type)


def parse_expected(
    abi: Union[ABI, ContractArtifact, ContractType], method_name: str, text: str
) -> Any:
    """
    Converts a command line value into the Python form of the method's output.

    Single scalar outputs are written as-is (``42``, ``true``, ``0xAbC...``).
    Arrays, tuples and multiple outputs are JSON lists, e.g. ``[1, "0xAbC...", true]``.
    """
    method_abi = _read_only_method(_contract_type(abi), method_name)
    outputs = method_abi.outputs
    if len(outputs) == 1 and not (outputs[0].type.endswith("]") or outputs[0].type == "tuple"):
        return _parse_scalar(outputs[0].type, text)

    try:
        value = json.loads(text)
    except ValueError as e:
        raise VerificationError(f"Expected value {text!r} is not a JSON list: {e}") from e
    if len(outputs) == 1:
        return _coerce(outputs[0].type, outputs[0].components, value)
    return _coerce("tuple", outputs, value)
