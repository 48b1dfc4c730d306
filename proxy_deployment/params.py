import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, List, Optional

from ape.api import AccountAPI
from ape.utils import ZERO_ADDRESS
from ethpm_types import MethodABI
from web3.auto import w3

from proxy_deployment.artifacts import ContractArtifact, load_artifact
from proxy_deployment.constants import DEFAULT_INITIALIZER, READ_ONLY_MUTABILITIES
from proxy_deployment.exceptions import DeploymentConfigError, InitializationError

INITIALIZER_KEY = "initializer"
PROXY_KEY = "proxy"
VERIFICATION_KEY = "verification"
CONSTANTS_KEY = "constants"

PROXY_OWNER_PARAMETER = "initialOwner"
IMPLICIT_PROXY_PARAMETERS = ("_logic", "_data")


class VariableContext:
    def __init__(
        self,
        constants: typing.Dict[str, Any] = None,
        account: Optional[AccountAPI] = None,
    ):
        self.constants = constants or dict()
        self.account = account


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        return isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    def __init__(self, context: VariableContext):
        self.account = context.account

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self) -> Any:
        if self.account is None:
            return ZERO_ADDRESS
        return self.account.address


class Constant(Variable):
    def __init__(self, constant_name: str, context: VariableContext):
        try:
            self.constant_value = context.constants[constant_name]
        except KeyError:
            raise DeploymentConfigError(f"Constant '{constant_name}' not found in deployment file.")

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Returns True if the variable is a deployment constant."""
        return value.isupper()

    def resolve(self) -> Any:
        return self.constant_value


def _variable_from_value(variable: str, context: VariableContext) -> Variable:
    variable = variable[len(Variable.VARIABLE_PREFIX) :]
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount(context)
    elif Constant.is_constant(variable):
        return Constant(variable, context)
    raise DeploymentConfigError(f"Unknown variable '${variable}' in deployment file.")


def _process_raw_value(value: Any, context: VariableContext) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, context) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, context)

    return value


def _resolve_param(value: Any) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v) for v in value]

    if isinstance(value, Variable):
        return value.resolve()

    return value  # literally a value


def _validate_method_args(
    method_abis: List[MethodABI], args: typing.Sequence[Any]
) -> typing.Dict[str, Any]:
    """Validates the transaction arguments against the function ABI."""
    if len(method_abis) == 0:
        raise ValueError("No method abis provided for validation of args")

    abis_matching_args_length = [abi for abi in method_abis if len(abi.inputs) == len(args)]
    for abi in abis_matching_args_length:
        named_args = {}
        for position, (arg, abi_input) in enumerate(zip(args, abi.inputs)):
            if not w3.is_encodable(abi_input.type, arg):
                break
            named_args[abi_input.name or f"arg{position}"] = arg
        else:
            return named_args
    raise ValueError(
        f"Could not find ABI for '{method_abis[0].name}' with {len(args)} arg(s) and given type(s)"
    )


def validate_initializer_args(
    artifact: ContractArtifact,
    method_name: str,
    args: typing.Sequence[Any],
    required: bool = True,
) -> typing.Dict[str, Any]:
    """
    Validates initializer arguments against the artifact's ABI without touching the network.
    A missing initializer is only acceptable when it is not required and there are no arguments.
    """
    method_abis = artifact.method_abis(method_name)
    if not method_abis:
        if required or args:
            raise InitializationError(
                f"{artifact.name} has no initializer '{method_name}' "
                f"({len(args)} initializer arg(s) given)."
            )
        return dict()

    for abi in method_abis:
        if abi.stateMutability in READ_ONLY_MUTABILITIES:
            raise InitializationError(
                f"{artifact.name}.{method_name} is read-only and cannot be used as initializer."
            )
    try:
        return _validate_method_args(method_abis=method_abis, args=args)
    except ValueError as e:
        raise InitializationError(f"{artifact.name}: {e}") from e


class DeploymentParameters:
    """Represents the parameters for deploying and verifying a single proxied contract."""

    def __init__(
        self,
        chain_id: int,
        initializer_method: str,
        initializer_args: List[Any],
        proxy_params: OrderedDict,
        contract_name: Optional[str] = None,
        artifact_filepath: Optional[Path] = None,
        verification_method: Optional[str] = None,
        verification_args: Optional[List[Any]] = None,
        verification_expected: Any = None,
    ):
        self.chain_id = chain_id
        self.contract_name = contract_name
        self.artifact_filepath = artifact_filepath
        self.initializer_method = initializer_method
        self.initializer_args = initializer_args
        self.proxy_params = proxy_params
        self.verification_method = verification_method
        self.verification_args = verification_args or list()
        self.verification_expected = verification_expected

    @classmethod
    def from_config(
        cls,
        config: typing.Dict,
        account: Optional[AccountAPI] = None,
        base_path: Optional[Path] = None,
    ) -> "DeploymentParameters":
        """Processes the deployment parameters of a YAML config."""
        print("Processing deployment parameters...")
        constants = config.get(CONSTANTS_KEY) or dict()
        if not isinstance(constants, dict):
            raise DeploymentConfigError("Malformed 'constants' in deployment file.")
        context = VariableContext(constants=constants, account=account)

        artifact_filepath = config.get("artifact")
        if artifact_filepath:
            artifact_filepath = Path(artifact_filepath)
            if base_path and not artifact_filepath.is_absolute():
                artifact_filepath = base_path / artifact_filepath

        initializer_method, initializer_args = cls._process_initializer(config, context)
        verification_method, verification_args, verification_expected = (
            cls._process_verification(config, context)
        )
        return cls(
            chain_id=int(config["deployment"]["chain_id"]),
            contract_name=config.get("contract"),
            artifact_filepath=artifact_filepath,
            initializer_method=initializer_method,
            initializer_args=initializer_args,
            proxy_params=cls._process_proxy(config, context),
            verification_method=verification_method,
            verification_args=verification_args,
            verification_expected=verification_expected,
        )

    @staticmethod
    def _section(config: typing.Dict, key: str) -> typing.Dict:
        section = config.get(key) or dict()
        if not isinstance(section, dict):
            raise DeploymentConfigError(f"Malformed '{key}' section in deployment file.")
        return section

    @classmethod
    def _process_initializer(
        cls, config: typing.Dict, context: VariableContext
    ) -> typing.Tuple[str, List[Any]]:
        initializer = cls._section(config, INITIALIZER_KEY)
        method = initializer.get("method", DEFAULT_INITIALIZER)
        args = initializer.get("args") or list()
        if not isinstance(args, list):
            raise DeploymentConfigError("Initializer 'args' must be a list.")
        return method, _process_raw_value(args, context)

    @classmethod
    def _process_proxy(cls, config: typing.Dict, context: VariableContext) -> OrderedDict:
        proxy = cls._section(config, PROXY_KEY)
        for name in proxy:
            if name in IMPLICIT_PROXY_PARAMETERS:
                raise DeploymentConfigError(
                    f"'{name}' proxy parameter cannot be specified: it is derived from "
                    "the implementation and its initializer"
                )
            if name != PROXY_OWNER_PARAMETER:
                raise DeploymentConfigError(f"Unknown proxy parameter '{name}'.")

        owner = proxy.get(PROXY_OWNER_PARAMETER, "$deployer")
        return OrderedDict({PROXY_OWNER_PARAMETER: _process_raw_value(owner, context)})

    @classmethod
    def _process_verification(
        cls, config: typing.Dict, context: VariableContext
    ) -> typing.Tuple[Optional[str], List[Any], Any]:
        verification = cls._section(config, VERIFICATION_KEY)
        args = verification.get("args") or list()
        if not isinstance(args, list):
            raise DeploymentConfigError("Verification 'args' must be a list.")
        return (
            verification.get("method"),
            _process_raw_value(args, context),
            _process_raw_value(verification.get("expected"), context),
        )

    def get_artifact(self) -> ContractArtifact:
        return load_artifact(
            contract_name=self.contract_name, artifact_filepath=self.artifact_filepath
        )

    def resolve_initializer_args(self) -> List[Any]:
        return _resolve_param(self.initializer_args)

    def resolve_proxy_owner(self) -> str:
        return _resolve_param(self.proxy_params[PROXY_OWNER_PARAMETER])

    def resolve_verification_args(self) -> List[Any]:
        return _resolve_param(self.verification_args)

    def resolve_verification_expected(self) -> Any:
        return _resolve_param(self.verification_expected)
