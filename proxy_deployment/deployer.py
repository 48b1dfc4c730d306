import typing
from contextlib import contextmanager
from pathlib import Path
from typing import Any, List, Optional, Sequence

import requests
from ape.api import AccountAPI, ReceiptAPI
from ape.cli.choices import select_account
from ape.contracts.base import ContractContainer, ContractInstance, ContractTransactionHandler
from ape.exceptions import (
    ProviderNotConnectedError,
    TransactionError,
    TransactionNotFoundError,
    VirtualMachineError,
)
from ape_accounts import KeyfileAccount
from eth_utils import to_checksum_address

from proxy_deployment.artifacts import ContractArtifact
from proxy_deployment.confirm import _confirm_resolution, _continue
from proxy_deployment.constants import (
    DEFAULT_INITIALIZER,
    PROXY_ADMIN_CONTRACT_NAME,
    PROXY_CONTRACT_NAME,
)
from proxy_deployment.exceptions import (
    DeploymentConfigError,
    DeploymentError,
    InitializationError,
    TransactionRejectedError,
    UnreachableNetworkError,
)
from proxy_deployment.networks import get_connected_provider
from proxy_deployment.params import (
    DeploymentParameters,
    _validate_method_args,
    validate_initializer_args,
)
from proxy_deployment.records import DeploymentRecord
from proxy_deployment.storage import get_admin_address, get_implementation_address
from proxy_deployment.utils import _load_yaml, check_plugins, get_oz_dependency, validate_config

PROXY_CONSTRUCTOR_PARAMETERS = ("_logic", "initialOwner", "_data")


@contextmanager
def _submission(description: str):
    """Translates ape submission failures; nothing is retried."""
    try:
        yield
    except (ProviderNotConnectedError, requests.exceptions.ConnectionError) as e:
        raise UnreachableNetworkError(f"{description} failed, network unreachable: {e}") from e
    except (TransactionError, VirtualMachineError, TransactionNotFoundError) as e:
        raise TransactionRejectedError(f"{description} was rejected: {e}") from e


class Transactor:
    """
    Represents an ape account plus validated/annotated transaction execution.
    """

    def __init__(
        self,
        account: Optional[AccountAPI] = None,
        autosign: bool = False,
        interactive: Optional[bool] = None,
    ):
        if account is None:
            self._account = select_account()
        else:
            self._account = account
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        self._autosign = autosign
        if autosign and isinstance(self._account, KeyfileAccount):
            self._account.set_autosign(True)
        self._interactive = not autosign if interactive is None else interactive

    def get_account(self) -> AccountAPI:
        """Returns the transactor account."""
        return self._account

    def transact(self, method: ContractTransactionHandler, *args) -> ReceiptAPI:
        named_args = _validate_method_args(method_abis=method.abis, args=args)
        base_message = (
            f"\nTransacting {method.contract.contract_type.name}"
            f"[{method.contract.address[:10]}].{method}"
        )
        if named_args:
            pretty_args = "\n\t".join(f"{k}={v}" for k, v in named_args.items())
            message = f"{base_message} with arguments:\n\t{pretty_args}"
        else:
            message = f"{base_message} with no arguments"
        print(message)
        if self._interactive:
            _continue()

        with _submission(f"Transaction {method}"):
            return method(*args, sender=self._account)


class ProxyDeployer(Transactor):
    """
    Deploys an implementation contract behind an OpenZeppelin TransparentUpgradeableProxy
    and resolves the proxy, implementation and admin addresses from the proxy's storage.
    """

    def __init__(
        self,
        account: Optional[AccountAPI] = None,
        autosign: bool = False,
        interactive: Optional[bool] = None,
        publish: bool = False,
        config: Optional[typing.Dict] = None,
        path: Optional[Path] = None,
        proxy_container: Optional[ContractContainer] = None,
        proxy_admin_container: Optional[ContractContainer] = None,
    ):
        super().__init__(account, autosign, interactive)

        self.path = path
        self.publish = publish
        if publish:
            check_plugins()

        self.parameters = None
        if config is not None:
            validate_config(config=config)
            base_path = path.parent if path else None
            self.parameters = DeploymentParameters.from_config(
                config, account=self._account, base_path=base_path
            )

        self._proxy_container = proxy_container
        self._proxy_admin_container = proxy_admin_container
        self._print_deployment_info()

        if self._interactive:
            # Confirms the start of the deployment.
            _continue()

    @classmethod
    def from_yaml(cls, filepath: Path, *args, **kwargs) -> "ProxyDeployer":
        filepath = Path(filepath)
        config = _load_yaml(filepath)
        return cls(config=config, path=filepath, *args, **kwargs)

    @property
    def proxy_container(self) -> ContractContainer:
        if self._proxy_container is None:
            self._proxy_container = getattr(get_oz_dependency(), PROXY_CONTRACT_NAME)
        return self._proxy_container

    @property
    def proxy_admin_container(self) -> ContractContainer:
        if self._proxy_admin_container is None:
            self._proxy_admin_container = getattr(get_oz_dependency(), PROXY_ADMIN_CONTRACT_NAME)
        return self._proxy_admin_container

    def deploy(
        self,
        artifact: ContractArtifact,
        init_args: Sequence[Any] = (),
        initializer: Optional[str] = DEFAULT_INITIALIZER,
        initial_owner: Optional[str] = None,
    ) -> DeploymentRecord:
        """
        Deploys the implementation, then the proxy, which runs the encoded
        initializer call in its own storage context while being constructed.
        """
        artifact = artifact.validate()
        init_args = list(init_args)
        # only the implicit default initializer may be absent from the ABI
        self._validate_initializer(
            artifact, initializer, init_args, required=initializer != DEFAULT_INITIALIZER
        )
        initial_owner = initial_owner or self._account.address
        proxy_container = self.proxy_container

        implementation = self._deploy_contract(artifact.to_container(), artifact.name)
        data = self._encode_initializer(implementation, initializer, init_args)

        print(f"\nDeploying {PROXY_CONTRACT_NAME} contract to proxy {artifact.name}.")
        proxy = self._deploy_contract(
            proxy_container,
            PROXY_CONTRACT_NAME,
            implementation.address,
            initial_owner,
            data,
        )
        record = self._resolve_record(
            contract_name=artifact.name,
            proxy_address=proxy.address,
            implementation_address=implementation.address,
        )
        print(f"\nDeployed proxied {record.pretty()}")
        return record

    def deploy_from_parameters(self) -> DeploymentRecord:
        """Deploys the contract described by the deployment parameters file."""
        if self.parameters is None:
            raise DeploymentConfigError("No deployment parameters were provided.")
        artifact = self.parameters.get_artifact()
        return self.deploy(
            artifact,
            init_args=self.parameters.resolve_initializer_args(),
            initializer=self.parameters.initializer_method,
            initial_owner=self.parameters.resolve_proxy_owner(),
        )

    def upgrade(
        self,
        artifact: ContractArtifact,
        proxy_address: str,
        init_args: Sequence[Any] = (),
        initializer: Optional[str] = None,
    ) -> DeploymentRecord:
        """Deploys a new implementation and points the existing proxy at it via its ProxyAdmin."""
        artifact = artifact.validate()
        proxy_address = to_checksum_address(proxy_address)
        init_args = list(init_args)
        self._validate_initializer(artifact, initializer, init_args, required=True)

        admin_address = get_admin_address(proxy_address, provider=get_connected_provider())
        implementation = self._deploy_contract(artifact.to_container(), artifact.name)
        data = self._encode_initializer(implementation, initializer, init_args)
        return self.upgrade_to(implementation, proxy_address, admin_address, artifact.name, data)

    def upgrade_to(
        self,
        implementation: ContractInstance,
        proxy_address: str,
        admin_address: str,
        contract_name: str,
        data: bytes = b"",
    ) -> DeploymentRecord:
        proxy_admin = self.proxy_admin_container.at(admin_address)
        self.transact(proxy_admin.upgradeAndCall, proxy_address, implementation.address, data)

        record = self._resolve_record(
            contract_name=contract_name,
            proxy_address=proxy_address,
            implementation_address=implementation.address,
        )
        print(f"\nUpgraded proxied {record.pretty()}")
        return record

    @staticmethod
    def _validate_initializer(
        artifact: ContractArtifact,
        initializer: Optional[str],
        init_args: List[Any],
        required: bool,
    ) -> None:
        if initializer:
            validate_initializer_args(artifact, initializer, init_args, required=required)
        elif init_args:
            raise InitializationError(
                f"{len(init_args)} initializer arg(s) given for {artifact.name} "
                "without an initializer name."
            )

    @staticmethod
    def _encode_initializer(
        implementation: ContractInstance, initializer: Optional[str], init_args: List[Any]
    ) -> bytes:
        if not initializer:
            return b""
        if not init_args and not any(
            abi.name == initializer for abi in implementation.contract_type.methods
        ):
            return b""
        print(f"\nEncoding {implementation.contract_type.name}.{initializer} call.")
        method_handler = getattr(implementation, initializer)
        return bytes(method_handler.encode_input(*init_args))

    def _deploy_contract(
        self, container: ContractContainer, contract_name: str, *args
    ) -> ContractInstance:
        if self._interactive:
            names = self._constructor_names(container, contract_name, args)
            _confirm_resolution(contract_name, "constructor", names, args)

        with _submission(f"Deployment of {contract_name}"):
            instance = self._account.deploy(container, *args, publish=self.publish)
        print(f"{contract_name} deployed at {instance.address}")
        return instance

    @staticmethod
    def _constructor_names(
        container: ContractContainer, contract_name: str, args: Sequence[Any]
    ) -> List[str]:
        if contract_name == PROXY_CONTRACT_NAME:
            return list(PROXY_CONSTRUCTOR_PARAMETERS)
        inputs = container.constructor.abi.inputs
        return [abi_input.name or f"arg{i}" for i, abi_input in enumerate(inputs[: len(args)])]

    def _resolve_record(
        self, contract_name: str, proxy_address: str, implementation_address: str
    ) -> DeploymentRecord:
        provider = get_connected_provider()
        resolved_implementation = get_implementation_address(proxy_address, provider=provider)
        if resolved_implementation != to_checksum_address(implementation_address):
            raise DeploymentError(
                f"Proxy at {proxy_address} delegates to {resolved_implementation}, "
                f"expected {implementation_address}."
            )
        admin_address = get_admin_address(proxy_address, provider=provider)
        return DeploymentRecord.create(
            contract_name=contract_name,
            chain_id=provider.chain_id,
            proxy_address=proxy_address,
            implementation_address=resolved_implementation,
            admin_address=admin_address,
        )

    def _print_deployment_info(self):
        provider = get_connected_provider()
        print(
            f"Account: {self.get_account().address}",
            f"Config: {self.path}",
            f"Publish: {self.publish}",
            f"Ecosystem: {provider.network.ecosystem.name}",
            f"Network: {provider.network.name}",
            f"Chain ID: {provider.chain_id}",
            sep="\n",
        )


def deploy(
    artifact: ContractArtifact, init_args: Sequence[Any], account: AccountAPI
) -> DeploymentRecord:
    """Deploys a proxied contract non-interactively and returns its deployment record."""
    deployer = ProxyDeployer(account=account, interactive=False)
    return deployer.deploy(artifact, init_args=init_args)
