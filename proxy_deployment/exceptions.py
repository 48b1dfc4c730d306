"""Exception hierarchy for proxy deployment and verification."""


class ProxyDeploymentError(Exception):
    """Base exception for proxy deployment and verification errors."""


class ArtifactError(ProxyDeploymentError, ValueError):
    """Raised when a contract artifact has empty bytecode or a malformed ABI."""


class InitializationError(ProxyDeploymentError, ValueError):
    """Raised when initializer arguments do not match the initializer ABI."""


class DeploymentConfigError(ProxyDeploymentError, ValueError):
    """Raised when a deployment parameters file is malformed."""


class TransactionRejectedError(ProxyDeploymentError):
    """Raised when a deployment or upgrade transaction reverts or is dropped."""


class DeploymentError(ProxyDeploymentError):
    """Raised when a deployed proxy does not resolve to the expected addresses."""


class ProxyStorageError(ProxyDeploymentError, ValueError):
    """Raised when an EIP1967 storage slot of a proxy is empty."""


class VerificationError(ProxyDeploymentError, ValueError):
    """Raised when a verification call cannot be performed."""


class CallRevertedError(VerificationError):
    """Raised when a verification call through the proxy reverts."""


class DecodingError(VerificationError):
    """Raised when the data returned by a verification call cannot be decoded."""


class VerificationMismatchError(VerificationError):
    """Raised when a verification call returns a value other than the expected one."""


class UnreachableNetworkError(ProxyDeploymentError, ConnectionError):
    """Raised when the network provider is not connected or unreachable."""
