import pytest
from ape import project

from proxy_deployment.artifacts import ContractArtifact
from proxy_deployment.deployer import ProxyDeployer

PROXY_ADDRESS = "0x" + "11" * 20
IMPLEMENTATION_ADDRESS = "0x" + "22" * 20
ADMIN_ADDRESS = "0x" + "33" * 20

INITIAL_VALUE = 42

# Minimal init code; only used where nothing gets deployed
DUMMY_BYTECODE = "0x6080604052"

BOX_ABI = [
    {
        "type": "function",
        "name": "initialize",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "initialValue", "type": "uint256", "internalType": "uint256"}],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "store",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "newValue", "type": "uint256", "internalType": "uint256"}],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "retrieve",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256", "internalType": "uint256"}],
    },
    {
        "type": "event",
        "name": "ValueChanged",
        "anonymous": False,
        "inputs": [{"name": "value", "type": "uint256", "indexed": False}],
    },
]


@pytest.fixture
def box_abi():
    return [dict(entry) for entry in BOX_ABI]


@pytest.fixture
def dummy_box_artifact(box_abi):
    return ContractArtifact.create(name="Box", abi=box_abi, bytecode=DUMMY_BYTECODE)


# On-chain fixtures


@pytest.fixture(scope="session")
def oz_dependency():
    return project.dependencies["openzeppelin"]["5.0.0"]


@pytest.fixture
def creator(accounts):
    return accounts[0]


@pytest.fixture
def account1(accounts):
    return accounts[1]


@pytest.fixture
def box_artifact():
    return ContractArtifact.from_container(project.Box)


@pytest.fixture
def box_v2_artifact():
    return ContractArtifact.from_container(project.BoxV2)


@pytest.fixture
def counter_artifact():
    return ContractArtifact.from_container(project.Counter)


@pytest.fixture
def deployer(creator, oz_dependency):
    return ProxyDeployer(
        account=creator,
        autosign=True,
        proxy_container=oz_dependency.TransparentUpgradeableProxy,
        proxy_admin_container=oz_dependency.ProxyAdmin,
    )


@pytest.fixture
def box_deployment(deployer, box_artifact):
    return deployer.deploy(box_artifact, [INITIAL_VALUE])
